import uuid
from datetime import datetime

from sqlalchemy import (
    create_engine,
    Column,
    Integer,
    String,
    Float,
    DateTime,
    ForeignKey,
    Boolean,
    UniqueConstraint,
)
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from config import DATABASE_URL, DEFAULT_CURRENCY, DEFAULT_DISBURSEMENT_FREQUENCY

engine_options = {}
if DATABASE_URL.startswith("sqlite"):
    engine_options["connect_args"] = {"check_same_thread": False}
if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
    # one shared connection, otherwise every session sees an empty database
    engine_options["poolclass"] = StaticPool

engine = create_engine(DATABASE_URL, **engine_options)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

STUDENT = "STUDENT"
ADMIN = "ADMIN"
ROLES = (STUDENT, ADMIN)


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    password = Column(String, nullable=True)
    provider = Column(String, default="email")
    role = Column(String, default=STUDENT, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Profile(Base):
    __tablename__ = "profiles"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id"), unique=True, nullable=False)
    university = Column(String, nullable=True)
    city = Column(String, nullable=True)
    currency = Column(String, default=DEFAULT_CURRENCY)
    stipend_amount = Column(Float, nullable=False)
    disbursement_frequency = Column(String, default=DEFAULT_DISBURSEMENT_FREQUENCY)
    savings_goal_pct = Column(Float, nullable=False)
    locked_savings = Column(Float, default=0.0)
    weeks = Column(Integer, default=4)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Budget(Base):
    __tablename__ = "budgets"
    __table_args__ = (UniqueConstraint("user_id", "week_number"),)
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    week_number = Column(Integer, nullable=False)
    total_budget = Column(Float, nullable=False)
    spent_amount = Column(Float, default=0.0)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    is_active = Column(Boolean, default=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
