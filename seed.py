import logging

from sqlalchemy.orm import Session

from auth import hash_password
from database import Base, SessionLocal, engine, new_id, User, STUDENT
from services import ProfileService
from storage import SqlBudgetStore

logger = logging.getLogger(__name__)

DEMO_EMAIL = "test@example.com"


def seed(db: Session) -> User:
    """Create the demo student with a derived budget, unless it already exists."""
    user = db.query(User).filter(User.email == DEMO_EMAIL).first()
    if user:
        logger.info("Seed user %s already present", DEMO_EMAIL)
        return user

    user = User(
        id=new_id(),
        email=DEMO_EMAIL,
        first_name="John",
        last_name="Doe",
        password=hash_password("password123"),
        provider="email",
        role=STUDENT,
    )
    db.add(user)
    db.flush()
    ProfileService(SqlBudgetStore(db)).save_profile(
        user.id,
        {
            "university": "Test University",
            "city": "Test City",
            "stipend_amount": 1000.0,
            "savings_goal_pct": 20.0,
            "weeks": 4,
        },
    )
    logger.info("Seeded demo student %s", DEMO_EMAIL)
    return user


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        seed(db)
