import logging
from datetime import datetime, timedelta

import bcrypt
import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from config import (
    SECRET_KEY,
    ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    DEFAULT_SAVINGS_GOAL_PCT,
)
from database import get_db, new_id, User, Profile, Budget, ROLES, ADMIN
from errors import ConflictError, ValidationError
from schemas import (
    UserCreate,
    UserLogin,
    UserOut,
    StudentOut,
    AuthResponse,
    AuthData,
    MeResponse,
    MeData,
)
from services import ProfileService
from storage import SqlBudgetStore

logger = logging.getLogger(__name__)

auth_router = APIRouter()
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")

PROFILE_FIELDS = (
    "university",
    "city",
    "currency",
    "stipend_amount",
    "disbursement_frequency",
    "savings_goal_pct",
    "weeks",
)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": datetime.utcnow() + expires_delta})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def token_for(user: User) -> str:
    return create_access_token(
        data={"sub": user.id, "email": user.email, "role": user.role}
    )


def student_view(user: User, profile=None, budgets=None) -> StudentOut:
    return StudentOut(
        **UserOut.model_validate(user).model_dump(),
        profile=profile,
        budgets=budgets or [],
    )


async def get_current_user(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired")
    except jwt.InvalidTokenError:
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise credentials_exception
    return user


def require_role(*roles):
    async def role_checker(current_user: User = Depends(get_current_user)):
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "message": "Access denied. Insufficient permissions.",
                    "required": list(roles),
                    "current": current_user.role,
                },
            )
        return current_user

    return role_checker


require_admin = require_role(ADMIN)


@auth_router.post(
    "/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED
)
async def signup(user: UserCreate, db: Session = Depends(get_db)):
    if user.role not in ROLES:
        raise ValidationError("Invalid role. Must be STUDENT or ADMIN")

    db_user = db.query(User).filter(User.email == user.email).first()
    if db_user:
        raise ConflictError("User already exists with this email")

    new_user = User(
        id=new_id(),
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        password=hash_password(user.password),
        provider="email",
        role=user.role,
    )
    db.add(new_user)

    profile = None
    budgets = []
    if user.stipend_amount is not None:
        # inline profile goes through the same derivation as POST /profile
        data = user.model_dump(include=set(PROFILE_FIELDS))
        if data["savings_goal_pct"] is None:
            data["savings_goal_pct"] = DEFAULT_SAVINGS_GOAL_PCT
        db.flush()
        summary = ProfileService(SqlBudgetStore(db)).save_profile(new_user.id, data)
        profile, budgets = summary.profile, summary.budgets
    else:
        db.commit()

    logger.info("Registered %s user %s", new_user.role, new_user.id)
    return AuthResponse(
        message="User created successfully",
        data=AuthData(
            user=student_view(new_user, profile, budgets), token=token_for(new_user)
        ),
    )


@auth_router.post("/login", response_model=AuthResponse)
async def login(user: UserLogin, db: Session = Depends(get_db)):
    db_user = db.query(User).filter(User.email == user.email).first()
    if (
        not db_user
        or not db_user.password
        or not verify_password(user.password, db_user.password)
    ):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    profile = db.query(Profile).filter(Profile.user_id == db_user.id).first()
    return AuthResponse(
        message="Login successful",
        data=AuthData(user=student_view(db_user, profile), token=token_for(db_user)),
    )


@auth_router.get("/me", response_model=MeResponse)
async def get_me(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    profile = db.query(Profile).filter(Profile.user_id == current_user.id).first()
    active_budgets = (
        db.query(Budget)
        .filter(Budget.user_id == current_user.id, Budget.is_active.is_(True))
        .all()
    )
    return MeResponse(data=MeData(user=student_view(current_user, profile, active_budgets)))
