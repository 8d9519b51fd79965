import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent

load_dotenv(dotenv_path=PROJECT_ROOT / ".env", override=False)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./budget.db")

SECRET_KEY = os.getenv("JWT_SECRET", "change-me-in-production")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
# 7 days
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "10080"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DEFAULT_WEEKS = int(os.getenv("DEFAULT_WEEKS", "4"))
MAX_WEEKS = int(os.getenv("MAX_WEEKS", "52"))
DEFAULT_SAVINGS_GOAL_PCT = 20.0
DEFAULT_CURRENCY = "USD"
DEFAULT_DISBURSEMENT_FREQUENCY = "monthly"
