import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budget import BudgetAllocation
from database import Budget, Profile
from errors import StorageError

logger = logging.getLogger(__name__)


class BudgetStore(ABC):
    """Persistence used by the profile workflow.

    Writes made inside ``atomic()`` are applied together or not at all.
    """

    @abstractmethod
    def atomic(self):
        """Context manager wrapping one all-or-nothing write."""

    @abstractmethod
    def find_owner_financials(self, owner_id: str) -> Optional[Profile]:
        pass

    @abstractmethod
    def upsert_profile(self, owner_id: str, **fields) -> Profile:
        pass

    @abstractmethod
    def replace_allocations(
        self, owner_id: str, allocations: Iterable[BudgetAllocation]
    ) -> List[Budget]:
        pass

    @abstractmethod
    def list_allocations(self, owner_id: str) -> List[Budget]:
        pass


class SqlBudgetStore(BudgetStore):
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def atomic(self):
        try:
            yield
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Budget write failed, rolled back")
            raise StorageError("Failed to save profile budgets") from exc
        except Exception:
            self.db.rollback()
            raise

    def find_owner_financials(self, owner_id):
        return self.db.query(Profile).filter(Profile.user_id == owner_id).first()

    def upsert_profile(self, owner_id, **fields):
        profile = self.find_owner_financials(owner_id)
        if profile is None:
            profile = Profile(user_id=owner_id, **fields)
            self.db.add(profile)
        else:
            for name, value in fields.items():
                setattr(profile, name, value)
        self.db.flush()
        return profile

    def replace_allocations(self, owner_id, allocations):
        self.db.query(Budget).filter(Budget.user_id == owner_id).delete(
            synchronize_session=False
        )
        budgets = [
            Budget(
                user_id=owner_id,
                week_number=allocation.week_number,
                total_budget=allocation.total_budget,
                spent_amount=allocation.spent_amount,
                start_date=allocation.start_date,
                end_date=allocation.end_date,
                is_active=allocation.is_active,
            )
            for allocation in allocations
        ]
        self.db.add_all(budgets)
        self.db.flush()
        return budgets

    def list_allocations(self, owner_id):
        return (
            self.db.query(Budget)
            .filter(Budget.user_id == owner_id)
            .order_by(Budget.week_number)
            .all()
        )
