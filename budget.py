"""Stipend to weekly budget derivation.

Pure functions only: nothing here touches the database. Callers validate with
``validate_financials`` first, then ``derive`` produces the locked savings, the
per-week allocations and a verification that they add back up to the stipend.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from config import DEFAULT_WEEKS, MAX_WEEKS
from errors import ValidationError

TOLERANCE = 0.01


@dataclass(frozen=True)
class ProfileFinancials:
    stipend_amount: float
    savings_goal_pct: float
    weeks: int = DEFAULT_WEEKS


@dataclass(frozen=True)
class BudgetAllocation:
    week_number: int
    total_budget: float
    start_date: datetime
    end_date: datetime
    is_active: bool
    spent_amount: float = 0.0


@dataclass(frozen=True)
class Verification:
    total_budgets: float
    plus_locked_savings: float
    equals_stipend: float
    is_valid: bool


@dataclass(frozen=True)
class DerivationResult:
    stipend_amount: float
    locked_savings: float
    remaining: float
    weekly_budget: float
    weeks: int
    verification: Verification
    allocations: List[BudgetAllocation] = field(default_factory=list)

    @property
    def total_weekly_budgets(self) -> float:
        return self.weekly_budget * self.weeks


def validate_financials(
    stipend_amount: Optional[float],
    savings_goal_pct: Optional[float],
    weeks: Optional[int] = None,
) -> ProfileFinancials:
    if stipend_amount is None or savings_goal_pct is None:
        raise ValidationError(
            "Stipend amount and savings goal percentage are required"
        )
    # NaN slips past every comparison below
    if not math.isfinite(stipend_amount) or not math.isfinite(savings_goal_pct):
        raise ValidationError(
            "Stipend amount and savings goal percentage must be finite numbers"
        )
    if stipend_amount < 0:
        raise ValidationError("Stipend amount must not be negative")
    if savings_goal_pct < 0 or savings_goal_pct > 100:
        raise ValidationError("Savings goal percentage must be between 0 and 100")
    if weeks is None:
        weeks = DEFAULT_WEEKS
    if weeks < 1 or weeks > MAX_WEEKS:
        raise ValidationError(f"Weeks must be between 1 and {MAX_WEEKS}")
    return ProfileFinancials(
        stipend_amount=float(stipend_amount),
        savings_goal_pct=float(savings_goal_pct),
        weeks=int(weeks),
    )


def verify(total_budgets: float, locked_savings: float, stipend_amount: float) -> Verification:
    return Verification(
        total_budgets=total_budgets,
        plus_locked_savings=locked_savings,
        equals_stipend=stipend_amount,
        is_valid=abs(total_budgets + locked_savings - stipend_amount) < TOLERANCE,
    )


def week_window(start: datetime, week_number: int):
    """Return (start, end) of a 7-day week; week 1 begins at ``start``."""
    week_start = start + relativedelta(weeks=week_number - 1)
    return week_start, week_start + relativedelta(days=6)


def derive(
    stipend_amount: float,
    savings_goal_pct: float,
    weeks: int = DEFAULT_WEEKS,
    now: Optional[datetime] = None,
) -> DerivationResult:
    """Split a stipend into locked savings and equal weekly budgets.

    Expects validated input (see ``validate_financials``); ``weeks`` must be
    at least 1.
    """
    if now is None:
        now = datetime.utcnow()

    locked_savings = stipend_amount * (savings_goal_pct / 100)
    remaining = stipend_amount - locked_savings
    weekly_budget = remaining / weeks

    allocations = []
    for week_number in range(1, weeks + 1):
        start_date, end_date = week_window(now, week_number)
        allocations.append(
            BudgetAllocation(
                week_number=week_number,
                total_budget=weekly_budget,
                start_date=start_date,
                end_date=end_date,
                is_active=week_number == 1,
            )
        )

    return DerivationResult(
        stipend_amount=stipend_amount,
        locked_savings=locked_savings,
        remaining=remaining,
        weekly_budget=weekly_budget,
        weeks=weeks,
        verification=verify(weekly_budget * weeks, locked_savings, stipend_amount),
        allocations=allocations,
    )
