import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from budget import derive, validate_financials, verify, Verification
from config import DEFAULT_CURRENCY, DEFAULT_DISBURSEMENT_FREQUENCY
from database import Budget, Profile
from errors import NotFoundError
from storage import BudgetStore

logger = logging.getLogger(__name__)

FINANCIAL_FIELDS = ("stipend_amount", "savings_goal_pct", "weeks")
DESCRIPTIVE_FIELDS = ("university", "city", "currency", "disbursement_frequency")
NULLABLE_FIELDS = ("university", "city")
DESCRIPTIVE_DEFAULTS = {
    "university": None,
    "city": None,
    "currency": DEFAULT_CURRENCY,
    "disbursement_frequency": DEFAULT_DISBURSEMENT_FREQUENCY,
}


def keeps_value(name: str, value) -> bool:
    return value is not None or name in NULLABLE_FIELDS


@dataclass
class Calculations:
    total_stipend: float
    locked_savings: float
    remaining_for_budgets: float
    weekly_budget: float
    total_weekly_budgets: float
    verification: Verification


@dataclass
class ProfileSummary:
    profile: Profile
    budgets: List[Budget]
    calculations: Calculations


class ProfileService:
    def __init__(self, store: BudgetStore):
        self.store = store

    def save_profile(self, owner_id: str, data: dict, now: Optional[datetime] = None) -> ProfileSummary:
        """Create or replace the owner's profile and re-derive every weekly budget."""
        financials = validate_financials(
            data.get("stipend_amount"),
            data.get("savings_goal_pct"),
            data.get("weeks"),
        )
        result = derive(
            financials.stipend_amount,
            financials.savings_goal_pct,
            financials.weeks,
            now=now,
        )

        existing = self.store.find_owner_financials(owner_id)
        fields = {}
        for name in DESCRIPTIVE_FIELDS:
            # an explicit null clears university/city; absent keeps the stored value
            if name in data and keeps_value(name, data[name]):
                fields[name] = data[name]
            elif existing is None:
                fields[name] = DESCRIPTIVE_DEFAULTS[name]
        fields.update(
            stipend_amount=financials.stipend_amount,
            savings_goal_pct=financials.savings_goal_pct,
            locked_savings=result.locked_savings,
            weeks=financials.weeks,
        )

        with self.store.atomic():
            profile = self.store.upsert_profile(owner_id, **fields)
            budgets = self.store.replace_allocations(owner_id, result.allocations)

        logger.info(
            "Derived %d weekly budgets of %.2f for user %s (locked savings %.2f)",
            result.weeks,
            result.weekly_budget,
            owner_id,
            result.locked_savings,
        )
        if not result.verification.is_valid:
            logger.warning("Budget verification failed for user %s", owner_id)

        calculations = Calculations(
            total_stipend=result.stipend_amount,
            locked_savings=result.locked_savings,
            remaining_for_budgets=result.remaining,
            weekly_budget=result.weekly_budget,
            total_weekly_budgets=result.total_weekly_budgets,
            verification=result.verification,
        )
        return ProfileSummary(profile=profile, budgets=budgets, calculations=calculations)

    def update_profile(self, owner_id: str, changes: dict, now: Optional[datetime] = None) -> ProfileSummary:
        """Apply a partial update on top of the stored profile, then re-derive."""
        existing = self.store.find_owner_financials(owner_id)
        data = {}
        if existing is not None:
            for name in FINANCIAL_FIELDS + DESCRIPTIVE_FIELDS:
                data[name] = getattr(existing, name)
        data.update(
            {name: value for name, value in changes.items() if keeps_value(name, value)}
        )
        return self.save_profile(owner_id, data, now=now)

    def get_summary(self, owner_id: str) -> ProfileSummary:
        profile = self.store.find_owner_financials(owner_id)
        if profile is None:
            raise NotFoundError("Profile not found")

        budgets = self.store.list_allocations(owner_id)
        total_weekly_budgets = sum(budget.total_budget for budget in budgets)
        calculations = Calculations(
            total_stipend=profile.stipend_amount,
            locked_savings=profile.locked_savings,
            remaining_for_budgets=profile.stipend_amount - profile.locked_savings,
            weekly_budget=budgets[0].total_budget if budgets else 0.0,
            total_weekly_budgets=total_weekly_budgets,
            verification=verify(
                total_weekly_budgets, profile.locked_savings, profile.stipend_amount
            ),
        )
        return ProfileSummary(profile=profile, budgets=budgets, calculations=calculations)
