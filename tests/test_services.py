from datetime import datetime

import pytest

from errors import NotFoundError, StorageError, ValidationError
from services import ProfileService
from storage import BudgetStore
from tests.fakes import InMemoryBudgetStore

NOW = datetime(2026, 3, 2)
OWNER = "user-1"


@pytest.fixture
def store():
    return InMemoryBudgetStore()


@pytest.fixture
def service(store):
    return ProfileService(store)


def test_save_profile_persists_profile_and_allocations(service, store):
    summary = service.save_profile(
        OWNER,
        {"stipend_amount": 1500, "savings_goal_pct": 20, "weeks": 4, "city": "Leeds"},
        now=NOW,
    )

    assert summary.profile.locked_savings == pytest.approx(300)
    assert summary.profile.city == "Leeds"
    assert summary.profile.university is None
    assert summary.profile.currency == "USD"
    assert len(store.list_allocations(OWNER)) == 4
    assert summary.calculations.remaining_for_budgets == pytest.approx(1200)
    assert summary.calculations.verification.is_valid is True


def test_resave_with_fewer_weeks_replaces_whole_set(service, store):
    service.save_profile(OWNER, {"stipend_amount": 1200, "savings_goal_pct": 0, "weeks": 6}, now=NOW)
    service.save_profile(OWNER, {"stipend_amount": 1200, "savings_goal_pct": 0, "weeks": 2}, now=NOW)

    budgets = store.list_allocations(OWNER)
    assert [b.week_number for b in budgets] == [1, 2]
    assert all(b.total_budget == pytest.approx(600) for b in budgets)


def test_rejected_input_writes_nothing(service, store):
    with pytest.raises(ValidationError):
        service.save_profile(OWNER, {"stipend_amount": 1000, "savings_goal_pct": 150})

    assert store.profiles == {}
    assert store.allocations == {}


def test_failed_replacement_keeps_prior_set(service, store):
    service.save_profile(OWNER, {"stipend_amount": 1000, "savings_goal_pct": 10, "weeks": 4}, now=NOW)
    store.fail_on_replace = True

    with pytest.raises(StorageError):
        service.save_profile(OWNER, {"stipend_amount": 3000, "savings_goal_pct": 50, "weeks": 2}, now=NOW)

    budgets = store.list_allocations(OWNER)
    assert len(budgets) == 4
    assert budgets[0].total_budget == pytest.approx(225)
    assert store.find_owner_financials(OWNER).stipend_amount == 1000


def test_update_profile_merges_over_stored_values(service):
    service.save_profile(
        OWNER,
        {"stipend_amount": 2000, "savings_goal_pct": 25, "weeks": 4, "university": "UCL"},
        now=NOW,
    )

    summary = service.update_profile(OWNER, {"savings_goal_pct": 50}, now=NOW)

    assert summary.profile.university == "UCL"
    assert summary.profile.stipend_amount == 2000
    assert summary.calculations.locked_savings == pytest.approx(1000)
    assert summary.calculations.weekly_budget == pytest.approx(250)


def test_update_profile_without_profile_needs_financials(service):
    with pytest.raises(ValidationError):
        service.update_profile(OWNER, {"city": "York"})


def test_summary_reads_persisted_allocations(service):
    service.save_profile(OWNER, {"stipend_amount": 2000, "savings_goal_pct": 25}, now=NOW)

    summary = service.get_summary(OWNER)

    assert summary.calculations.weekly_budget == pytest.approx(375)
    assert summary.calculations.total_weekly_budgets == pytest.approx(1500)
    assert summary.calculations.verification.is_valid is True
    assert [b.week_number for b in summary.budgets] == [1, 2, 3, 4]


def test_summary_without_profile_is_not_found(service):
    with pytest.raises(NotFoundError):
        service.get_summary(OWNER)


def test_update_profile_can_clear_optional_text(service):
    service.save_profile(
        OWNER,
        {"stipend_amount": 1000, "savings_goal_pct": 10, "university": "UCL", "city": "London"},
        now=NOW,
    )

    summary = service.update_profile(OWNER, {"city": None, "currency": None}, now=NOW)

    assert summary.profile.city is None
    assert summary.profile.university == "UCL"
    assert summary.profile.currency == "USD"


def test_save_profile_keeps_text_fields_left_out(service):
    service.save_profile(
        OWNER, {"stipend_amount": 1000, "savings_goal_pct": 10, "city": "Bath"}, now=NOW
    )

    summary = service.save_profile(OWNER, {"stipend_amount": 1200, "savings_goal_pct": 10}, now=NOW)

    assert summary.profile.city == "Bath"


def test_incomplete_store_cannot_be_created():
    class ReadOnlyStore(BudgetStore):
        def find_owner_financials(self, owner_id):
            return None

    with pytest.raises(TypeError):
        ReadOnlyStore()
