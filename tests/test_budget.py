from datetime import datetime, timedelta

import pytest

from budget import derive, validate_financials, verify
from config import MAX_WEEKS
from errors import ValidationError

NOW = datetime(2026, 1, 5, 9, 30)


def test_derive_concrete_case_twenty_percent():
    result = derive(1500, 20, 4, now=NOW)

    assert result.locked_savings == pytest.approx(300)
    assert result.remaining == pytest.approx(1200)
    assert result.weekly_budget == pytest.approx(300)
    assert len(result.allocations) == 4
    assert all(a.total_budget == pytest.approx(300) for a in result.allocations)
    assert result.verification.is_valid is True


def test_derive_concrete_case_twenty_five_percent():
    result = derive(2000, 25, 4, now=NOW)

    assert result.locked_savings == pytest.approx(500)
    assert result.weekly_budget == pytest.approx(375)
    assert result.total_weekly_budgets == pytest.approx(1500)
    assert result.verification.is_valid is True
    assert result.verification.equals_stipend == 2000


def test_zero_savings_goal_spreads_whole_stipend():
    result = derive(1000, 0, 4, now=NOW)

    assert result.locked_savings == 0
    assert result.weekly_budget == pytest.approx(250)


def test_full_savings_goal_leaves_nothing_weekly():
    result = derive(1000, 100, 4, now=NOW)

    assert result.locked_savings == pytest.approx(1000)
    assert result.weekly_budget == pytest.approx(0)
    assert result.verification.is_valid is True


def test_only_first_week_is_active():
    result = derive(900, 10, 6, now=NOW)

    active = [a for a in result.allocations if a.is_active]
    assert len(active) == 1
    assert active[0].week_number == 1


def test_allocations_cover_consecutive_weeks():
    result = derive(900, 10, 3, now=NOW)

    assert [a.week_number for a in result.allocations] == [1, 2, 3]
    for allocation in result.allocations:
        offset = timedelta(days=(allocation.week_number - 1) * 7)
        assert allocation.start_date == NOW + offset
        assert allocation.end_date == allocation.start_date + timedelta(days=6)
        assert allocation.spent_amount == 0


@pytest.mark.parametrize(
    "stipend, pct, weeks",
    [
        (0, 0, 1),
        (1, 33.3, 3),
        (1234.56, 17.5, 7),
        (999.99, 99.9, 13),
        (50000, 12.345, 52),
        (333.33, 50, 9),
    ],
)
def test_budgets_plus_savings_reconstruct_stipend(stipend, pct, weeks):
    result = derive(stipend, pct, weeks, now=NOW)

    total = sum(a.total_budget for a in result.allocations)
    assert abs(total + result.locked_savings - stipend) < 0.01
    assert len({a.total_budget for a in result.allocations}) == 1
    assert result.verification.is_valid is True


def test_derive_defaults_to_now():
    before = datetime.utcnow()
    result = derive(400, 0, 2)

    assert result.allocations[0].start_date >= before


def test_verify_flags_mismatch():
    verification = verify(total_budgets=900, locked_savings=50, stipend_amount=1000)

    assert verification.is_valid is False
    assert verification.plus_locked_savings == 50


def test_validate_defaults_weeks_when_absent():
    financials = validate_financials(1000, 20)

    assert financials.weeks == 4


def test_validate_accepts_explicit_zero_values():
    financials = validate_financials(0, 0, 1)

    assert financials.stipend_amount == 0
    assert financials.savings_goal_pct == 0


@pytest.mark.parametrize(
    "stipend, pct, weeks",
    [
        (None, 20, 4),
        (1000, None, 4),
        (-1, 20, 4),
        (1000, -0.5, 4),
        (1000, 150, 4),
        (1000, 20, 0),
        (1000, 20, -2),
    ],
)
def test_validate_rejects_bad_input(stipend, pct, weeks):
    with pytest.raises(ValidationError):
        validate_financials(stipend, pct, weeks)


def test_validation_error_maps_to_bad_request():
    with pytest.raises(ValidationError) as excinfo:
        validate_financials(1000, 150, 4)

    assert excinfo.value.status_code == 400
    assert "between 0 and 100" in excinfo.value.message


@pytest.mark.parametrize(
    "stipend, pct",
    [
        (float("nan"), 20),
        (1000, float("nan")),
        (float("inf"), 20),
        (1000, float("-inf")),
    ],
)
def test_validate_rejects_non_finite_numbers(stipend, pct):
    with pytest.raises(ValidationError):
        validate_financials(stipend, pct, 4)


def test_validate_caps_week_count():
    assert validate_financials(1000, 20, MAX_WEEKS).weeks == MAX_WEEKS

    with pytest.raises(ValidationError):
        validate_financials(1000, 20, MAX_WEEKS + 1)
    with pytest.raises(ValidationError):
        validate_financials(1000, 10, 600000)
