from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from winnie_engine.core.errors import TargetDateInPastError, UnknownGoalError
from winnie_engine.core.schemas import Allocation, EngineInput, FinancialProfile, Goal, GoalType
from winnie_engine.engine import financial_engine

AS_OF = date(2025, 1, 15)


def _profile(income="9000", needs="4500", wants="1500"):
    return FinancialProfile(monthly_income=income, monthly_needs=needs, monthly_wants=wants)


def _codes(out):
    return [w.code for w in out.warnings]


def test_calculate_house_goal():
    profile = _profile(income="5000", needs="2000", wants="1000")
    assert profile.savings_pool == Decimal("2000")
    house = Goal(id="house", type=GoalType.HOUSE, target_amount="50000", custom_return_rate="0.07")
    out = financial_engine.calculate(
        profile, [house], Allocation(amounts={"house": "1850"}), as_of=AS_OF, horizon_cap=600
    )
    p = out.projection("house")
    assert p.months_to_complete == 26
    assert p.completion_date == date(2027, 3, 15)
    assert out.total_allocated == Decimal("1850")
    assert out.remaining_disposable == Decimal("150")
    assert out.as_of == AS_OF
    assert not out.has_warnings


def test_calculate_is_deterministic():
    goals = [
        Goal(id="house", type=GoalType.HOUSE, target_amount="50000", custom_return_rate="0.07"),
        Goal(id="ef", type=GoalType.EMERGENCY_FUND, target_amount="12000", current_amount="3000"),
        Goal(id="trip", target_amount="4000", priority=3),
    ]
    alloc = Allocation(amounts={"house": "1200", "ef": "500", "trip": "150"})

    first = financial_engine.calculate(_profile(), goals, alloc, as_of=AS_OF)
    second = financial_engine.calculate(_profile(), goals, alloc, as_of=AS_OF)
    assert first == second
    assert first.model_dump() == second.model_dump()


def test_over_allocation_is_a_warning_not_an_error():
    goals = [
        Goal(id="a", target_amount="10000", custom_return_rate="0"),
        Goal(id="b", target_amount="10000", custom_return_rate="0"),
    ]
    out = financial_engine.calculate(
        _profile(income="4000", needs="0", wants="0"),
        goals,
        Allocation(amounts={"a": "2500", "b": "2000"}),
        as_of=AS_OF,
    )
    over = [w for w in out.warnings if w.code == "OVER_ALLOCATED"]
    assert len(over) == 1
    assert over[0].amount == Decimal("500")
    assert over[0].is_blocker
    assert out.remaining_disposable == Decimal("0")
    # projections still use the requested amounts
    assert out.projection("a").months_to_complete == 4
    assert out.projection("b").months_to_complete == 5


def test_negative_disposable_warning():
    goal = Goal(id="a", target_amount="1000", custom_return_rate="0")
    out = financial_engine.calculate(
        _profile(income="1000", needs="1500", wants="0"), [goal], Allocation(amounts={"a": "100"}), as_of=AS_OF
    )
    assert "NEGATIVE_DISPOSABLE" in _codes(out)


def test_goal_without_contribution_warns_and_is_unreachable():
    goal = Goal(id="a", name="Trip", target_amount="1000")
    out = financial_engine.calculate(_profile(), [goal], Allocation(), as_of=AS_OF)
    assert _codes(out) == ["NO_CONTRIBUTION", "GOAL_UNREACHABLE"]
    assert not out.warnings[0].is_blocker
    assert "Trip" in out.warnings[1].message
    assert out.projection("a").months_to_complete is None


def test_inactive_goals_are_skipped():
    goals = [
        Goal(id="on", target_amount="1000", custom_return_rate="0"),
        Goal(id="off", target_amount="1000", is_active=False),
    ]
    out = financial_engine.calculate(_profile(), goals, Allocation(amounts={"on": "100"}), as_of=AS_OF)
    assert set(out.projections) == {"on"}


def test_unknown_goal_in_allocation_is_rejected():
    goal = Goal(id="a", target_amount="1000")
    with pytest.raises(UnknownGoalError):
        financial_engine.calculate(_profile(), [goal], Allocation(amounts={"ghost": "100"}), as_of=AS_OF)


def test_duplicate_goal_ids_are_rejected():
    with pytest.raises(ValidationError):
        EngineInput(
            profile=_profile(),
            goals=[Goal(id="a", target_amount="1"), Goal(id="a", target_amount="2")],
        )


def test_projections_by_completion_date():
    goals = [
        Goal(id="slow", target_amount="1200", custom_return_rate="0"),
        Goal(id="never", target_amount="1200", custom_return_rate="0"),
        Goal(id="fast", target_amount="1200", custom_return_rate="0"),
    ]
    out = financial_engine.calculate(
        _profile(), goals, Allocation(amounts={"slow": "100", "fast": "400"}), as_of=AS_OF
    )
    assert [p.goal_id for p in out.projections_by_completion_date] == ["fast", "slow", "never"]


def test_required_monthly_contribution():
    goal = Goal(id="a", target_amount="1200", custom_return_rate="0")
    assert financial_engine.required_monthly_contribution(goal, date(2026, 1, 1), as_of=AS_OF) == Decimal("100.00")
    # same calendar month: no time left
    assert financial_engine.required_monthly_contribution(goal, date(2025, 1, 31), as_of=AS_OF) is None
    with pytest.raises(TargetDateInPastError):
        financial_engine.required_monthly_contribution(goal, date(2024, 12, 31), as_of=AS_OF)


def test_required_monthly_contribution_for_funded_goal():
    goal = Goal(id="a", target_amount="1200", current_amount="1500")
    assert financial_engine.required_monthly_contribution(goal, date(2026, 1, 1), as_of=AS_OF) == Decimal("0")


def test_simulate_allocation_change():
    goal = Goal(id="a", target_amount="1200", custom_return_rate="0")
    inp = EngineInput(profile=_profile(), goals=[goal], allocation=Allocation(amounts={"a": "100"}), as_of=AS_OF)

    faster = financial_engine.simulate_allocation_change("a", Decimal("200"), inp)
    assert faster.projection("a").months_to_complete == 6

    cleared = financial_engine.simulate_allocation_change("a", Decimal("-50"), inp)
    assert cleared.projection("a").monthly_contribution == Decimal("0")
    # the input snapshot is untouched
    assert inp.allocation.amount_for("a") == Decimal("100")
