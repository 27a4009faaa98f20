from datetime import date
from decimal import Decimal

import pytest

from winnie_engine.core.config import SETTINGS
from winnie_engine.core.errors import InvalidInputError, NegativeRateError
from winnie_engine.core.schemas import Goal, GoalType
from winnie_engine.engine import calculator
from winnie_engine.utils.calendar_month import CalendarMonth
from winnie_engine.utils.engine_models import GoalProjection
from winnie_engine.utils.projection_math import future_value, inflation_adjusted, money, required_contribution

AS_OF = date(2025, 1, 15)


def test_house_down_payment_takes_26_months():
    p = calculator.project(Decimal("0"), Decimal("50000"), Decimal("1850"), Decimal("0.07"), as_of=AS_OF, horizon_cap=600)
    assert p.months_to_complete == 26
    assert p.completion_date == date(2027, 3, 15)
    assert p.is_reachable
    assert p.projected_final_value == Decimal("50000.00")
    # one month earlier really is short
    assert future_value(Decimal("0"), Decimal("1850"), Decimal("0.07"), 25) < Decimal("50000")


def test_zero_contribution_is_unreachable():
    p = calculator.project(Decimal("0"), Decimal("1000"), Decimal("0"), Decimal("0.05"), as_of=AS_OF, horizon_cap=600)
    assert p.months_to_complete is None
    assert p.completion_date is None
    assert not p.is_reachable
    assert p.time_to_completion_text == "50+ years"


def test_already_complete():
    p = calculator.project(Decimal("1500"), Decimal("1000"), Decimal("100"), Decimal("0.05"), as_of=AS_OF, horizon_cap=600)
    assert p.months_to_complete == 0
    assert p.completion_date == AS_OF
    assert p.projected_final_value == Decimal("1500.00")
    assert p.time_to_completion_text == "Complete!"


def test_more_contribution_never_takes_longer():
    months = [
        calculator.project(Decimal("0"), Decimal("40000"), Decimal(c), Decimal("0.05"), as_of=AS_OF, horizon_cap=600).months_to_complete
        for c in ("300", "500", "1000", "1500")
    ]
    assert months == sorted(months, reverse=True)


def test_projection_is_deterministic():
    args = (Decimal("1000"), Decimal("25000"), Decimal("400"), Decimal("0.045"))
    a = calculator.project(*args, goal_id="g", as_of=AS_OF, horizon_cap=600)
    b = calculator.project(*args, goal_id="g", as_of=AS_OF, horizon_cap=600)
    assert a == b


def test_required_contribution_round_trips():
    current, target, rate = Decimal("2000"), Decimal("30000"), Decimal("0.06")
    c = required_contribution(current, target, 36, rate)
    p = calculator.project(current, target, c, rate, as_of=AS_OF, horizon_cap=600)
    assert p.months_to_complete == 36


def test_horizon_boundary_at_growth_rate():
    target, rate = Decimal("100000"), Decimal("0.07")
    c = required_contribution(Decimal("0"), target, 600, rate)
    assert calculator.project(Decimal("0"), target, c, rate, as_of=AS_OF, horizon_cap=600).months_to_complete == 600
    assert calculator.project(Decimal("0"), target, c - 1, rate, as_of=AS_OF, horizon_cap=600).months_to_complete is None


def test_delayed_contributions_add_the_pause():
    p = calculator.project(
        Decimal("0"), Decimal("1000"), Decimal("100"), Decimal("0"),
        as_of=AS_OF, horizon_cap=600, contribution_start_offset=3,
    )
    assert p.months_to_complete == 13


def test_real_value_discounts_inflation():
    p = calculator.project(Decimal("0"), Decimal("1200"), Decimal("100"), Decimal("0"), as_of=AS_OF, horizon_cap=600)
    assert p.months_to_complete == 12
    assert p.projected_final_value_real == money(inflation_adjusted(Decimal("1200"), 1))


def test_invalid_inputs():
    with pytest.raises(NegativeRateError):
        calculator.project(Decimal("0"), Decimal("1000"), Decimal("100"), Decimal("-0.01"))
    with pytest.raises(InvalidInputError):
        calculator.project(Decimal("0"), Decimal("0"), Decimal("100"), Decimal("0.05"))
    with pytest.raises(InvalidInputError):
        calculator.project(Decimal("0"), Decimal("1000"), Decimal("-5"), Decimal("0.05"))


def test_rate_selection():
    custom = Goal(id="a", type=GoalType.HOUSE, target_amount="1000", custom_return_rate="0.02")
    assert calculator.select_annual_rate(custom) == Decimal("0.02")

    house = Goal(id="b", type=GoalType.HOUSE, target_amount="1000")
    assert calculator.select_annual_rate(house, policy="goal_type") == Decimal("0.045")

    as_of = date(2025, 1, 15)
    threshold_date = CalendarMonth.from_date(as_of).plus_months(SETTINGS.long_term_threshold_months).first_day()
    far = Goal(id="c", type=GoalType.VACATION, target_amount="1000", desired_date=threshold_date)
    near = Goal(id="d", type=GoalType.RETIREMENT, target_amount="1000", desired_date=date(2026, 1, 1))
    assert calculator.select_annual_rate(far, as_of=as_of, policy="horizon") == SETTINGS.growth_rate
    assert calculator.select_annual_rate(near, as_of=as_of, policy="horizon") == SETTINGS.conservative_rate


@pytest.mark.parametrize(
    "months,text",
    [(1, "1 month"), (7, "7 months"), (12, "1 year"), (24, "2 years"), (14, "1y 2m")],
)
def test_time_to_completion_text(months, text):
    p = GoalProjection(
        goal_id="g",
        months_to_complete=months,
        projected_final_value=Decimal("1"),
        projected_final_value_real=Decimal("1"),
        monthly_contribution=Decimal("1"),
        annual_rate=Decimal("0"),
        is_reachable=True,
    )
    assert p.time_to_completion_text == text


def test_required_contribution_when_growth_alone_is_enough():
    current, target, rate = Decimal("19844"), Decimal("26748"), Decimal("0.07")
    c = required_contribution(current, target, 481, rate)
    assert c == Decimal("0.01")
    p = calculator.project(current, target, c, rate, as_of=AS_OF, horizon_cap=600)
    assert p.is_reachable
    assert p.months_to_complete <= 481
