"""
GoalProjectionCalculator: months-to-target for a single savings goal.

The calculator itself is rate-agnostic; `select_annual_rate` is the caller-side
policy that decides which rate a goal is projected at.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from winnie_engine.core.config import SETTINGS
from winnie_engine.core.errors import InvalidInputError
from winnie_engine.core.schemas import Goal
from winnie_engine.utils.calendar_month import CalendarMonth, add_months
from winnie_engine.utils.engine_models import GoalProjection
from winnie_engine.utils.logging import get_logger
from winnie_engine.utils.projection_math import (
    _d,
    future_value,
    inflation_adjusted,
    money,
    monthly_rate,
    months_to_grow,
    months_to_reach_target,
    required_contribution,
)

logger = get_logger("engine.calculator")


def select_annual_rate(goal: Goal, *, as_of: Optional[date] = None, policy: Optional[str] = None) -> Decimal:
    """
    Rate a goal is projected at.

    A custom rate on the goal always wins. Otherwise:
      goal_type: the goal type's default rate.
      horizon:   conservative rate if the desired date is less than the
                 long-term threshold away (or unset and the type is short-term),
                 growth rate otherwise.
    """
    if goal.custom_return_rate is not None:
        return goal.custom_return_rate

    policy = policy or SETTINGS.rate_policy
    if policy == "goal_type":
        return goal.type.default_annual_return_rate

    if goal.desired_date is not None:
        start = CalendarMonth.from_date(as_of or date.today())
        horizon = start.months_until(CalendarMonth.from_date(goal.desired_date))
        long_term = horizon >= SETTINGS.long_term_threshold_months
    else:
        long_term = goal.type.is_long_term_goal
    return SETTINGS.growth_rate if long_term else SETTINGS.conservative_rate


def project(
    current_amount: Decimal,
    target_amount: Decimal,
    monthly_contribution: Decimal,
    annual_rate: Decimal,
    *,
    goal_id: str = "",
    as_of: Optional[date] = None,
    horizon_cap: Optional[int] = None,
    contribution_start_offset: int = 0,
) -> GoalProjection:
    """
    Project one goal.

    contribution_start_offset delays the first contribution by that many
    months; the existing balance keeps compounding during the pause.
    """
    current = _d(current_amount)
    target = _d(target_amount)
    contribution = _d(monthly_contribution)
    rate = _d(annual_rate)
    cap = SETTINGS.horizon_cap_months if horizon_cap is None else int(horizon_cap)
    start = as_of or date.today()

    monthly_rate(rate)  # rejects negative rates before anything else
    if target <= 0:
        raise InvalidInputError(f"target amount must be positive (got {target})")
    if current < 0:
        raise InvalidInputError(f"current amount cannot be negative (got {current})")
    if contribution < 0:
        raise InvalidInputError(f"monthly contribution cannot be negative (got {contribution})")
    if contribution_start_offset < 0:
        raise InvalidInputError("contribution_start_offset cannot be negative")

    if current >= target:
        months: Optional[int] = 0
    elif contribution <= 0:
        months = None
    elif contribution_start_offset == 0:
        months = months_to_reach_target(current, target, contribution, rate, max_months=cap)
    else:
        months = _months_with_delayed_start(current, target, contribution, rate, contribution_start_offset, cap)

    if months == 0:
        final_value = current
    elif months is not None:
        final_value = target
    else:
        final_value = _value_at_cap(current, contribution, rate, contribution_start_offset, cap)

    years = (months if months is not None else cap) // 12
    projection = GoalProjection(
        goal_id=goal_id,
        months_to_complete=months,
        completion_date=add_months(start, months) if months is not None else None,
        projected_final_value=money(final_value),
        projected_final_value_real=money(inflation_adjusted(final_value, years)),
        monthly_contribution=contribution,
        annual_rate=rate,
        is_reachable=months is not None,
    )
    logger.debug(
        "projected goal=%s months=%s reachable=%s contribution=%s rate=%s",
        goal_id or "-", months, projection.is_reachable, contribution, rate,
    )
    return projection


def _months_with_delayed_start(
    current: Decimal,
    target: Decimal,
    contribution: Decimal,
    rate: Decimal,
    offset: int,
    cap: int,
) -> Optional[int]:
    paused = min(offset, cap)
    grown = months_to_grow(current, target, rate, paused)
    if grown is not None:
        return grown
    if offset >= cap:
        return None

    balance = future_value(current, Decimal(0), rate, offset)
    rest = months_to_reach_target(balance, target, contribution, rate, max_months=cap - offset)
    if rest is None:
        return None
    return offset + rest


def _value_at_cap(current: Decimal, contribution: Decimal, rate: Decimal, offset: int, cap: int) -> Decimal:
    paused = min(offset, cap)
    balance = future_value(current, Decimal(0), rate, paused)
    return future_value(balance, contribution, rate, cap - paused)


def project_goal(
    goal: Goal,
    monthly_contribution: Decimal,
    *,
    as_of: Optional[date] = None,
    horizon_cap: Optional[int] = None,
    contribution_start_offset: int = 0,
) -> GoalProjection:
    return project(
        goal.current_amount,
        goal.target_amount,
        monthly_contribution,
        select_annual_rate(goal, as_of=as_of),
        goal_id=goal.id,
        as_of=as_of,
        horizon_cap=horizon_cap,
        contribution_start_offset=contribution_start_offset,
    )


def required_monthly_contribution(
    current_amount: Decimal,
    target_amount: Decimal,
    months_remaining: int,
    annual_rate: Decimal,
) -> Optional[Decimal]:
    """Inverse of project(): contribution needed to finish in months_remaining months."""
    return required_contribution(current_amount, target_amount, months_remaining, annual_rate)
