from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from winnie_engine.core.schemas import EngineInput, Goal
from winnie_engine.engine import calculator
from winnie_engine.utils.calendar_month import CalendarMonth
from winnie_engine.utils.engine_models import EngineOutput, GoalProjection, GoalTrackingStatus


def _required_by(goal: Goal, target_date: date, as_of: date) -> Optional[Decimal]:
    months = CalendarMonth.from_date(as_of).months_until(CalendarMonth.from_date(target_date))
    if months <= 0:
        return None
    rate = calculator.select_annual_rate(goal, as_of=as_of)
    return calculator.required_monthly_contribution(goal.current_amount, goal.target_amount, months, rate)


def goal_tracking_status(goal: Goal, projection: Optional[GoalProjection], *, as_of: date) -> GoalTrackingStatus:
    """
    Where a goal stands against its desired date under the projected plan.

    Checked in order: funded, no desired date, nothing allocated, then the
    projected completion month against the desired month. A target month
    already past leaves required_contribution as None.
    """
    if goal.is_completed:
        return GoalTrackingStatus(goal_id=goal.id, state="completed")

    projected_date = projection.completion_date if projection is not None else None
    target_date = goal.desired_date
    if target_date is None:
        return GoalTrackingStatus(goal_id=goal.id, state="no_target_date", projected_date=projected_date)

    if projection is None or projection.monthly_contribution <= 0:
        return GoalTrackingStatus(goal_id=goal.id, state="not_in_plan", target_date=target_date)

    contribution = projection.monthly_contribution
    if projected_date is None:
        return GoalTrackingStatus(
            goal_id=goal.id,
            state="behind",
            target_date=target_date,
            current_contribution=contribution,
            required_contribution=_required_by(goal, target_date, as_of),
        )

    diff = CalendarMonth.from_date(projected_date).months_until(CalendarMonth.from_date(target_date))
    if diff >= 0:
        return GoalTrackingStatus(
            goal_id=goal.id,
            state="on_track",
            projected_date=projected_date,
            target_date=target_date,
            months_difference=diff,
            current_contribution=contribution,
        )
    return GoalTrackingStatus(
        goal_id=goal.id,
        state="behind",
        projected_date=projected_date,
        target_date=target_date,
        months_difference=diff,
        current_contribution=contribution,
        required_contribution=_required_by(goal, target_date, as_of),
    )


def track_goals(inp: EngineInput, output: EngineOutput) -> Dict[str, GoalTrackingStatus]:
    return {
        g.id: goal_tracking_status(g, output.projection(g.id), as_of=inp.as_of)
        for g in inp.active_goals
    }
