"""
Stress testing: apply one adverse event to a snapshot and measure how much
later each goal completes.

    JobLoss(n)            contributions pause for n months, balances keep compounding
    MarketCorrection(p)   market-invested goals lose p of their balance at time zero
    UnexpectedExpense(x)  x comes out of savings and the affected goal, floored at 0

The resilience score is 100 * (1 - mean delay / horizon cap) over goals that
were reachable before the event; a goal pushed past the cap counts as a full
cap of delay.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple, assert_never

from winnie_engine.core.config import SETTINGS
from winnie_engine.core.errors import UnknownGoalError
from winnie_engine.core.schemas import EngineInput, Goal, GoalType
from winnie_engine.engine import calculator
from winnie_engine.engine.planner import calculate_input
from winnie_engine.utils.engine_models import (
    GoalProjection,
    JobLoss,
    MarketCorrection,
    StressDelta,
    StressEvent,
    StressSuiteResult,
    StressTestResult,
    UnexpectedExpense,
)
from winnie_engine.utils.logging import get_logger

logger = get_logger("engine.stress_test")

HUNDRED = Decimal(100)
SCORE_QUANT = Decimal("0.01")


def _emergency_fund(goals: Sequence[Goal]) -> Optional[Goal]:
    funds = [g for g in goals if g.is_active and g.type == GoalType.EMERGENCY_FUND]
    if not funds:
        return None
    return min(funds, key=lambda g: g.priority)


def _apply_expense(inp: EngineInput, event: UnexpectedExpense) -> Tuple[EngineInput, Decimal]:
    profile = inp.profile
    savings_after = max(profile.current_savings - event.amount, Decimal("0"))
    stressed = inp.model_copy(update={"profile": profile.model_copy(update={"current_savings": savings_after})})

    if event.goal_id is not None:
        target = inp.goal_by_id(event.goal_id)
        if target is None:
            raise UnknownGoalError(event.goal_id, context="unexpected expense")
    else:
        target = _emergency_fund(inp.goals)

    if target is not None:
        goals = [
            g.with_current_amount(g.current_amount - event.amount) if g.id == target.id else g
            for g in inp.goals
        ]
        stressed = stressed.with_goals(goals)
    return stressed, savings_after


def _stressed_projections(inp: EngineInput, event: StressEvent, cap: int) -> Tuple[Dict[str, GoalProjection], Decimal]:
    if isinstance(event, JobLoss):
        projections = {
            g.id: calculator.project_goal(
                g,
                inp.allocation.amount_for(g.id),
                as_of=inp.as_of,
                horizon_cap=cap,
                contribution_start_offset=event.months,
            )
            for g in inp.active_goals
        }
        return projections, inp.profile.current_savings

    if isinstance(event, MarketCorrection):
        keep = Decimal(1) - event.percent
        goals = [g.with_current_amount(g.current_amount * keep) if g.is_market_invested else g for g in inp.goals]
        return calculate_input(inp.with_goals(goals), horizon_cap=cap).projections, inp.profile.current_savings

    if isinstance(event, UnexpectedExpense):
        stressed, savings_after = _apply_expense(inp, event)
        return calculate_input(stressed, horizon_cap=cap).projections, savings_after

    assert_never(event)


def resilience_score(deltas: Dict[str, StressDelta], cap: int) -> Decimal:
    delays: List[int] = []
    for d in deltas.values():
        if d.baseline_months is None:
            continue
        if d.stressed_months is None:
            delays.append(cap)
        else:
            delays.append(min(max(d.stressed_months - d.baseline_months, 0), cap))
    if not delays:
        return HUNDRED.quantize(SCORE_QUANT)

    lost = Decimal(sum(delays)) / (Decimal(cap) * len(delays))
    return (HUNDRED * (Decimal(1) - lost)).quantize(SCORE_QUANT)


def simulate(inp: EngineInput, event: StressEvent, *, horizon_cap: Optional[int] = None) -> StressTestResult:
    cap = SETTINGS.horizon_cap_months if horizon_cap is None else int(horizon_cap)
    baseline = calculate_input(inp, horizon_cap=cap).projections
    stressed, savings_after = _stressed_projections(inp, event, cap)

    deltas: Dict[str, StressDelta] = {}
    for goal_id, base in baseline.items():
        after = stressed[goal_id]
        months_delta = None
        if base.months_to_complete is not None and after.months_to_complete is not None:
            months_delta = after.months_to_complete - base.months_to_complete
        deltas[goal_id] = StressDelta(
            goal_id=goal_id,
            baseline_months=base.months_to_complete,
            stressed_months=after.months_to_complete,
            months_delta=months_delta,
            became_unreachable=base.is_reachable and not after.is_reachable,
        )

    score = resilience_score(deltas, cap)
    logger.info("stress event %s: resilience=%s", event.kind, score)
    return StressTestResult(
        event=event,
        deltas=deltas,
        resilience_score=score,
        current_savings_after=savings_after,
    )


def run_suite(inp: EngineInput, events: Sequence[StressEvent], *, horizon_cap: Optional[int] = None) -> StressSuiteResult:
    """Run several events independently against the same baseline; the suite score is their mean."""
    results = [simulate(inp, e, horizon_cap=horizon_cap) for e in events]
    if not results:
        return StressSuiteResult(results=[], resilience_score=HUNDRED.quantize(SCORE_QUANT))
    mean = sum((r.resilience_score for r in results), Decimal(0)) / len(results)
    return StressSuiteResult(results=results, resilience_score=mean.quantize(SCORE_QUANT))
