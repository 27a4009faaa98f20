"""
Windfall allocation: spread a one-time lump sum over goals and report how many
months each affected goal saves.

Spillover policy: a goal never receives more than it still needs. Whatever
would push it past its target is carried forward, in priority order, to the
next goal that is still under target. Anything left once every goal is full
is returned as `unallocated`.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional, assert_never

from winnie_engine.core.errors import InvalidInputError, UnknownGoalError
from winnie_engine.core.schemas import EngineInput, Goal
from winnie_engine.engine.planner import calculate_input
from winnie_engine.utils.engine_models import (
    AllToSingleGoal,
    CustomMap,
    EqualSplit,
    ProportionalSplit,
    WindfallDelta,
    WindfallResult,
    WindfallStrategy,
)
from winnie_engine.utils.logging import get_logger
from winnie_engine.utils.projection_math import _d, money_down

logger = get_logger("engine.windfall")

ZERO = Decimal(0)


def _by_priority(goals: List[Goal]) -> List[Goal]:
    # sorted() is stable, so equal priorities keep snapshot order
    return sorted((g for g in goals if g.is_active), key=lambda g: g.priority)


def _require_active(inp: EngineInput, goal_id: str) -> Goal:
    goal = inp.goal_by_id(goal_id)
    if goal is None:
        raise UnknownGoalError(goal_id, context="windfall")
    if not goal.is_active:
        raise InvalidInputError(f"windfall targets inactive goal {goal_id!r}")
    return goal


def _split_with_remainder(amount: Decimal, weights: Dict[str, Decimal]) -> Dict[str, Decimal]:
    """Cent-rounded shares proportional to weights; leftover cents go to the first key."""
    total_weight = sum(weights.values(), ZERO)
    if total_weight <= 0:
        return {}
    shares = {gid: money_down(amount * w / total_weight) for gid, w in weights.items()}
    leftover = amount - sum(shares.values(), ZERO)
    first = next(iter(shares))
    shares[first] += leftover
    return shares


def initial_shares(inp: EngineInput, amount: Decimal, strategy: WindfallStrategy) -> Dict[str, Decimal]:
    """Amount each goal is offered before the target cap and spillover are applied."""
    ordered = _by_priority(inp.goals)
    under_target = [g for g in ordered if not g.is_completed]

    if isinstance(strategy, AllToSingleGoal):
        goal = _require_active(inp, strategy.goal_id)
        return {goal.id: amount}

    if isinstance(strategy, ProportionalSplit):
        return _split_with_remainder(amount, {g.id: g.remaining_amount for g in under_target})

    if isinstance(strategy, EqualSplit):
        return _split_with_remainder(amount, {g.id: Decimal(1) for g in under_target})

    if isinstance(strategy, CustomMap):
        for goal_id in strategy.amounts:
            _require_active(inp, goal_id)
        requested = sum(strategy.amounts.values(), ZERO)
        if requested > amount:
            raise InvalidInputError(f"custom windfall split totals {requested}, more than the {amount} available")
        return dict(strategy.amounts)

    assert_never(strategy)


def distribute(goals: List[Goal], shares: Dict[str, Decimal]) -> tuple[Dict[str, Decimal], Dict[str, Decimal], Decimal]:
    """
    Apply shares with the cap-and-carry rule.

    Returns (applied per goal, spillover received per goal, unallocated).
    """
    ordered = _by_priority(goals)
    applied: Dict[str, Decimal] = {g.id: ZERO for g in ordered}
    spill: Dict[str, Decimal] = {g.id: ZERO for g in ordered}

    carry = ZERO
    for g in ordered:
        own = shares.get(g.id, ZERO)
        room = g.remaining_amount
        take_own = min(own, room)
        take_carry = min(carry, room - take_own)
        applied[g.id] = take_own + take_carry
        spill[g.id] = take_carry
        carry = carry - take_carry + (own - take_own)

    # Overflow from the lowest-priority goals wraps to anything still short.
    if carry > 0:
        for g in ordered:
            room = g.remaining_amount - applied[g.id]
            if room <= 0:
                continue
            take = min(carry, room)
            applied[g.id] += take
            spill[g.id] += take
            carry -= take
            if carry <= 0:
                break

    return applied, spill, carry


def apply(
    inp: EngineInput,
    amount: Decimal,
    strategy: WindfallStrategy,
    *,
    horizon_cap: Optional[int] = None,
) -> WindfallResult:
    amount = _d(amount)
    if amount < 0:
        raise InvalidInputError(f"windfall amount cannot be negative (got {amount})")

    shares = initial_shares(inp, amount, strategy)
    assigned = sum(shares.values(), ZERO)
    applied, spill, carry = distribute(inp.goals, shares)
    unallocated = carry + (amount - assigned)

    baseline = calculate_input(inp, horizon_cap=horizon_cap).projections
    boosted_goals = [
        g.with_current_amount(g.current_amount + applied.get(g.id, ZERO)) for g in inp.goals
    ]
    boosted = calculate_input(inp.with_goals(boosted_goals), horizon_cap=horizon_cap).projections

    deltas: Dict[str, WindfallDelta] = {}
    for goal_id, amt in applied.items():
        if amt <= 0:
            continue
        before = baseline[goal_id].months_to_complete
        after = boosted[goal_id].months_to_complete
        saved = before - after if before is not None and after is not None else None
        deltas[goal_id] = WindfallDelta(
            goal_id=goal_id,
            amount_applied=amt,
            spillover_received=spill[goal_id],
            baseline_months=before,
            new_months=after,
            months_saved=saved,
            newly_reachable=before is None and after is not None,
        )

    logger.info(
        "windfall %s via %s: %d goals affected, unallocated=%s",
        amount, strategy.kind, len(deltas), unallocated,
    )
    return WindfallResult(strategy=strategy, amount=amount, deltas=deltas, unallocated=unallocated)
