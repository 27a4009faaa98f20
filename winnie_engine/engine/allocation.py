from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from winnie_engine.core.errors import UnknownGoalError
from winnie_engine.core.schemas import Allocation, Goal
from winnie_engine.utils.engine_models import AllocationStatus
from winnie_engine.utils.logging import get_logger
from winnie_engine.utils.projection_math import _d

logger = get_logger("engine.allocation")


def validate(allocation: Allocation, savings_pool: Decimal) -> AllocationStatus:
    """
    Describe how an allocation sits against the savings pool.

    Over-allocation is reported, not rejected: couples draft plans they
    can't fund yet to talk them through.
    """
    pool = _d(savings_pool)
    total = allocation.total_allocated
    over = total > pool

    status = AllocationStatus(
        savings_pool=pool,
        total_allocated=total,
        remaining=max(pool - total, Decimal("0")),
        over_amount=max(total - pool, Decimal("0")),
        is_over_allocated=over,
    )
    if over:
        logger.info("allocation over savings pool by %s (pool=%s total=%s)", status.over_amount, pool, total)
    return status


def check_goal_references(allocation: Allocation, goals: Iterable[Goal]) -> None:
    """Raise UnknownGoalError if the allocation names a goal that isn't in the snapshot."""
    known = {g.id for g in goals}
    for goal_id in allocation.goal_ids:
        if goal_id not in known:
            raise UnknownGoalError(goal_id)
