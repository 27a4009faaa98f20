from __future__ import annotations

from typing import Dict, List, Optional

from winnie_engine.core.schemas import EngineInput
from winnie_engine.engine import allocation as allocation_engine
from winnie_engine.engine import calculator
from winnie_engine.utils.engine_models import EngineOutput, EngineWarning, GoalProjection
from winnie_engine.utils.logging import get_logger

logger = get_logger("engine.planner")


def calculate_input(inp: EngineInput, *, horizon_cap: Optional[int] = None) -> EngineOutput:
    """Project every active goal in the snapshot under its allocation."""
    allocation_engine.check_goal_references(inp.allocation, inp.goals)

    profile = inp.profile
    total = inp.allocation.total_allocated
    pool = profile.savings_pool
    warnings: List[EngineWarning] = []

    if profile.monthly_income < profile.monthly_expenses:
        warnings.append(EngineWarning(code="NEGATIVE_DISPOSABLE", message="Expenses exceed income"))

    status = allocation_engine.validate(inp.allocation, pool)
    if status.is_over_allocated:
        warnings.append(
            EngineWarning(
                code="OVER_ALLOCATED",
                message=f"Over-allocated by ${status.over_amount}",
                amount=status.over_amount,
            )
        )

    projections: Dict[str, GoalProjection] = {}
    for goal in inp.active_goals:
        contribution = inp.allocation.amount_for(goal.id)
        label = goal.name or goal.type.display_name
        if contribution <= 0:
            warnings.append(
                EngineWarning(
                    code="NO_CONTRIBUTION",
                    message=f"No monthly contribution set for {label}",
                    goal_id=goal.id,
                )
            )

        proj = calculator.project_goal(goal, contribution, as_of=inp.as_of, horizon_cap=horizon_cap)
        projections[goal.id] = proj

        if not proj.is_reachable:
            warnings.append(
                EngineWarning(
                    code="GOAL_UNREACHABLE",
                    message=f"{label} may take over 50 years to reach",
                    goal_id=goal.id,
                )
            )

    logger.info(
        "calculated %d projections (allocated=%s pool=%s warnings=%d)",
        len(projections), total, pool, len(warnings),
    )
    return EngineOutput(
        projections=projections,
        total_allocated=total,
        remaining_disposable=status.remaining,
        warnings=warnings,
        as_of=inp.as_of,
    )
