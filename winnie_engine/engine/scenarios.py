from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from winnie_engine.core.schemas import EngineInput, FinancialProfile, Goal, Scenario
from winnie_engine.engine.planner import calculate_input
from winnie_engine.utils.engine_models import DeltaClassification, GoalProjection, ScenarioDelta
from winnie_engine.utils.logging import get_logger, scenario_id_var, set_scenario

logger = get_logger("engine.scenarios")


def classify(a: GoalProjection, b: GoalProjection) -> DeltaClassification:
    """
    How B compares to A for one goal.

    Month counts decide; completion days inside the same month never do.
    """
    ma, mb = a.months_to_complete, b.months_to_complete
    if ma is None and mb is None:
        return "unchanged"
    if ma is None:
        return "faster"
    if mb is None:
        return "slower"
    if mb < ma:
        return "faster"
    if mb > ma:
        return "slower"
    return "unchanged"


def _calculate_scenario(scenario: Scenario, goals: List[Goal], profile: FinancialProfile, as_of: date):
    token = set_scenario(scenario.id)
    try:
        return calculate_input(EngineInput(profile=profile, goals=goals, allocation=scenario.allocation, as_of=as_of))
    finally:
        scenario_id_var.reset(token)


def compare(
    scenario_a: Scenario,
    scenario_b: Scenario,
    goals: List[Goal],
    profile: FinancialProfile,
    *,
    as_of: Optional[date] = None,
) -> Dict[str, ScenarioDelta]:
    """Per-goal difference of scenario B against scenario A, both projected from the same `as_of`."""
    today = as_of or date.today()
    out_a = _calculate_scenario(scenario_a, goals, profile, today)
    out_b = _calculate_scenario(scenario_b, goals, profile, today)

    deltas: Dict[str, ScenarioDelta] = {}
    for goal_id, pa in out_a.projections.items():
        pb = out_b.projections[goal_id]

        months_delta = None
        if pa.months_to_complete is not None and pb.months_to_complete is not None:
            months_delta = pb.months_to_complete - pa.months_to_complete

        date_delta = None
        if pa.completion_month is not None and pb.completion_month is not None:
            date_delta = pa.completion_month.months_until(pb.completion_month)

        deltas[goal_id] = ScenarioDelta(
            goal_id=goal_id,
            months_a=pa.months_to_complete,
            months_b=pb.months_to_complete,
            months_delta=months_delta,
            date_delta=date_delta,
            contribution_a=pa.monthly_contribution,
            contribution_b=pb.monthly_contribution,
            classification=classify(pa, pb),
        )

    faster = sum(1 for d in deltas.values() if d.classification == "faster")
    slower = sum(1 for d in deltas.values() if d.classification == "slower")
    logger.info(
        "compared scenario %s vs %s: %d faster, %d slower, %d unchanged",
        scenario_a.id, scenario_b.id, faster, slower, len(deltas) - faster - slower,
    )
    return deltas
