"""
Engine entry points.

Every function here is a pure mapping from an immutable snapshot to a fresh
result: no caching, no I/O, no shared state. Hosts call them explicitly when
they want numbers (e.g. after a debounced slider change).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from winnie_engine.core.errors import TargetDateInPastError
from winnie_engine.core.schemas import Allocation, EngineInput, FinancialProfile, Goal, Scenario
from winnie_engine.engine import allocation as allocation_engine
from winnie_engine.engine import calculator
from winnie_engine.engine import debt_vs_invest, scenarios, stress_test, tracking, windfall
from winnie_engine.engine.planner import calculate_input
from winnie_engine.utils.calendar_month import CalendarMonth
from winnie_engine.utils.engine_models import (
    AllocationStatus,
    DebtInvestRecommendation,
    DebtProfile,
    EngineOutput,
    GoalTrackingStatus,
    InvestmentProfile,
    ScenarioDelta,
    StressEvent,
    StressSuiteResult,
    StressTestResult,
    WindfallResult,
    WindfallStrategy,
)
from winnie_engine.utils.logging import get_logger

logger = get_logger("engine")

__all__ = [
    "calculate",
    "calculate_input",
    "required_monthly_contribution",
    "validate_allocation",
    "compare_scenarios",
    "simulate_stress_event",
    "run_stress_suite",
    "simulate_windfall",
    "compare_debt_vs_invest",
    "simulate_allocation_change",
    "track_goals",
]


def calculate(
    profile: FinancialProfile,
    goals: List[Goal],
    allocation: Allocation,
    *,
    as_of: Optional[date] = None,
    horizon_cap: Optional[int] = None,
) -> EngineOutput:
    inp = EngineInput(profile=profile, goals=goals, allocation=allocation, as_of=as_of or date.today())
    return calculate_input(inp, horizon_cap=horizon_cap)


def required_monthly_contribution(
    goal: Goal,
    target_date: date,
    profile: Optional[FinancialProfile] = None,
    *,
    as_of: Optional[date] = None,
) -> Optional[Decimal]:
    """
    Monthly amount that finishes `goal` in the calendar month of `target_date`.

    Returns 0 for a funded goal and None when the target month is the
    current month. A target month already in the past is a caller error.
    """
    today = as_of or date.today()
    months = CalendarMonth.from_date(today).months_until(CalendarMonth.from_date(target_date))
    if months < 0:
        raise TargetDateInPastError(f"target date {target_date.isoformat()} is before {today.isoformat()}")
    if goal.is_completed:
        return Decimal("0")

    rate = calculator.select_annual_rate(goal, as_of=today)
    required = calculator.required_monthly_contribution(goal.current_amount, goal.target_amount, months, rate)
    if required is not None and profile is not None and required > profile.savings_pool:
        logger.info(
            "goal=%s needs %s/mo by %s, more than the savings pool %s",
            goal.id, required, target_date.isoformat(), profile.savings_pool,
        )
    return required


def validate_allocation(allocation: Allocation, profile: FinancialProfile) -> AllocationStatus:
    return allocation_engine.validate(allocation, profile.savings_pool)


def compare_scenarios(
    scenario_a: Scenario,
    scenario_b: Scenario,
    goals: List[Goal],
    profile: FinancialProfile,
    *,
    as_of: Optional[date] = None,
) -> Dict[str, ScenarioDelta]:
    return scenarios.compare(scenario_a, scenario_b, goals, profile, as_of=as_of)


def simulate_stress_event(inp: EngineInput, event: StressEvent) -> StressTestResult:
    return stress_test.simulate(inp, event)


def run_stress_suite(inp: EngineInput, events: Sequence[StressEvent]) -> StressSuiteResult:
    return stress_test.run_suite(inp, events)


def simulate_windfall(inp: EngineInput, amount: Decimal, strategy: WindfallStrategy) -> WindfallResult:
    return windfall.apply(inp, amount, strategy)


def compare_debt_vs_invest(
    debt: DebtProfile,
    investment: InvestmentProfile,
    horizon_months: int,
    capacity: Decimal,
    *,
    materiality_threshold: Optional[Decimal] = None,
) -> DebtInvestRecommendation:
    return debt_vs_invest.compare(
        debt, investment, horizon_months, capacity, materiality_threshold=materiality_threshold
    )


def simulate_allocation_change(goal_id: str, new_amount: Decimal, inp: EngineInput) -> EngineOutput:
    """Recalculate with one goal's monthly amount replaced (negative clamps to 0)."""
    changed = inp.model_copy(update={"allocation": inp.allocation.with_amount(goal_id, new_amount)})
    return calculate_input(changed)


def track_goals(inp: EngineInput, output: Optional[EngineOutput] = None) -> Dict[str, GoalTrackingStatus]:
    """Tracking status of every active goal; reuses `output` when the caller already has one."""
    return tracking.track_goals(inp, output if output is not None else calculate_input(inp))
