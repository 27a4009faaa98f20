from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, condecimal, conint
from pydantic.config import ConfigDict

from winnie_engine.utils.calendar_month import CalendarMonth


# -------------------------
# Projections
# -------------------------

class GoalProjection(BaseModel):
    model_config = ConfigDict(frozen=True)

    goal_id: str
    months_to_complete: Optional[int] = None
    completion_date: Optional[date] = None
    projected_final_value: Decimal
    projected_final_value_real: Decimal
    monthly_contribution: Decimal
    annual_rate: Decimal
    is_reachable: bool

    @property
    def completion_month(self) -> Optional[CalendarMonth]:
        if self.completion_date is None:
            return None
        return CalendarMonth.from_date(self.completion_date)

    @property
    def time_to_completion_text(self) -> str:
        months = self.months_to_complete
        if months is None:
            return "50+ years"
        if months == 0:
            return "Complete!"

        years, rem = divmod(months, 12)
        if years == 0:
            return f"{rem} month{'' if rem == 1 else 's'}"
        if rem == 0:
            return f"{years} year{'' if years == 1 else 's'}"
        return f"{years}y {rem}m"


WarningCode = Literal["OVER_ALLOCATED", "NEGATIVE_DISPOSABLE", "NO_CONTRIBUTION", "GOAL_UNREACHABLE"]


class EngineWarning(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: WarningCode
    message: str
    goal_id: Optional[str] = None
    amount: Optional[Decimal] = None

    @property
    def is_blocker(self) -> bool:
        return self.code in ("OVER_ALLOCATED", "NEGATIVE_DISPOSABLE")


class EngineOutput(BaseModel):
    model_config = ConfigDict(frozen=True)

    projections: Dict[str, GoalProjection] = Field(default_factory=dict)
    total_allocated: Decimal
    remaining_disposable: Decimal
    warnings: List[EngineWarning] = Field(default_factory=list)
    as_of: date

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def projection(self, goal_id: str) -> Optional[GoalProjection]:
        return self.projections.get(goal_id)

    @property
    def projections_by_completion_date(self) -> List[GoalProjection]:
        """Soonest first; unreachable goals last."""
        return sorted(
            self.projections.values(),
            key=lambda p: (p.completion_date is None, p.completion_date or date.max),
        )


# -------------------------
# Allocation / scenarios
# -------------------------

class AllocationStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    savings_pool: Decimal
    total_allocated: Decimal
    remaining: Decimal
    over_amount: Decimal
    is_over_allocated: bool


DeltaClassification = Literal["faster", "slower", "unchanged"]


class ScenarioDelta(BaseModel):
    """Scenario B relative to scenario A for one goal."""

    model_config = ConfigDict(frozen=True)

    goal_id: str
    months_a: Optional[int] = None
    months_b: Optional[int] = None
    months_delta: Optional[int] = Field(None, description="months_b - months_a; negative = B is faster")
    date_delta: Optional[int] = Field(None, description="calendar months between completion dates (B - A)")
    contribution_a: Decimal
    contribution_b: Decimal
    classification: DeltaClassification


# -------------------------
# Stress testing
# -------------------------

class JobLoss(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["job_loss"] = "job_loss"
    months: conint(ge=0)


class MarketCorrection(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["market_correction"] = "market_correction"
    percent: condecimal(ge=0, le=1) = Field(..., description="Fractional drawdown, e.g. 0.20 for -20%")


class UnexpectedExpense(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["unexpected_expense"] = "unexpected_expense"
    amount: condecimal(ge=0)
    # None -> highest-priority active emergency fund goal
    goal_id: Optional[str] = None


StressEvent = Annotated[Union[JobLoss, MarketCorrection, UnexpectedExpense], Field(discriminator="kind")]


class StressDelta(BaseModel):
    model_config = ConfigDict(frozen=True)

    goal_id: str
    baseline_months: Optional[int] = None
    stressed_months: Optional[int] = None
    months_delta: Optional[int] = None
    became_unreachable: bool = False


class StressTestResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    event: StressEvent
    deltas: Dict[str, StressDelta] = Field(default_factory=dict)
    resilience_score: Decimal = Field(..., description="0-100; 100 = no goal delayed")
    current_savings_after: Decimal


class StressSuiteResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    results: List[StressTestResult] = Field(default_factory=list)
    resilience_score: Decimal


# -------------------------
# Windfalls
# -------------------------

class AllToSingleGoal(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["all_to_single_goal"] = "all_to_single_goal"
    goal_id: str


class ProportionalSplit(BaseModel):
    """Split in proportion to each under-target goal's remaining amount."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["proportional_split"] = "proportional_split"


class EqualSplit(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["equal_split"] = "equal_split"


class CustomMap(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["custom_map"] = "custom_map"
    amounts: Dict[str, condecimal(ge=0)] = Field(default_factory=dict)


WindfallStrategy = Annotated[
    Union[AllToSingleGoal, ProportionalSplit, EqualSplit, CustomMap], Field(discriminator="kind")
]


class WindfallDelta(BaseModel):
    model_config = ConfigDict(frozen=True)

    goal_id: str
    amount_applied: Decimal
    spillover_received: Decimal = Decimal("0")
    baseline_months: Optional[int] = None
    new_months: Optional[int] = None
    months_saved: Optional[int] = None
    newly_reachable: bool = False


class WindfallResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategy: WindfallStrategy
    amount: Decimal
    deltas: Dict[str, WindfallDelta] = Field(default_factory=dict)
    unallocated: Decimal = Decimal("0")


# -------------------------
# Debt vs invest
# -------------------------

class DebtProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    balance: condecimal(ge=0)
    annual_interest_rate: Decimal
    # None -> interest + 1% of the starting balance
    minimum_payment: Optional[condecimal(ge=0)] = None


class InvestmentProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    assumed_annual_return: Decimal


DebtInvestPathName = Literal["payoff_first", "invest_first"]


class DebtInvestPath(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: DebtInvestPathName
    invested_balance: Decimal
    remaining_debt: Decimal
    net_worth: Decimal
    total_interest_paid: Decimal
    debt_free_month: Optional[int] = None  # 1-based month the debt hit zero


class DebtInvestRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    recommended: DebtInvestPathName
    payoff_first: DebtInvestPath
    invest_first: DebtInvestPath
    net_worth_difference: Decimal = Field(..., description="invest_first - payoff_first")
    materiality_threshold: Decimal
    is_tie_break: bool
    horizon_months: int
    rationale: str


# -------------------------
# Goal tracking
# -------------------------

TrackingState = Literal["completed", "no_target_date", "not_in_plan", "on_track", "behind"]


class GoalTrackingStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    goal_id: str
    state: TrackingState
    projected_date: Optional[date] = None
    target_date: Optional[date] = None
    # positive = early, negative = late; None when not tracked or unreachable
    months_difference: Optional[int] = None
    current_contribution: Decimal = Decimal("0")
    required_contribution: Optional[Decimal] = None

    @property
    def is_actionable(self) -> bool:
        return self.state == "behind"

    @property
    def is_tracked_by_plan(self) -> bool:
        return self.state in ("on_track", "behind")

    @property
    def label(self) -> str:
        return {
            "completed": "Complete",
            "no_target_date": "No Target Date",
            "not_in_plan": "Not in Plan",
            "on_track": "On Track",
            "behind": "Behind",
        }[self.state]
