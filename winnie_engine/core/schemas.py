from __future__ import annotations

from datetime import date, datetime, UTC
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, condecimal, field_validator
from pydantic.config import ConfigDict


# -------------------------
# Goal taxonomy
# -------------------------

class GoalType(str, Enum):
    HOUSE = "house"
    RETIREMENT = "retirement"
    VACATION = "vacation"
    EMERGENCY_FUND = "emergencyFund"
    BABY_FAMILY = "babyFamily"
    DEBT = "debt"
    CAR = "car"
    EDUCATION = "education"
    HOBBY = "hobby"
    FITNESS = "fitness"
    GIFT = "gift"
    HOME_IMPROVEMENT = "homeImprovement"
    INVESTMENT = "investment"
    CHARITY = "charity"
    CUSTOM = "custom"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def default_annual_return_rate(self) -> Decimal:
        """
        Default annual return for money saved toward this goal type.

        Savings-account rates for near-term goals, blended rates for
        education/family, real stock-market return for retirement/investment,
        and zero for debt payoff (paying down, not earning).
        """
        return _DEFAULT_RATES[self]

    @property
    def is_long_term_goal(self) -> bool:
        return self in _LONG_TERM_TYPES


_DISPLAY_NAMES: Dict[GoalType, str] = {
    GoalType.HOUSE: "House",
    GoalType.RETIREMENT: "Retirement",
    GoalType.VACATION: "Vacation",
    GoalType.EMERGENCY_FUND: "Emergency Fund",
    GoalType.BABY_FAMILY: "Baby & Family",
    GoalType.DEBT: "Debt Payoff",
    GoalType.CAR: "Vehicle",
    GoalType.EDUCATION: "Education",
    GoalType.HOBBY: "Hobby & Recreation",
    GoalType.FITNESS: "Health & Fitness",
    GoalType.GIFT: "Gift & Celebration",
    GoalType.HOME_IMPROVEMENT: "Home Improvement",
    GoalType.INVESTMENT: "Investment",
    GoalType.CHARITY: "Charitable Giving",
    GoalType.CUSTOM: "Custom Goal",
}

_DEFAULT_RATES: Dict[GoalType, Decimal] = {
    GoalType.HOUSE: Decimal("0.045"),
    GoalType.RETIREMENT: Decimal("0.07"),
    GoalType.VACATION: Decimal("0.04"),
    GoalType.EMERGENCY_FUND: Decimal("0.045"),
    GoalType.BABY_FAMILY: Decimal("0.05"),
    GoalType.DEBT: Decimal("0"),
    GoalType.CAR: Decimal("0.04"),
    GoalType.EDUCATION: Decimal("0.05"),
    GoalType.HOBBY: Decimal("0.04"),
    GoalType.FITNESS: Decimal("0.04"),
    GoalType.GIFT: Decimal("0.035"),
    GoalType.HOME_IMPROVEMENT: Decimal("0.04"),
    GoalType.INVESTMENT: Decimal("0.07"),
    GoalType.CHARITY: Decimal("0.035"),
    GoalType.CUSTOM: Decimal("0.05"),
}

_LONG_TERM_TYPES = frozenset(
    {GoalType.RETIREMENT, GoalType.BABY_FAMILY, GoalType.EDUCATION, GoalType.INVESTMENT}
)


# -------------------------
# Household inputs
# -------------------------

class FinancialProfile(BaseModel):
    """Shared financial baseline for a couple (monthly, after tax)."""

    model_config = ConfigDict(frozen=True)

    monthly_income: condecimal(ge=0) = Decimal("0")
    monthly_needs: condecimal(ge=0) = Decimal("0")
    monthly_wants: condecimal(ge=0) = Decimal("0")
    current_savings: condecimal(ge=0) = Decimal("0")
    retirement_balance: Optional[condecimal(ge=0)] = None
    direct_savings_pool: Optional[condecimal(ge=0)] = None

    @property
    def monthly_expenses(self) -> Decimal:
        return self.monthly_needs + self.monthly_wants

    @property
    def savings_pool(self) -> Decimal:
        if self.direct_savings_pool is not None and self.direct_savings_pool > 0:
            return self.direct_savings_pool
        return max(self.monthly_income - self.monthly_needs - self.monthly_wants, Decimal("0"))

    @property
    def has_disposable_income(self) -> bool:
        return self.savings_pool > 0


class Goal(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: GoalType = GoalType.CUSTOM
    name: str = ""
    target_amount: condecimal(gt=0)
    current_amount: condecimal(ge=0) = Decimal("0")
    desired_date: Optional[date] = None
    custom_return_rate: Optional[condecimal(ge=0)] = None
    priority: int = 0  # lower number = higher priority
    is_active: bool = True
    # None -> inferred from the goal type (long-term types are invested)
    market_invested: Optional[bool] = None
    notes: Optional[str] = None

    @property
    def effective_return_rate(self) -> Decimal:
        if self.custom_return_rate is not None:
            return self.custom_return_rate
        return self.type.default_annual_return_rate

    @property
    def is_market_invested(self) -> bool:
        if self.market_invested is not None:
            return self.market_invested
        return self.type.is_long_term_goal

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.target_amount - self.current_amount, Decimal("0"))

    @property
    def is_completed(self) -> bool:
        return self.current_amount >= self.target_amount

    @property
    def progress_percentage(self) -> Decimal:
        """Progress in [0, 1]."""
        return min(self.current_amount / self.target_amount, Decimal("1"))

    def with_current_amount(self, amount: Decimal) -> "Goal":
        return self.model_copy(update={"current_amount": max(amount, Decimal("0"))})


class Allocation(BaseModel):
    """goal_id -> monthly amount. Goals missing from the map get 0."""

    model_config = ConfigDict(frozen=True)

    amounts: Dict[str, condecimal(ge=0)] = Field(default_factory=dict)

    def amount_for(self, goal_id: str) -> Decimal:
        return self.amounts.get(goal_id, Decimal("0"))

    @property
    def total_allocated(self) -> Decimal:
        return sum(self.amounts.values(), Decimal("0"))

    @property
    def goal_ids(self) -> List[str]:
        return list(self.amounts.keys())

    @property
    def allocated_goal_count(self) -> int:
        return len([a for a in self.amounts.values() if a > 0])

    @property
    def has_allocations(self) -> bool:
        return bool(self.amounts) and self.total_allocated > 0

    def with_amount(self, goal_id: str, amount: Decimal) -> "Allocation":
        updated = dict(self.amounts)
        updated[goal_id] = max(Decimal(str(amount)), Decimal("0"))
        return Allocation(amounts=updated)


class DecisionStatus(str, Enum):
    DRAFT = "draft"
    UNDER_REVIEW = "underReview"
    DECIDED = "decided"
    ARCHIVED = "archived"


class Scenario(BaseModel):
    """A saved what-if allocation. Owned by the persistence layer; read-only here."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    allocation: Allocation = Field(default_factory=Allocation)
    notes: Optional[str] = None
    is_active: bool = False
    decision_status: DecisionStatus = DecisionStatus.DRAFT
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    last_modified: datetime = Field(default_factory=lambda: datetime.now(UTC))
    created_by: str = ""

    @property
    def is_editable(self) -> bool:
        return self.decision_status in (DecisionStatus.DRAFT, DecisionStatus.UNDER_REVIEW)

    @property
    def awaiting_partner_review(self) -> bool:
        return self.decision_status == DecisionStatus.UNDER_REVIEW


class EngineInput(BaseModel):
    """
    One immutable snapshot for a calculation.

    `as_of` is the caller's "now"; pass it explicitly when results must be
    reproducible across calls.
    """

    model_config = ConfigDict(frozen=True)

    profile: FinancialProfile
    goals: List[Goal] = Field(default_factory=list)
    allocation: Allocation = Field(default_factory=Allocation)
    as_of: date = Field(default_factory=date.today)

    @field_validator("goals")
    @classmethod
    def _unique_goal_ids(cls, goals: List[Goal]) -> List[Goal]:
        seen = set()
        for g in goals:
            if g.id in seen:
                raise ValueError(f"duplicate goal id: {g.id}")
            seen.add(g.id)
        return goals

    @property
    def active_goals(self) -> List[Goal]:
        return [g for g in self.goals if g.is_active]

    def goal_by_id(self, goal_id: str) -> Optional[Goal]:
        for g in self.goals:
            if g.id == goal_id:
                return g
        return None

    def with_goals(self, goals: List[Goal]) -> "EngineInput":
        return self.model_copy(update={"goals": goals})


# -------------------------
# Errors
# -------------------------

class ErrorEnvelope(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    retriable: bool = False
