"""
Debt-vs-invest comparison.

Two month-by-month paths over the same horizon and the same monthly capacity:

  payoff_first  full capacity goes to the debt until it is gone, then the
                freed capacity is invested
  invest_first  only the minimum payment goes to the debt, the rest is invested

Each month the debt accrues interest before the payment, and the invested
balance grows before the new contribution lands. Net worth at the horizon is
invested balance minus remaining debt.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from winnie_engine.core.config import SETTINGS
from winnie_engine.core.errors import InvalidInputError, NegativeRateError
from winnie_engine.utils.engine_models import (
    DebtInvestPath,
    DebtInvestPathName,
    DebtInvestRecommendation,
    DebtProfile,
    InvestmentProfile,
)
from winnie_engine.utils.logging import get_logger
from winnie_engine.utils.projection_math import _d, engine_precision, money, monthly_rate

logger = get_logger("engine.debt_vs_invest")

ZERO = Decimal(0)
MIN_PAYMENT_PRINCIPAL_SHARE = Decimal("0.01")


def _minimum_payment(debt: DebtProfile, interest: Decimal) -> Decimal:
    if debt.minimum_payment is not None:
        return debt.minimum_payment
    return interest + money(debt.balance * MIN_PAYMENT_PRINCIPAL_SHARE)


@engine_precision
def simulate_path(
    name: DebtInvestPathName,
    debt: DebtProfile,
    investment: InvestmentProfile,
    horizon_months: int,
    capacity: Decimal,
) -> DebtInvestPath:
    debt_rate = monthly_rate(debt.annual_interest_rate)
    invest_rate = monthly_rate(investment.assumed_annual_return)

    balance = _d(debt.balance)
    invested = ZERO
    interest_paid = ZERO
    debt_free_month: Optional[int] = 0 if balance <= 0 else None

    for month in range(1, horizon_months + 1):
        interest = ZERO
        if balance > 0:
            interest = money(balance * debt_rate)
            balance += interest
            interest_paid += interest

        if name == "payoff_first":
            payment = min(capacity, balance)
        else:
            payment = min(_minimum_payment(debt, interest), balance, capacity)

        balance -= payment
        if balance <= 0 and debt_free_month is None:
            debt_free_month = month

        invested = invested * (1 + invest_rate) + (capacity - payment)

    return DebtInvestPath(
        name=name,
        invested_balance=money(invested),
        remaining_debt=money(balance),
        net_worth=money(invested - balance),
        total_interest_paid=money(interest_paid),
        debt_free_month=debt_free_month,
    )


def _rationale(rec: DebtInvestPathName, diff: Decimal, threshold: Decimal, tie: bool, debt: DebtProfile, inv: InvestmentProfile) -> str:
    if tie:
        return (
            f"Both paths end within {threshold} of each other ({abs(diff)} apart); "
            "paying off the debt first is the lower-risk choice."
        )
    if rec == "invest_first":
        return (
            f"Investing at an assumed {inv.assumed_annual_return} return beats the "
            f"{debt.annual_interest_rate} debt rate by {diff} of net worth."
        )
    return (
        f"Clearing the {debt.annual_interest_rate} debt first ends {abs(diff)} ahead of "
        f"investing at an assumed {inv.assumed_annual_return} return."
    )


def compare(
    debt: DebtProfile,
    investment: InvestmentProfile,
    horizon_months: int,
    capacity: Decimal,
    *,
    materiality_threshold: Optional[Decimal] = None,
) -> DebtInvestRecommendation:
    capacity = _d(capacity)
    if debt.annual_interest_rate < 0 or investment.assumed_annual_return < 0:
        raise NegativeRateError("debt and investment rates cannot be negative")
    if horizon_months <= 0:
        raise InvalidInputError(f"horizon_months must be positive (got {horizon_months})")
    if capacity < 0:
        raise InvalidInputError(f"monthly capacity cannot be negative (got {capacity})")

    threshold = SETTINGS.debt_invest_materiality if materiality_threshold is None else _d(materiality_threshold)

    payoff = simulate_path("payoff_first", debt, investment, horizon_months, capacity)
    invest = simulate_path("invest_first", debt, investment, horizon_months, capacity)
    diff = invest.net_worth - payoff.net_worth

    tie = abs(diff) < threshold
    recommended: DebtInvestPathName
    if tie or diff < 0:
        recommended = "payoff_first"
    else:
        recommended = "invest_first"

    logger.info(
        "debt vs invest over %d months: payoff_first=%s invest_first=%s -> %s%s",
        horizon_months, payoff.net_worth, invest.net_worth, recommended, " (tie-break)" if tie else "",
    )
    return DebtInvestRecommendation(
        recommended=recommended,
        payoff_first=payoff,
        invest_first=invest,
        net_worth_difference=diff,
        materiality_threshold=threshold,
        is_tie_break=tie,
        horizon_months=horizon_months,
        rationale=_rationale(recommended, diff, threshold, tie, debt, investment),
    )
