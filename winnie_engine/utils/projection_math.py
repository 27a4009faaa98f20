"""
Time-value-of-money primitives on Decimal.

Monthly compounding with r = annual_rate / 12 and end-of-month contributions:

    FV(n) = C*(1+r)^n + P*((1+r)^n - 1)/r     (r > 0)
    FV(n) = C + P*n                           (r = 0)
"""

from __future__ import annotations

import functools
from decimal import Decimal, ROUND_CEILING, ROUND_DOWN, ROUND_HALF_UP, ROUND_UP, localcontext
from typing import Optional

from winnie_engine.core.config import SETTINGS
from winnie_engine.core.errors import NegativeRateError


ZERO = Decimal(0)
ONE = Decimal(1)
TWELVE = Decimal(12)


def engine_precision(fn):
    """Run fn under DECIMAL_PRECISION in a context local to the calling thread."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        with localcontext(prec=SETTINGS.decimal_precision):
            return fn(*args, **kwargs)

    return wrapper


def _d(x) -> Decimal:
    if isinstance(x, Decimal):
        return x
    return Decimal(str(x))


def _cents() -> Decimal:
    return Decimal(1).scaleb(-SETTINGS.currency_decimals)


def money(x: Decimal) -> Decimal:
    """Round to currency precision, half-up."""
    return _d(x).quantize(_cents(), rounding=ROUND_HALF_UP)


def money_up(x: Decimal) -> Decimal:
    """Round up to currency precision (used for contributions that must suffice)."""
    return _d(x).quantize(_cents(), rounding=ROUND_UP)


def money_down(x: Decimal) -> Decimal:
    return _d(x).quantize(_cents(), rounding=ROUND_DOWN)


def monthly_rate(annual_rate: Decimal) -> Decimal:
    annual_rate = _d(annual_rate)
    if annual_rate < 0:
        raise NegativeRateError(f"annual rate cannot be negative (got {annual_rate})")
    return annual_rate / TWELVE


@engine_precision
def future_value(current: Decimal, monthly: Decimal, annual_rate: Decimal, n_months: int) -> Decimal:
    current = _d(current)
    monthly = _d(monthly)
    if n_months <= 0:
        return current

    mr = monthly_rate(annual_rate)
    if mr == 0:
        return current + monthly * n_months

    growth = (ONE + mr) ** n_months
    return current * growth + monthly * (growth - ONE) / mr


@engine_precision
def months_to_reach_target(
    current: Decimal,
    target: Decimal,
    monthly: Decimal,
    annual_rate: Decimal,
    *,
    max_months: Optional[int] = None,
) -> Optional[int]:
    """
    Smallest whole n with FV(n) >= target, or None if there is none within
    max_months (defaults to the configured horizon cap).

    The closed-form answer is rounded up and then checked against FV() so the
    result is exact even where ln() loses a digit.
    """
    current = _d(current)
    target = _d(target)
    monthly = _d(monthly)
    cap = SETTINGS.horizon_cap_months if max_months is None else int(max_months)
    mr = monthly_rate(annual_rate)

    if current >= target:
        return 0
    if monthly <= 0:
        return None

    if mr == 0:
        raw = (target - current) / monthly
    else:
        raw = ((target * mr + monthly) / (current * mr + monthly)).ln() / (ONE + mr).ln()

    if raw > cap + 1:
        return None

    n = max(int(raw.to_integral_value(rounding=ROUND_CEILING)), 1)
    while n > 1 and future_value(current, monthly, annual_rate, n - 1) >= target:
        n -= 1
    while future_value(current, monthly, annual_rate, n) < target:
        n += 1

    return n if n <= cap else None


@engine_precision
def months_to_grow(current: Decimal, target: Decimal, annual_rate: Decimal, max_months: int) -> Optional[int]:
    """Months for a balance with no contributions to reach target, if within max_months."""
    current = _d(current)
    target = _d(target)
    if current >= target:
        return 0
    mr = monthly_rate(annual_rate)
    if mr == 0 or current <= 0:
        return None
    value = current
    for m in range(1, max_months + 1):
        value = value * (ONE + mr)
        if value >= target:
            return m
    return None


@engine_precision
def required_contribution(
    current: Decimal,
    target: Decimal,
    months_remaining: int,
    annual_rate: Decimal,
) -> Optional[Decimal]:
    """
    Monthly contribution that reaches target in exactly months_remaining months.

    Rounded up to whole cents; None when there is no time left. A funded
    goal needs 0. When compounding alone closes the gap in time the answer
    is one cent, since a zero contribution projects as unreachable.
    """
    if months_remaining <= 0:
        return None

    current = _d(current)
    target = _d(target)
    mr = monthly_rate(annual_rate)
    if current >= target:
        return ZERO

    if mr == 0:
        raw = (target - current) / months_remaining
    else:
        growth = (ONE + mr) ** months_remaining
        raw = (target - current * growth) * mr / (growth - ONE)

    if raw <= 0:
        return _cents()
    return money_up(raw)


@engine_precision
def inflation_adjusted(amount: Decimal, years: int, inflation_rate: Optional[Decimal] = None) -> Decimal:
    """Future nominal amount expressed in today's money."""
    amount = _d(amount)
    rate = SETTINGS.inflation_rate if inflation_rate is None else _d(inflation_rate)
    if years <= 0 or rate <= 0:
        return amount
    return amount / ((ONE + rate) ** years)
