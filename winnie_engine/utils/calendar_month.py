from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Union

from dateutil.relativedelta import relativedelta


@dataclass(frozen=True, order=True)
class CalendarMonth:
    """
    A (year, month) pair used for every projected/target date comparison.

    Two dates in the same calendar month are equal here, so recomputing a
    projection later in the same month never flips on-track/behind status.
    """

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be in 1..12, got {self.month}")

    @classmethod
    def from_date(cls, d: Union[date, datetime]) -> "CalendarMonth":
        return cls(year=d.year, month=d.month)

    @classmethod
    def from_index(cls, index: int) -> "CalendarMonth":
        year, month0 = divmod(index, 12)
        return cls(year=year, month=month0 + 1)

    @property
    def index(self) -> int:
        """Months since year 0: year*12 + (month-1)."""
        return self.year * 12 + (self.month - 1)

    def plus_months(self, months: int) -> "CalendarMonth":
        return CalendarMonth.from_index(self.index + months)

    def months_until(self, other: "CalendarMonth") -> int:
        """Signed number of months from self to other (positive if other is later)."""
        return other.index - self.index

    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def add_months(start: date, months: int) -> date:
    """Calendar-month arithmetic: Jan 31 + 1 month -> Feb 28/29."""
    return start + relativedelta(months=months)
