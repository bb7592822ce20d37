"""
Time period capability and concrete delivery periods.

The engine is generic over any period type that is hashable, totally ordered
and exposes the instant at which it starts. Day and Month are provided;
pandas Periods and plain dates are accepted through period_start().
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Protocol, runtime_checkable

import pandas as pd


@runtime_checkable
class TimePeriod(Protocol):
    """Protocol for a simulated period: hashable, ordered, with a start instant."""

    @property
    def start(self) -> datetime:
        """Instant at which the period starts."""
        ...

    def __lt__(self, other: Any) -> bool:
        ...


@dataclass(frozen=True, order=True)
class Day:
    """
    Calendar day delivery period.

    Attributes
    ----------
    year : int
    month : int
    day : int
    """

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        """Validate by constructing the date."""
        try:
            date(self.year, self.month, self.day)
        except ValueError as e:
            raise ValueError(
                f"CRITICAL: invalid day {self.year}-{self.month:02d}-{self.day:02d}: {e}"
            ) from e

    @classmethod
    def from_date(cls, value: date) -> "Day":
        """Create a Day from a date or datetime (time of day is dropped)."""
        return cls(value.year, value.month, value.day)

    @property
    def start(self) -> datetime:
        """Midnight at the start of the day."""
        return datetime(self.year, self.month, self.day)

    def offset(self, n: int) -> "Day":
        """Day n days later (earlier for negative n)."""
        return Day.from_date(date(self.year, self.month, self.day) + timedelta(days=n))

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


@dataclass(frozen=True, order=True)
class Month:
    """
    Calendar month delivery period.

    Attributes
    ----------
    year : int
    month : int
        1 to 12
    """

    year: int
    month: int

    def __post_init__(self) -> None:
        """Validate month number."""
        if not 1 <= self.month <= 12:
            raise ValueError(f"CRITICAL: month must be in [1, 12], got {self.month}")

    @classmethod
    def from_date(cls, value: date) -> "Month":
        """Month containing the given date."""
        return cls(value.year, value.month)

    @property
    def start(self) -> datetime:
        """Midnight on the first day of the month."""
        return datetime(self.year, self.month, 1)

    @property
    def num_days(self) -> int:
        """Number of calendar days in the month."""
        return calendar.monthrange(self.year, self.month)[1]

    def offset(self, n: int) -> "Month":
        """Month n months later (earlier for negative n)."""
        index = self.year * 12 + (self.month - 1) + n
        return Month(index // 12, index % 12 + 1)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def period_start(period: Any) -> pd.Timestamp:
    """
    Start instant of a simulated period.

    Parameters
    ----------
    period : TimePeriod, pd.Period, date or datetime
        Anything exposing ``start`` (TimePeriod), ``start_time`` (pandas
        Period), or a date/datetime used as its own start.

    Returns
    -------
    pd.Timestamp
        Start instant

    Raises
    ------
    TypeError
        If the period exposes no start instant
    """
    if isinstance(period, pd.Period):
        return period.start_time
    if isinstance(period, (date, datetime)):
        return pd.Timestamp(period)
    start = getattr(period, "start", None)
    if start is None:
        raise TypeError(
            f"CRITICAL: period {period!r} of type {type(period).__name__} has no start instant"
        )
    return pd.Timestamp(start)


def period_range(first: Any, last: Any) -> list:
    """
    All periods from first to last inclusive, stepping with ``offset(1)``.

    Parameters
    ----------
    first, last : Day or Month
        Bounds of the range (same type)

    Returns
    -------
    list
        Ascending periods
    """
    if type(first) is not type(last):
        raise TypeError(
            f"CRITICAL: range bounds must share a type, got {type(first).__name__} "
            f"and {type(last).__name__}"
        )
    periods = []
    current = first
    while current <= last:
        periods.append(current)
        current = current.offset(1)
    return periods
