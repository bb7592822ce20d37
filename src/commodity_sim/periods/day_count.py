"""
Year fraction (day count) functions.

A day count maps a pair of instants to elapsed time in years. The simulator
uses it to place each simulated period on the time axis relative to the
valuation date.

[T1] Actual/365 Fixed: (t2 - t1) in days / 365
[T1] Actual/360:       (t2 - t1) in days / 360
"""

from typing import Any, Callable

import pandas as pd

DayCountFunction = Callable[[Any, Any], float]

_SECONDS_PER_DAY = 86_400.0


def _elapsed_days(start: Any, end: Any) -> float:
    """Elapsed calendar days (fractional) between two instants."""
    return (pd.Timestamp(end) - pd.Timestamp(start)).total_seconds() / _SECONDS_PER_DAY


def act_365(start: Any, end: Any) -> float:
    """
    Actual/365 Fixed year fraction.

    Parameters
    ----------
    start, end : date, datetime or pd.Timestamp
        Instants; end before start gives a negative fraction

    Returns
    -------
    float
        Elapsed years

    Examples
    --------
    >>> act_365(date(2020, 7, 27), date(2020, 8, 1))
    0.0136986...
    """
    return _elapsed_days(start, end) / 365.0


def act_360(start: Any, end: Any) -> float:
    """Actual/360 year fraction."""
    return _elapsed_days(start, end) / 360.0


def act_365_25(start: Any, end: Any) -> float:
    """Actual/365.25 year fraction."""
    return _elapsed_days(start, end) / 365.25


DAY_COUNT_REGISTRY: dict[str, DayCountFunction] = {
    "act365": act_365,
    "act360": act_360,
    "act365.25": act_365_25,
}


def get_day_count(name: str) -> DayCountFunction:
    """
    Get day count function by name from registry.

    Raises
    ------
    KeyError
        If the convention is not registered
    """
    key = name.lower().replace("/", "").replace("_", "")
    if key not in DAY_COUNT_REGISTRY:
        available = ", ".join(sorted(DAY_COUNT_REGISTRY.keys()))
        raise KeyError(f"Unknown day count '{name}'. Available: {available}")
    return DAY_COUNT_REGISTRY[key]
