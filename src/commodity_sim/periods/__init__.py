"""
Simulated periods and day count conventions.

Provides:
- TimePeriod protocol with Day and Month implementations
- period_start() for TimePeriods, pandas Periods and dates
- Actual/365, Actual/360 and Actual/365.25 year fractions
"""

from commodity_sim.periods.day_count import (
    DAY_COUNT_REGISTRY,
    DayCountFunction,
    act_360,
    act_365,
    act_365_25,
    get_day_count,
)
from commodity_sim.periods.period import (
    Day,
    Month,
    TimePeriod,
    period_range,
    period_start,
)

__all__ = [
    # Periods
    "Day",
    "Month",
    "TimePeriod",
    "period_range",
    "period_start",
    # Day counts
    "DAY_COUNT_REGISTRY",
    "DayCountFunction",
    "act_360",
    "act_365",
    "act_365_25",
    "get_day_count",
]
