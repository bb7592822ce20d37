"""
commodity-spot-sim: Monte Carlo simulation of multi-factor commodity spot prices.

Quick Start
-----------
>>> from commodity_sim import Day, MultiFactorParameters, MultiFactorSpotSimulator
>>> periods = [Day(2020, 8, 1), Day(2021, 1, 15)]
>>> params = MultiFactorParameters.for_one_factor(0.0, 0.45, periods)
>>> simulator = MultiFactorSpotSimulator(
...     params, datetime(2020, 7, 27), {periods[0]: 56.85, periods[1]: 59.08}, periods
... )
>>> results = simulator.simulate(100_000)

Version: 0.1.0
"""

__version__ = "0.1.0"

# =============================================================================
# Periods and day counts
# =============================================================================
from commodity_sim.periods import (
    Day,
    Month,
    TimePeriod,
    act_360,
    act_365,
    act_365_25,
    get_day_count,
    period_range,
    period_start,
)

# =============================================================================
# Model parameters
# =============================================================================
from commodity_sim.models import Factor, MultiFactorParameters

# =============================================================================
# Simulation
# =============================================================================
from commodity_sim.simulation import (
    AnalyticMoments,
    CorrelationFactor,
    MersenneTwisterGenerator,
    MultiFactorSpotSimulator,
    NormalGenerator,
    PCG64Generator,
    SimulationResults,
    factorize_correlation,
    make_generator,
    simulate_spot_prices,
    summarize_results,
    validate_simulation,
)

# =============================================================================
# Configuration and errors
# =============================================================================
from commodity_sim.config import SETTINGS
from commodity_sim.errors import (
    InvalidCorrelationError,
    InvalidFactorError,
    InvalidPathCountError,
    MissingForwardPriceError,
    MissingVolatilityError,
    NonPositiveSemiDefiniteCorrelationError,
    ShapeMismatchError,
    SimulationError,
    StepIndexOutOfRangeError,
    UnorderedPeriodsError,
)

__all__ = [
    "__version__",
    # Periods
    "Day",
    "Month",
    "TimePeriod",
    "act_360",
    "act_365",
    "act_365_25",
    "get_day_count",
    "period_range",
    "period_start",
    # Parameters
    "Factor",
    "MultiFactorParameters",
    # Simulation
    "AnalyticMoments",
    "CorrelationFactor",
    "MersenneTwisterGenerator",
    "MultiFactorSpotSimulator",
    "NormalGenerator",
    "PCG64Generator",
    "SimulationResults",
    "factorize_correlation",
    "make_generator",
    "simulate_spot_prices",
    "summarize_results",
    "validate_simulation",
    # Config
    "SETTINGS",
    # Errors
    "InvalidCorrelationError",
    "InvalidFactorError",
    "InvalidPathCountError",
    "MissingForwardPriceError",
    "MissingVolatilityError",
    "NonPositiveSemiDefiniteCorrelationError",
    "ShapeMismatchError",
    "SimulationError",
    "StepIndexOutOfRangeError",
    "UnorderedPeriodsError",
]
