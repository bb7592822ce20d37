"""
Centralized pytest fixtures for the commodity-spot-sim test suite.

This module provides shared fixtures used across all test categories:
- anti_patterns/
- unit/
- validation/
- properties/
- integration/

Fixture Categories:
1. Market Data - Valuation date, simulated periods, forward curve
2. Model Parameters - One, two and three factor models
3. Normal Sources - Seeded generators and a deterministic test double
"""

from dataclasses import dataclass
from datetime import datetime

import numpy as np
import pytest

from commodity_sim.models import Factor, MultiFactorParameters
from commodity_sim.periods import Day, act_365
from commodity_sim.simulation import MersenneTwisterGenerator, MultiFactorSpotSimulator

# =============================================================================
# TOLERANCE TIERS
# =============================================================================

@dataclass(frozen=True)
class ToleranceTiers:
    """
    Tiered tolerance framework for different test types.

    Derived from precision requirements, not ad hoc.
    """

    # Anti-pattern tests: Very tight (fundamental violations)
    anti_pattern: float = 1e-10

    # Analytic identities computed in floating point
    validation: float = 1e-9

    # Monte Carlo z-score bound (standard errors)
    mc_standard_errors: float = 3.0


TOLERANCES = ToleranceTiers()


@pytest.fixture(scope="session")
def tolerances() -> ToleranceTiers:
    """Provide tiered tolerance settings for all tests."""
    return TOLERANCES


# =============================================================================
# MARKET DATA
# =============================================================================

SEED = 12

CURRENT_DATE = datetime(2020, 7, 27)

SIMULATED_PERIODS = (
    Day(2020, 8, 1),
    Day(2021, 1, 15),
    Day(2021, 7, 30),
)

FORWARD_PRICES = (56.85, 59.08, 62.453)


@pytest.fixture
def current_date() -> datetime:
    """Valuation date."""
    return CURRENT_DATE


@pytest.fixture
def simulated_periods() -> tuple:
    """Three increasing daily periods spanning one year."""
    return SIMULATED_PERIODS


@pytest.fixture
def forward_curve() -> dict:
    """Forward price per simulated period."""
    return dict(zip(SIMULATED_PERIODS, FORWARD_PRICES))


@pytest.fixture
def forward_prices() -> np.ndarray:
    """Forward prices in step order."""
    return np.array(FORWARD_PRICES)


@pytest.fixture
def times() -> np.ndarray:
    """Act/365 year fractions of the simulated periods."""
    return np.array([act_365(CURRENT_DATE, p.start) for p in SIMULATED_PERIODS])


# =============================================================================
# MODEL PARAMETERS
# =============================================================================

def vol_curve(*vols: float) -> dict:
    """Volatility per simulated period."""
    return dict(zip(SIMULATED_PERIODS, vols))


@pytest.fixture
def one_factor_params() -> MultiFactorParameters:
    """Non-mean-reverting single factor with declining volatility."""
    return MultiFactorParameters(
        factors=[Factor(0.0, vol_curve(0.45, 0.42, 0.33))],
        correlation=[[1.0]],
    )


@pytest.fixture
def two_factor_params() -> MultiFactorParameters:
    """Two non-mean-reverting correlated factors."""
    return MultiFactorParameters(
        factors=[
            Factor(0.0, vol_curve(0.15, 0.12, 0.13)),
            Factor(0.0, vol_curve(0.11, 0.19, 0.15)),
        ],
        correlation=[[1.0, 0.74], [0.74, 1.0]],
    )


THREE_FACTOR_CORRELATION = np.array([
    [1.0, 0.6, 0.3],
    [0.6, 1.0, 0.4],
    [0.3, 0.4, 1.0],
])


@pytest.fixture
def three_factor_params() -> MultiFactorParameters:
    """Long-term, medium and fast mean-reverting factors."""
    return MultiFactorParameters(
        factors=[
            Factor(0.0, vol_curve(0.35, 0.29, 0.32)),
            Factor(2.5, vol_curve(0.15, 0.18, 0.21)),
            Factor(16.2, vol_curve(0.95, 0.92, 0.89)),
        ],
        correlation=THREE_FACTOR_CORRELATION,
    )


@pytest.fixture
def zero_vol_params() -> MultiFactorParameters:
    """Three factors with all volatilities zero."""
    return MultiFactorParameters(
        factors=[
            Factor(0.0, vol_curve(0.0, 0.0, 0.0)),
            Factor(2.5, vol_curve(0.0, 0.0, 0.0)),
            Factor(16.2, vol_curve(0.0, 0.0, 0.0)),
        ],
        correlation=THREE_FACTOR_CORRELATION,
    )


# =============================================================================
# NORMAL SOURCES
# =============================================================================

class FixedNormals:
    """Test double cycling through a fixed sequence of normal values."""

    def __init__(self, values):
        self.values = np.asarray(values, dtype=float)
        self.position = 0
        self.requests: list[int] = []

    def draw_standard_normals(self, count: int) -> np.ndarray:
        self.requests.append(count)
        index = (self.position + np.arange(count)) % len(self.values)
        self.position += count
        return self.values[index]


@pytest.fixture
def generator() -> MersenneTwisterGenerator:
    """Seeded Mersenne Twister source."""
    return MersenneTwisterGenerator(SEED)


@pytest.fixture
def make_simulator(current_date, forward_curve, simulated_periods):
    """Factory for simulators over the standard market data."""

    def _make(params, normal_generator=None, **kwargs):
        return MultiFactorSpotSimulator(
            params,
            current_date,
            forward_curve,
            simulated_periods,
            time_func=act_365,
            normal_generator=normal_generator or MersenneTwisterGenerator(SEED),
            **kwargs,
        )

    return _make


@pytest.fixture
def fixed_normals():
    """Factory for FixedNormals test doubles."""
    return FixedNormals
