"""
Frozen configuration settings for spot price simulation.

All configuration is immutable (frozen dataclasses) to ensure reproducibility.
Tolerances live in config/tolerances.py and are referenced from here.
"""

import os
from dataclasses import dataclass

from commodity_sim.config.tolerances import (
    CORRELATION_BOUND_TOLERANCE,
    CORRELATION_DIAGONAL_TOLERANCE,
    CORRELATION_SYMMETRY_TOLERANCE,
    FACTORIZATION_RECONSTRUCTION_TOLERANCE,
    PSD_PIVOT_TOLERANCE,
)

# =============================================================================
# Simulation Configuration
# =============================================================================

def _resolve_n_workers() -> int:
    """
    Resolve the default worker count with environment variable override.

    Priority:
    1. COMMODITY_SIM_WORKERS environment variable (if set)
    2. Default: 1 (single-threaded)

    Returns
    -------
    int
        Number of worker threads used to simulate path blocks

    Raises
    ------
    ValueError
        If the environment variable is not a positive integer
    """
    env_workers = os.environ.get("COMMODITY_SIM_WORKERS")
    if not env_workers:
        return 1
    try:
        n_workers = int(env_workers)
    except ValueError as e:
        raise ValueError(
            f"CRITICAL: COMMODITY_SIM_WORKERS must be an integer, got {env_workers!r}"
        ) from e
    if n_workers <= 0:
        raise ValueError(f"CRITICAL: COMMODITY_SIM_WORKERS must be > 0, got {n_workers}")
    return n_workers


@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable simulation run configuration.

    Attributes
    ----------
    default_seed : int
        Seed used when no normal generator is supplied
    default_paths : int
        Number of paths used by convenience entry points
    n_workers : int
        Number of worker threads. Override with COMMODITY_SIM_WORKERS.
    antithetic : bool
        Mirror each block's normal draws (requires an even path count)
    store_factors : bool
        Keep per-factor contributions alongside the spot prices
    """

    default_seed: int = 12
    default_paths: int = 100_000
    n_workers: int = None  # type: ignore[assignment]  # Set in __post_init__
    antithetic: bool = False
    store_factors: bool = False

    def __post_init__(self) -> None:
        """Resolve worker count and validate."""
        # Frozen dataclass workaround: use object.__setattr__
        if self.n_workers is None:
            object.__setattr__(self, "n_workers", _resolve_n_workers())
        if self.n_workers <= 0:
            raise ValueError(f"CRITICAL: n_workers must be > 0, got {self.n_workers}")
        if self.default_paths <= 0:
            raise ValueError(f"CRITICAL: default_paths must be > 0, got {self.default_paths}")


# =============================================================================
# Correlation Configuration
# =============================================================================

@dataclass(frozen=True)
class CorrelationConfig:
    """
    Immutable correlation validation and factorization configuration. [T1]

    Attributes
    ----------
    symmetry_tolerance : float
        Max |ρ_ij - ρ_ji|
    diagonal_tolerance : float
        Max |ρ_ii - 1|
    bound_tolerance : float
        Allowed excess of |ρ_ij| over 1
    pivot_tolerance : float
        Residual pivots with magnitude below this are floored to zero
    reconstruction_tolerance : float
        Max |L Lᵀ - ρ| accepted after factorization
    """

    symmetry_tolerance: float = CORRELATION_SYMMETRY_TOLERANCE
    diagonal_tolerance: float = CORRELATION_DIAGONAL_TOLERANCE
    bound_tolerance: float = CORRELATION_BOUND_TOLERANCE
    pivot_tolerance: float = PSD_PIVOT_TOLERANCE
    reconstruction_tolerance: float = FACTORIZATION_RECONSTRUCTION_TOLERANCE


# =============================================================================
# Day Count Configuration
# =============================================================================

@dataclass(frozen=True)
class DayCountConfig:
    """
    Immutable day count configuration.

    Attributes
    ----------
    default_convention : str
        Name of the day count used when none is supplied (see periods.day_count)
    """

    default_convention: str = "act365"  # [T1] Actual/365 Fixed


# =============================================================================
# Master Configuration
# =============================================================================

@dataclass(frozen=True)
class Settings:
    """
    Master frozen configuration combining all sub-configs.

    Usage
    -----
    >>> from commodity_sim.config.settings import SETTINGS
    >>> SETTINGS.simulation.default_seed
    12
    """

    simulation: SimulationConfig = SimulationConfig()
    correlation: CorrelationConfig = CorrelationConfig()
    day_count: DayCountConfig = DayCountConfig()


# Singleton instance - import this
SETTINGS = Settings()
