"""
Centralized tolerance framework for spot price simulation.

All tolerances are derived from precision requirements, not ad hoc tuning.

Tolerance Tiers:
    Tier 1 (Analytical): Machine-precision achievable, deterministic results
    Tier 3 (Stochastic): CLT-derived, sample moments of simulated ensembles

References:
    [T1] Higham (2002) "Accuracy and Stability of Numerical Algorithms"
    [T1] Glasserman (2003) Ch. 2-3 - Gaussian sampling and Monte Carlo error bounds
"""

import numpy as np
from typing import Final

# =============================================================================
# Tier 1: Analytical Tolerances (Deterministic)
# =============================================================================
# For input validation and the correlation factorization.
# Derived from: machine_epsilon (~2.2e-16) × safety_factor

#: Correlation symmetry: |ρ_ij - ρ_ji|
#: Tolerance: allows for matrices built from rounded market inputs
CORRELATION_SYMMETRY_TOLERANCE: Final[float] = 1e-10

#: Correlation unit diagonal: |ρ_ii - 1|
CORRELATION_DIAGONAL_TOLERANCE: Final[float] = 1e-10

#: Correlation bounds: |ρ_ij| <= 1 + tolerance
CORRELATION_BOUND_TOLERANCE: Final[float] = 1e-10

#: Cholesky residual pivot floor
#: Residual diagonal entries with |d| <= tolerance are treated as exactly zero,
#: which supports perfectly correlated (rank deficient) factors.
#: Tolerance: ~1e-10 allows for float64 accumulation errors over O(N) terms
PSD_PIVOT_TOLERANCE: Final[float] = 1e-10

#: Factor reconstruction check: max|L Lᵀ - ρ|
#: Looser than the pivot floor since errors accumulate over N² products
FACTORIZATION_RECONSTRUCTION_TOLERANCE: Final[float] = 1e-8

#: Mean reversion below which the κ → 0 limits (Δt, 1) are used
#: Derivation: expm1(-2κΔt)/(2κ) loses no precision above this, and the
#: limit's relative error κΔt is below machine epsilon beneath it
ZERO_MEAN_REVERSION_THRESHOLD: Final[float] = 1e-14


# =============================================================================
# Tier 3: Stochastic Tolerances (CLT-Derived)
# =============================================================================
# For Monte Carlo checks on simulated spot price ensembles.
# Derived from Central Limit Theorem: kσ/√N confidence interval

#: Number of standard errors for unbiasedness checks (≈0.3% failure rate)
MC_STANDARD_ERRORS: Final[float] = 3.0


def mc_tolerance(n_paths: int, sigma: float = 0.20, confidence: float = MC_STANDARD_ERRORS) -> float:
    """
    Calculate CLT-derived Monte Carlo tolerance.

    [T1] Standard error of MC estimate is σ/√N.
    3σ gives 99.7% confidence interval.

    Parameters
    ----------
    n_paths : int
        Number of Monte Carlo paths
    sigma : float
        Estimated relative standard deviation of the sampled quantity
    confidence : float
        Number of standard deviations (default 3 for 99.7% CI)

    Returns
    -------
    float
        Relative tolerance for MC vs analytical comparison

    Examples
    --------
    >>> mc_tolerance(100_000)  # 100k paths
    0.0018...
    """
    return confidence * sigma / np.sqrt(n_paths)


def log_volatility_tolerance(n_paths: int, confidence: float = 5.0) -> float:
    """
    Relative tolerance on a sample standard deviation of Gaussian log prices.

    [T1] For Gaussian samples the sample standard deviation has relative
    standard error ≈ 1/√(2N).

    Parameters
    ----------
    n_paths : int
        Number of Monte Carlo paths
    confidence : float
        Number of standard errors (default 5)

    Returns
    -------
    float
        Relative tolerance, e.g. ~0.35% for 1,000,000 paths
    """
    return confidence / np.sqrt(2.0 * n_paths)


#: Relative log-volatility tolerance quoted for 1,000,000 path runs
#: Note: 1/√(2·10⁶) ≈ 0.07%, so 0.1% is only ~1.4 standard errors
LOG_VOLATILITY_1M_TOLERANCE: Final[float] = 0.001


# =============================================================================
# Tolerance Registry (For Dynamic Access)
# =============================================================================

TOLERANCE_REGISTRY: dict[str, float] = {
    # Tier 1: Analytical
    "correlation_symmetry": CORRELATION_SYMMETRY_TOLERANCE,
    "correlation_diagonal": CORRELATION_DIAGONAL_TOLERANCE,
    "correlation_bound": CORRELATION_BOUND_TOLERANCE,
    "psd_pivot": PSD_PIVOT_TOLERANCE,
    "factorization_reconstruction": FACTORIZATION_RECONSTRUCTION_TOLERANCE,
    "zero_mean_reversion": ZERO_MEAN_REVERSION_THRESHOLD,
    # Tier 3: Stochastic
    "mc_standard_errors": MC_STANDARD_ERRORS,
    "log_volatility_1m": LOG_VOLATILITY_1M_TOLERANCE,
}


def get_tolerance(name: str) -> float:
    """
    Get tolerance by name from registry.

    Parameters
    ----------
    name : str
        Tolerance name (see TOLERANCE_REGISTRY keys)

    Returns
    -------
    float
        Tolerance value

    Raises
    ------
    KeyError
        If tolerance name not found
    """
    if name not in TOLERANCE_REGISTRY:
        available = ", ".join(sorted(TOLERANCE_REGISTRY.keys()))
        raise KeyError(f"Unknown tolerance '{name}'. Available: {available}")
    return TOLERANCE_REGISTRY[name]
