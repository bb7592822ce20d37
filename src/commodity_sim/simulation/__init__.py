"""
Monte Carlo simulation of multi-factor spot prices.

Provides:
- Correlation factorization tolerant of semi-definite matrices
- Analytic step variances and martingale corrections
- Seeded normal sources with independent per-worker streams
- Path simulation with antithetic sampling and parallel path blocks
- Diagnostics against the forward curve
"""

from commodity_sim.simulation.correlation import CorrelationFactor, factorize_correlation
from commodity_sim.simulation.covariance import (
    AnalyticMoments,
    compute_analytic_moments,
    decay_factors,
    step_variances,
    unit_step_variance,
)
from commodity_sim.simulation.diagnostics import summarize_results, validate_simulation
from commodity_sim.simulation.normals import (
    MersenneTwisterGenerator,
    NormalGenerator,
    PCG64Generator,
    make_generator,
)
from commodity_sim.simulation.results import SimulationResults
from commodity_sim.simulation.simulator import MultiFactorSpotSimulator, simulate_spot_prices

__all__ = [
    # Correlation
    "CorrelationFactor",
    "factorize_correlation",
    # Moments
    "AnalyticMoments",
    "compute_analytic_moments",
    "decay_factors",
    "step_variances",
    "unit_step_variance",
    # Normals
    "MersenneTwisterGenerator",
    "NormalGenerator",
    "PCG64Generator",
    "make_generator",
    # Simulation
    "MultiFactorSpotSimulator",
    "SimulationResults",
    "simulate_spot_prices",
    # Diagnostics
    "summarize_results",
    "validate_simulation",
]
