"""
Statistical diagnostics for simulated spot prices.

[T1] Under the model every step satisfies
- E[S(k)] = F(period_k) (the forward price)
- Std[ln S(k)] = sqrt(Var[X(k)]) from the analytic moments

Sample means are compared to the forward with a z-score against the
Monte Carlo standard error; log standard deviations are compared in
relative terms.
"""

from typing import Optional

import numpy as np
import pandas as pd
from scipy import stats

from commodity_sim.config.tolerances import MC_STANDARD_ERRORS, log_volatility_tolerance
from commodity_sim.simulation.results import SimulationResults
from commodity_sim.simulation.simulator import MultiFactorSpotSimulator


def summarize_results(
    simulator: MultiFactorSpotSimulator,
    results: SimulationResults,
) -> pd.DataFrame:
    """
    Per-period comparison of simulated and theoretical moments.

    Parameters
    ----------
    simulator : MultiFactorSpotSimulator
        Simulator that produced the results
    results : SimulationResults
        Simulated spot prices

    Returns
    -------
    pd.DataFrame
        Indexed by period with columns: forward, mean, std_error, z_score,
        p_value, log_std, analytic_log_std
    """
    prices = results.spot_prices
    n_paths = results.num_paths

    mean = prices.mean(axis=1)
    ddof = 1 if n_paths > 1 else 0
    # Rounding in the mean must not turn a constant step into a spread
    dispersed = np.ptp(prices, axis=1) > 0
    std_error = np.where(dispersed, prices.std(axis=1, ddof=ddof) / np.sqrt(n_paths), 0.0)
    forward = np.asarray(simulator.forward_prices)

    with np.errstate(divide="ignore", invalid="ignore"):
        z_score = np.where(std_error > 0, (mean - forward) / std_error, 0.0)
        log_std = np.where(dispersed, np.log(prices).std(axis=1, ddof=ddof), 0.0)

    return pd.DataFrame(
        {
            "forward": forward,
            "mean": mean,
            "std_error": std_error,
            "z_score": z_score,
            "p_value": 2.0 * stats.norm.sf(np.abs(z_score)),
            "log_std": log_std,
            "analytic_log_std": simulator.analytic_moments.log_std,
        },
        index=pd.Index(results.simulated_periods, name="period"),
    )


def validate_simulation(
    simulator: MultiFactorSpotSimulator,
    n_paths: Optional[int] = None,
    confidence: float = MC_STANDARD_ERRORS,
) -> dict:
    """
    Validate a simulator against its theoretical moments.

    Parameters
    ----------
    simulator : MultiFactorSpotSimulator
        Configured simulator
    n_paths : int, optional
        Number of paths for validation (default simulator.config.default_paths)
    confidence : float, default 3.0
        Allowed number of standard errors for the mean check

    Returns
    -------
    dict
        Validation results with theoretical vs simulated values
    """
    if n_paths is None:
        n_paths = simulator.config.default_paths
    results = simulator.simulate(n_paths)
    summary = summarize_results(simulator, results)

    analytic = summary["analytic_log_std"].to_numpy()
    simulated = summary["log_std"].to_numpy()
    with np.errstate(divide="ignore", invalid="ignore"):
        log_std_error_pct = np.where(
            analytic > 0, np.abs(simulated - analytic) / analytic * 100, np.abs(simulated) * 100
        )

    max_abs_z = float(summary["z_score"].abs().max())
    max_log_std_error = float(np.max(log_std_error_pct)) / 100
    return {
        "n_paths": n_paths,
        "n_steps": results.num_steps,
        "max_abs_z_score": max_abs_z,
        "max_mean_error_pct": float(
            ((summary["mean"] - summary["forward"]).abs() / summary["forward"].abs()).max() * 100
        ),
        "max_log_std_error_pct": max_log_std_error * 100,
        "log_std_tolerance_pct": log_volatility_tolerance(n_paths) * 100,
        "summary": summary,
        "validation_passed": (
            max_abs_z <= confidence and max_log_std_error <= log_volatility_tolerance(n_paths)
        ),
    }
