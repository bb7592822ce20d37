"""
Analytic step variances and running covariance of the model factors.

[T1] Ornstein-Uhlenbeck increment over (t_{k-1}, t_k], Δt = t_k - t_{k-1}:

    z(t_k) = z(t_{k-1}) e^(-κΔt) + ∫ e^(-κ(t_k - u)) dW(u)
    Var[∫ ...] = (1 - e^(-2κΔt)) / (2κ)       → Δt as κ → 0

With the arrival period's volatility σ(t_k) loading the factor, the step
variance contributed by factor i is

    stepVariance_i(k) = σᵢ(t_k)² (1 - e^(-2κᵢΔt)) / (2κᵢ)

Correlated innovations are the correlation factor applied to independent
normals, each component scaled by its own step standard deviation, so the
cross-factor increment covariance at step k is ρᵢⱼ sqrt(uᵢ(k) uⱼ(k)). The
running covariance of the unit factors is then

    C(k) = D C(k-1) D + ρ ∘ (s sᵀ),   D = diag(e^(-κΔt)),  s = sqrt(u(k))

and the variance of the log deviation X(k) = Σᵢ σᵢ(t_k) zᵢ(k) is σᵀ C(k) σ.
These are exact for the simulated recursion, which is what makes the
martingale correction -Var/2 unbiased.

References
----------
[T1] Glasserman, P. (2003). Monte Carlo Methods in Financial Engineering.
     Section 3.3 - Ornstein-Uhlenbeck exact simulation.
"""

from dataclasses import dataclass

import numpy as np

from commodity_sim.config.tolerances import ZERO_MEAN_REVERSION_THRESHOLD


def unit_step_variance(mean_reversion: np.ndarray | float, dt: np.ndarray | float) -> np.ndarray:
    """
    Variance of a unit-volatility OU increment over dt.

    [T1] (1 - e^(-2κΔt)) / (2κ), with the κ → 0 limit Δt.
    Uses expm1 so small κΔt keeps full precision.

    Parameters
    ----------
    mean_reversion : array_like
        κ >= 0
    dt : array_like
        Δt >= 0 (broadcast against mean_reversion)

    Returns
    -------
    np.ndarray
        Increment variances
    """
    kappa, dt = np.broadcast_arrays(
        np.asarray(mean_reversion, dtype=float), np.asarray(dt, dtype=float)
    )
    mean_reverting = kappa > ZERO_MEAN_REVERSION_THRESHOLD
    safe_kappa = np.where(mean_reverting, kappa, 1.0)
    return np.where(mean_reverting, -np.expm1(-2.0 * safe_kappa * dt) / (2.0 * safe_kappa), dt)


def decay_factors(mean_reversion: np.ndarray | float, dt: np.ndarray | float) -> np.ndarray:
    """Shock decay multipliers e^(-κΔt)."""
    return np.exp(-np.asarray(mean_reversion, dtype=float) * np.asarray(dt, dtype=float))


def step_variances(
    volatilities: np.ndarray,
    mean_reversions: np.ndarray,
    time_steps: np.ndarray,
) -> np.ndarray:
    """
    Per-factor step variances σᵢ(t_k)² (1 - e^(-2κᵢΔt_k)) / (2κᵢ).

    Parameters
    ----------
    volatilities : np.ndarray
        Shape (n_steps, n_factors), volatility of the arrival period
    mean_reversions : np.ndarray
        Shape (n_factors,)
    time_steps : np.ndarray
        Shape (n_steps,), Δt_k

    Returns
    -------
    np.ndarray
        Shape (n_steps, n_factors)
    """
    unit = unit_step_variance(mean_reversions[np.newaxis, :], time_steps[:, np.newaxis])
    return volatilities**2 * unit


@dataclass(frozen=True)
class AnalyticMoments:
    """
    Precomputed per-step quantities shared read-only by all paths.

    Attributes
    ----------
    times : np.ndarray
        Year fraction of each step from the valuation date, shape (n_steps,)
    time_steps : np.ndarray
        Δt_k with t_0 = 0, shape (n_steps,)
    volatilities : np.ndarray
        σᵢ(t_k), shape (n_steps, n_factors)
    decay : np.ndarray
        e^(-κᵢΔt_k), shape (n_steps, n_factors)
    unit_step_std : np.ndarray
        sqrt(uᵢ(k)), shape (n_steps, n_factors)
    unit_covariance : np.ndarray
        Running covariance C(k) of the unit factors, shape (n_steps, n_factors, n_factors)
    log_variance : np.ndarray
        Var[X(k)], shape (n_steps,)
    """

    times: np.ndarray
    time_steps: np.ndarray
    volatilities: np.ndarray
    decay: np.ndarray
    unit_step_std: np.ndarray
    unit_covariance: np.ndarray
    log_variance: np.ndarray

    @property
    def n_steps(self) -> int:
        """Number of simulated steps."""
        return self.times.shape[0]

    @property
    def step_variances(self) -> np.ndarray:
        """stepVariance_i(k) = σᵢ(t_k)² uᵢ(k), shape (n_steps, n_factors)."""
        return (self.volatilities * self.unit_step_std) ** 2

    @property
    def factor_covariance(self) -> np.ndarray:
        """Cov[σᵢzᵢ, σⱼzⱼ] at each step, shape (n_steps, n_factors, n_factors)."""
        return self.volatilities[:, :, None] * self.unit_covariance * self.volatilities[:, None, :]

    @property
    def log_std(self) -> np.ndarray:
        """Standard deviation of ln(spot) at each step."""
        return np.sqrt(np.maximum(self.log_variance, 0.0))

    @property
    def martingale_correction(self) -> np.ndarray:
        """Var[X(k)] / 2, subtracted so that E[e^(X - Var/2)] = 1."""
        return 0.5 * self.log_variance


def compute_analytic_moments(
    volatilities: np.ndarray,
    mean_reversions: np.ndarray,
    correlation: np.ndarray,
    times: np.ndarray,
) -> AnalyticMoments:
    """
    Compute decay, step deviations and running covariance for every step.

    Parameters
    ----------
    volatilities : np.ndarray
        Shape (n_steps, n_factors)
    mean_reversions : np.ndarray
        Shape (n_factors,)
    correlation : np.ndarray
        Shape (n_factors, n_factors)
    times : np.ndarray
        Non-decreasing year fractions t_k >= 0 from the valuation date, shape (n_steps,)

    Returns
    -------
    AnalyticMoments
        Read-only per-step arrays
    """
    volatilities = np.array(volatilities, dtype=float)
    mean_reversions = np.asarray(mean_reversions, dtype=float)
    correlation = np.asarray(correlation, dtype=float)
    times = np.array(times, dtype=float)

    n_steps, n_factors = volatilities.shape
    time_steps = np.diff(times, prepend=0.0)

    decay = decay_factors(mean_reversions[np.newaxis, :], time_steps[:, np.newaxis])
    unit_step_std = np.sqrt(
        unit_step_variance(mean_reversions[np.newaxis, :], time_steps[:, np.newaxis])
    )

    unit_covariance = np.empty((n_steps, n_factors, n_factors))
    log_variance = np.empty(n_steps)
    cov = np.zeros((n_factors, n_factors))
    for k in range(n_steps):
        d = decay[k]
        s = unit_step_std[k]
        cov = d[:, None] * cov * d[None, :] + correlation * np.outer(s, s)
        unit_covariance[k] = cov
        sigma = volatilities[k]
        log_variance[k] = sigma @ cov @ sigma

    for array in (times, time_steps, volatilities, decay, unit_step_std, unit_covariance, log_variance):
        array.setflags(write=False)

    return AnalyticMoments(
        times=times,
        time_steps=time_steps,
        volatilities=volatilities,
        decay=decay,
        unit_step_std=unit_step_std,
        unit_covariance=unit_covariance,
        log_variance=log_variance,
    )
