"""
Tests for analytic step variances and covariance - simulation/covariance.py.

[T1] Unit OU increment variance: (1 - e^(-2κΔt)) / (2κ) → Δt as κ → 0
[T1] Running covariance: C(k) = D C(k-1) D + ρ ∘ (s sᵀ)
"""

import numpy as np
import pytest

from commodity_sim.simulation.covariance import (
    compute_analytic_moments,
    decay_factors,
    step_variances,
    unit_step_variance,
)


class TestUnitStepVariance:
    """[T1] OU increment variance."""

    def test_zero_mean_reversion_is_dt(self) -> None:
        assert unit_step_variance(0.0, 0.5) == pytest.approx(0.5)

    def test_closed_form(self) -> None:
        kappa, dt = 2.5, 0.4
        expected = (1 - np.exp(-2 * kappa * dt)) / (2 * kappa)
        assert unit_step_variance(kappa, dt) == pytest.approx(expected, rel=1e-14)

    def test_small_kappa_continuous(self) -> None:
        assert unit_step_variance(1e-9, 1.0) == pytest.approx(1.0, rel=1e-8)

    def test_zero_dt(self) -> None:
        assert unit_step_variance(16.2, 0.0) == 0.0

    def test_broadcasts(self) -> None:
        result = unit_step_variance(np.array([0.0, 1.0]), np.array([[0.1], [0.2]]))
        assert result.shape == (2, 2)


class TestStepVariances:
    """stepVariance = σ² (1 - e^(-2κΔt)) / (2κ)."""

    def test_matches_formula(self) -> None:
        vols = np.array([[0.3, 0.9]])
        kappas = np.array([0.0, 16.2])
        dts = np.array([0.25])
        expected = [0.3**2 * 0.25, 0.9**2 * (1 - np.exp(-2 * 16.2 * 0.25)) / (2 * 16.2)]
        np.testing.assert_allclose(step_variances(vols, kappas, dts)[0], expected, rtol=1e-14)

    def test_decay(self) -> None:
        np.testing.assert_allclose(decay_factors(np.array([0.0, 2.0]), 0.5), [1.0, np.exp(-1.0)])


class TestAnalyticMoments:
    """Tests for compute_analytic_moments()."""

    def test_single_factor_no_reversion_is_sigma_sqrt_t(self) -> None:
        times = np.array([0.1, 0.5, 1.0])
        vols = np.array([[0.45], [0.42], [0.33]])
        moments = compute_analytic_moments(vols, np.array([0.0]), np.eye(1), times)
        np.testing.assert_allclose(moments.log_std, vols[:, 0] * np.sqrt(times), rtol=1e-14)
        np.testing.assert_allclose(moments.time_steps, [0.1, 0.4, 0.5], rtol=1e-14)

    def test_single_factor_mean_reverting_stationary_variance(self) -> None:
        kappa, sigma = 4.0, 0.5
        times = np.linspace(0.25, 3.0, 12)
        vols = np.full((12, 1), sigma)
        moments = compute_analytic_moments(vols, np.array([kappa]), np.eye(1), times)
        expected = sigma**2 * (1 - np.exp(-2 * kappa * times)) / (2 * kappa)
        np.testing.assert_allclose(moments.log_variance, expected, rtol=1e-12)

    def test_two_factor_constant_vols(self) -> None:
        # Non-mean-reverting: Var = (σ₁² + σ₂² + 2ρσ₁σ₂) t
        s1, s2, rho = 0.15, 0.11, 0.74
        times = np.array([0.5, 1.0])
        vols = np.array([[s1, s2], [s1, s2]])
        moments = compute_analytic_moments(
            vols, np.zeros(2), np.array([[1.0, rho], [rho, 1.0]]), times
        )
        expected = (s1**2 + s2**2 + 2 * rho * s1 * s2) * times
        np.testing.assert_allclose(moments.log_variance, expected, rtol=1e-14)

    def test_correction_is_half_variance(self) -> None:
        moments = compute_analytic_moments(
            np.array([[0.2]]), np.array([1.0]), np.eye(1), np.array([0.5])
        )
        assert moments.martingale_correction[0] == pytest.approx(0.5 * moments.log_variance[0])

    def test_step_variances_property(self) -> None:
        vols = np.array([[0.2, 0.4], [0.3, 0.5]])
        kappas = np.array([0.0, 3.0])
        times = np.array([0.2, 0.7])
        moments = compute_analytic_moments(vols, kappas, np.eye(2), times)
        np.testing.assert_allclose(
            moments.step_variances, step_variances(vols, kappas, moments.time_steps), rtol=1e-13
        )

    def test_factor_covariance_diagonal_sums(self) -> None:
        vols = np.array([[0.2, 0.4], [0.3, 0.5]])
        correlation = np.array([[1.0, 0.3], [0.3, 1.0]])
        moments = compute_analytic_moments(vols, np.array([0.0, 3.0]), correlation, np.array([0.2, 0.7]))
        totals = moments.factor_covariance.sum(axis=(1, 2))
        np.testing.assert_allclose(totals, moments.log_variance, rtol=1e-13)

    def test_zero_volatility(self) -> None:
        moments = compute_analytic_moments(
            np.zeros((3, 2)), np.array([0.0, 16.2]), np.eye(2), np.array([0.1, 0.2, 0.3])
        )
        assert np.all(moments.log_variance == 0.0)
        assert np.all(moments.martingale_correction == 0.0)

    def test_arrays_read_only_inputs_untouched(self) -> None:
        vols = np.array([[0.2]])
        times = np.array([0.5])
        moments = compute_analytic_moments(vols, np.array([0.0]), np.eye(1), times)
        with pytest.raises(ValueError):
            moments.log_variance[0] = 1.0
        vols[0, 0] = 0.3
        times[0] = 0.7
        assert moments.volatilities[0, 0] == 0.2

    def test_first_step_at_valuation_date(self) -> None:
        moments = compute_analytic_moments(
            np.array([[0.3], [0.3]]), np.array([0.0]), np.eye(1), np.array([0.0, 0.5])
        )
        assert moments.log_variance[0] == 0.0
        assert moments.n_steps == 2
