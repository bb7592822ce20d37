"""
Tests for model parameters - models/parameters.py.

Validates factor and correlation checks performed on construction,
volatility lookup and the one/two factor factories.
"""

import numpy as np
import pandas as pd
import pytest

from commodity_sim.errors import (
    InvalidCorrelationError,
    InvalidFactorError,
    MissingVolatilityError,
    NonPositiveSemiDefiniteCorrelationError,
    ShapeMismatchError,
    SimulationError,
)
from commodity_sim.models import Factor, MultiFactorParameters
from commodity_sim.periods import Day

PERIODS = (Day(2020, 8, 1), Day(2021, 1, 15))


def _factor(vol: float = 0.3, kappa: float = 0.0) -> Factor:
    return Factor(kappa, {p: vol for p in PERIODS})


# =============================================================================
# Factor
# =============================================================================


class TestFactor:
    """Tests for Factor validation and lookup."""

    def test_volatility_for(self) -> None:
        factor = Factor(1.5, {PERIODS[0]: 0.2, PERIODS[1]: 0.25})
        assert factor.volatility_for(PERIODS[1]) == 0.25
        assert factor.is_mean_reverting

    def test_zero_mean_reversion(self) -> None:
        assert not _factor(kappa=0.0).is_mean_reverting

    def test_missing_volatility(self) -> None:
        with pytest.raises(MissingVolatilityError) as exc_info:
            _factor().volatility_for(Day(2022, 1, 1), factor_index=2)
        assert exc_info.value.factor_index == 2
        assert exc_info.value.period == Day(2022, 1, 1)
        assert "factor 2" in str(exc_info.value)

    @pytest.mark.parametrize("kappa", [-0.1, np.nan, np.inf])
    def test_invalid_mean_reversion(self, kappa: float) -> None:
        with pytest.raises(InvalidFactorError, match="mean_reversion"):
            Factor(kappa, {PERIODS[0]: 0.2})

    @pytest.mark.parametrize("vol", [-0.01, np.nan])
    def test_invalid_volatility(self, vol: float) -> None:
        with pytest.raises(InvalidFactorError, match="volatility"):
            Factor(0.0, {PERIODS[0]: vol})

    def test_volatility_copied_and_read_only(self) -> None:
        vols = {PERIODS[0]: 0.2}
        factor = Factor(0.0, vols)
        vols[PERIODS[0]] = 0.9
        assert factor.volatility_for(PERIODS[0]) == 0.2
        with pytest.raises(TypeError):
            factor.volatility[PERIODS[0]] = 0.5  # type: ignore[index]


# =============================================================================
# MultiFactorParameters
# =============================================================================


class TestMultiFactorParameters:
    """Tests for construction-time validation."""

    def test_basic(self) -> None:
        params = MultiFactorParameters([_factor(), _factor(kappa=2.0)], [[1.0, 0.5], [0.5, 1.0]])
        assert params.num_factors == 2
        np.testing.assert_array_equal(params.mean_reversions, [0.0, 2.0])

    def test_correlation_read_only(self) -> None:
        params = MultiFactorParameters([_factor()], [[1.0]])
        with pytest.raises(ValueError):
            params.correlation[0, 0] = 0.5

    def test_caller_matrix_not_frozen(self) -> None:
        correlation = np.eye(2)
        MultiFactorParameters([_factor(), _factor()], correlation)
        correlation[0, 1] = 0.1  # still writable

    def test_no_factors(self) -> None:
        with pytest.raises(InvalidFactorError, match="at least one"):
            MultiFactorParameters([], np.zeros((0, 0)))

    def test_non_factor_rejected(self) -> None:
        with pytest.raises(TypeError, match="Factor"):
            MultiFactorParameters([0.3], [[1.0]])  # type: ignore[list-item]

    def test_shape_mismatch(self) -> None:
        with pytest.raises(ShapeMismatchError) as exc_info:
            MultiFactorParameters([_factor(), _factor()], [[1.0]])
        assert exc_info.value.expected == (2, 2)
        assert exc_info.value.actual == (1, 1)

    def test_ragged_matrix_is_shape_mismatch(self) -> None:
        with pytest.raises(ShapeMismatchError):
            MultiFactorParameters([_factor(), _factor()], [[1.0, 0.5], [0.5]])

    def test_out_of_bounds(self) -> None:
        with pytest.raises(InvalidCorrelationError, match=r"\|ρ\| <= 1"):
            MultiFactorParameters([_factor(), _factor()], [[1.0, 1.2], [1.2, 1.0]])

    def test_non_unit_diagonal(self) -> None:
        with pytest.raises(InvalidCorrelationError, match="diagonal"):
            MultiFactorParameters([_factor(), _factor()], [[1.0, 0.5], [0.5, 0.9]])

    def test_asymmetric(self) -> None:
        with pytest.raises(InvalidCorrelationError, match="symmetric"):
            MultiFactorParameters([_factor(), _factor()], [[1.0, 0.5], [0.4, 1.0]])

    def test_non_finite(self) -> None:
        with pytest.raises(InvalidCorrelationError, match="non-finite"):
            MultiFactorParameters([_factor(), _factor()], [[1.0, np.nan], [np.nan, 1.0]])

    def test_not_psd_detected_lazily(self) -> None:
        correlation = [[1.0, 0.9, -0.9], [0.9, 1.0, 0.9], [-0.9, 0.9, 1.0]]
        params = MultiFactorParameters([_factor(), _factor(), _factor()], correlation)
        with pytest.raises(NonPositiveSemiDefiniteCorrelationError):
            params.correlation_factor

    def test_correlation_factor_cached(self) -> None:
        params = MultiFactorParameters([_factor(), _factor()], [[1.0, 0.3], [0.3, 1.0]])
        assert params.correlation_factor is params.correlation_factor

    def test_errors_share_base(self) -> None:
        assert issubclass(ShapeMismatchError, SimulationError)
        assert issubclass(MissingVolatilityError, KeyError)


class TestVolatilityMatrix:
    """Tests for volatility_matrix()."""

    def test_shape_and_values(self) -> None:
        params = MultiFactorParameters(
            [Factor(0.0, {PERIODS[0]: 0.1, PERIODS[1]: 0.2}), Factor(1.0, {PERIODS[0]: 0.3, PERIODS[1]: 0.4})],
            np.eye(2),
        )
        np.testing.assert_array_equal(params.volatility_matrix(PERIODS), [[0.1, 0.3], [0.2, 0.4]])

    def test_missing_reports_factor_index(self) -> None:
        params = MultiFactorParameters([_factor(), Factor(0.0, {PERIODS[0]: 0.2})], np.eye(2))
        with pytest.raises(MissingVolatilityError) as exc_info:
            params.volatility_matrix(PERIODS)
        assert exc_info.value.factor_index == 1
        assert exc_info.value.period == PERIODS[1]


# =============================================================================
# Factories
# =============================================================================


class TestFactories:
    """Tests for the one and two factor factories."""

    def test_one_factor_flat(self) -> None:
        params = MultiFactorParameters.for_one_factor(1.2, 0.4, PERIODS)
        assert params.num_factors == 1
        assert params.factors[0].volatility_for(PERIODS[1]) == 0.4
        np.testing.assert_array_equal(params.correlation, [[1.0]])

    def test_one_factor_series(self) -> None:
        vols = pd.Series([0.4, 0.35], index=list(PERIODS))
        params = MultiFactorParameters.for_one_factor(0.0, vols)
        assert params.factors[0].volatility_for(PERIODS[1]) == 0.35

    def test_flat_requires_periods(self) -> None:
        with pytest.raises(ValueError, match="periods are required"):
            MultiFactorParameters.for_one_factor(0.0, 0.4)

    def test_two_factor(self) -> None:
        params = MultiFactorParameters.for_two_factor(
            spot_mean_reversion=3.0,
            spot_volatility=0.6,
            long_term_volatility=0.2,
            correlation=-0.3,
            periods=iter(PERIODS),
        )
        np.testing.assert_array_equal(params.mean_reversions, [3.0, 0.0])
        assert params.correlation[0, 1] == -0.3
        assert params.factors[1].volatility_for(PERIODS[0]) == 0.2
