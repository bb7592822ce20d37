"""
Multi-factor model parameters.

[T1] Log spot deviation from the forward curve is a sum of factors, each a
mean-reverting (Ornstein-Uhlenbeck) driver loaded with a per-period
volatility:

    ln S(T) = ln F(0, T) + Σᵢ σᵢ(T) zᵢ(T) - ½ Var[Σᵢ σᵢ(T) zᵢ(T)]
    dzᵢ = -κᵢ zᵢ dt + dWᵢ,   dWᵢ dWⱼ = ρᵢⱼ dt

κᵢ = 0 is the non-mean-reverting (arithmetic Brownian) special case.

References
----------
[T1] Clewlow, L. & Strickland, C. (2000). Energy Derivatives: Pricing and
     Risk Management. Ch. 8 - Multi-factor models.
"""

from dataclasses import dataclass
from functools import cached_property
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence, TYPE_CHECKING

import numpy as np

from commodity_sim.config.settings import SETTINGS, CorrelationConfig
from commodity_sim.errors import (
    InvalidCorrelationError,
    InvalidFactorError,
    MissingVolatilityError,
    ShapeMismatchError,
)

if TYPE_CHECKING:
    from commodity_sim.simulation.correlation import CorrelationFactor


def _validate_non_negative(value: float, name: str) -> float:
    value = float(value)
    if not np.isfinite(value) or value < 0:
        raise InvalidFactorError(f"CRITICAL: {name} must be finite and >= 0, got {value}")
    return value


@dataclass(frozen=True, eq=False)
class Factor:
    """
    One stochastic driver of the log spot deviation.

    Attributes
    ----------
    mean_reversion : float
        Mean reversion rate κ >= 0 (annualized)
    volatility : Mapping
        Volatility (annualized, decimal) per simulated period, each >= 0.
        Stored as a read-only copy.
    """

    mean_reversion: float
    volatility: Mapping[Any, float]

    def __post_init__(self) -> None:
        """Validate and freeze the volatility mapping."""
        object.__setattr__(
            self, "mean_reversion", _validate_non_negative(self.mean_reversion, "mean_reversion")
        )
        frozen = {
            period: _validate_non_negative(vol, f"volatility for period {period!r}")
            for period, vol in dict(self.volatility).items()
        }
        object.__setattr__(self, "volatility", MappingProxyType(frozen))

    @property
    def is_mean_reverting(self) -> bool:
        """Whether κ > 0."""
        return self.mean_reversion > 0.0

    def volatility_for(self, period: Any, factor_index: int = 0) -> float:
        """
        Volatility for a simulated period.

        Raises
        ------
        MissingVolatilityError
            If no volatility is defined for the period
        """
        try:
            return self.volatility[period]
        except KeyError:
            raise MissingVolatilityError(factor_index, period) from None

    def __repr__(self) -> str:
        return f"Factor(mean_reversion={self.mean_reversion}, n_periods={len(self.volatility)})"


@dataclass(frozen=True, eq=False)
class MultiFactorParameters:
    """
    Immutable factors and their correlation matrix.

    Shape, bounds, unit diagonal and symmetry are checked on construction.
    Positive semi-definiteness is checked by the correlation factorization
    on first access of ``correlation_factor``.

    Attributes
    ----------
    factors : tuple[Factor, ...]
        Ordered factors (N >= 1)
    correlation : np.ndarray
        N×N correlation matrix (read-only copy)
    correlation_config : CorrelationConfig
        Tolerances for validation and factorization

    Examples
    --------
    >>> params = MultiFactorParameters(
    ...     factors=[Factor(0.0, {Day(2020, 8, 1): 0.45})],
    ...     correlation=[[1.0]],
    ... )
    >>> params.num_factors
    1
    """

    factors: tuple[Factor, ...]
    correlation: np.ndarray
    correlation_config: CorrelationConfig = SETTINGS.correlation

    def __post_init__(self) -> None:
        """Validate factors and correlation matrix."""
        factors = tuple(self.factors)
        if len(factors) == 0:
            raise InvalidFactorError("CRITICAL: at least one factor is required")
        for i, factor in enumerate(factors):
            if not isinstance(factor, Factor):
                raise TypeError(
                    f"CRITICAL: factor {i} must be a Factor, got {type(factor).__name__}"
                )
        object.__setattr__(self, "factors", factors)

        n = len(factors)
        try:
            correlation = np.array(self.correlation, dtype=float)
        except (TypeError, ValueError) as e:
            # Ragged input has no well-defined shape
            raise ShapeMismatchError((n, n), ()) from e
        if correlation.shape != (n, n):
            raise ShapeMismatchError((n, n), correlation.shape)

        self._validate_correlation(correlation)
        correlation.setflags(write=False)
        object.__setattr__(self, "correlation", correlation)

    def _validate_correlation(self, correlation: np.ndarray) -> None:
        cfg = self.correlation_config

        if not np.all(np.isfinite(correlation)):
            raise InvalidCorrelationError("CRITICAL: correlation matrix contains non-finite values")

        worst = np.unravel_index(np.argmax(np.abs(correlation)), correlation.shape)
        if abs(correlation[worst]) > 1.0 + cfg.bound_tolerance:
            raise InvalidCorrelationError(
                f"CRITICAL: correlation entries must satisfy |ρ| <= 1, "
                f"got {correlation[worst]} at index {tuple(int(i) for i in worst)}"
            )

        diagonal_error = np.abs(np.diag(correlation) - 1.0)
        if np.any(diagonal_error > cfg.diagonal_tolerance):
            i = int(np.argmax(diagonal_error))
            raise InvalidCorrelationError(
                f"CRITICAL: correlation diagonal must be 1, got {correlation[i, i]} at index {i}"
            )

        asymmetry = np.abs(correlation - correlation.T)
        if np.any(asymmetry > cfg.symmetry_tolerance):
            i, j = (int(k) for k in np.unravel_index(np.argmax(asymmetry), asymmetry.shape))
            raise InvalidCorrelationError(
                f"CRITICAL: correlation matrix must be symmetric, got "
                f"ρ[{i},{j}]={correlation[i, j]} vs ρ[{j},{i}]={correlation[j, i]}"
            )

    @property
    def num_factors(self) -> int:
        """Number of factors."""
        return len(self.factors)

    @property
    def mean_reversions(self) -> np.ndarray:
        """Mean reversion rates, shape (num_factors,)."""
        return np.array([f.mean_reversion for f in self.factors])

    @cached_property
    def correlation_factor(self) -> "CorrelationFactor":
        """
        Lower-triangular factor of the correlation matrix, computed on first use.

        Raises
        ------
        NonPositiveSemiDefiniteCorrelationError
            If the correlation matrix is not positive semi-definite
        """
        from commodity_sim.simulation.correlation import factorize_correlation

        return factorize_correlation(self.correlation, self.correlation_config)

    def volatility_matrix(self, periods: Sequence[Any]) -> np.ndarray:
        """
        Volatilities for each simulated period and factor.

        Parameters
        ----------
        periods : Sequence
            Simulated periods

        Returns
        -------
        np.ndarray
            Shape (len(periods), num_factors)

        Raises
        ------
        MissingVolatilityError
            If any factor lacks a volatility for any period
        """
        vols = np.empty((len(periods), self.num_factors))
        for j, factor in enumerate(self.factors):
            for k, period in enumerate(periods):
                vols[k, j] = factor.volatility_for(period, factor_index=j)
        return vols

    # -------------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------------

    @classmethod
    def for_one_factor(
        cls,
        mean_reversion: float,
        volatility: float | Mapping[Any, float],
        periods: Iterable[Any] | None = None,
    ) -> "MultiFactorParameters":
        """
        Single factor model.

        Parameters
        ----------
        mean_reversion : float
            κ >= 0
        volatility : float or Mapping
            Flat volatility (requires periods) or volatility per period
        periods : Iterable, optional
            Periods for a flat volatility
        """
        factor = Factor(mean_reversion, _volatility_curve(volatility, periods))
        return cls(factors=(factor,), correlation=np.ones((1, 1)))

    @classmethod
    def for_two_factor(
        cls,
        spot_mean_reversion: float,
        spot_volatility: float | Mapping[Any, float],
        long_term_volatility: float | Mapping[Any, float],
        correlation: float,
        periods: Iterable[Any] | None = None,
    ) -> "MultiFactorParameters":
        """
        Two factor model: mean-reverting spot factor plus long-term factor.

        [T1] Schwartz-Smith style short/long decomposition: the long-term
        factor has κ = 0.

        Parameters
        ----------
        spot_mean_reversion : float
            κ of the short-term factor
        spot_volatility, long_term_volatility : float or Mapping
            Flat volatility (requires periods) or volatility per period
        correlation : float
            Correlation between the two factors' Brownian drivers
        periods : Iterable, optional
            Periods for flat volatilities
        """
        periods = None if periods is None else list(periods)
        factors = (
            Factor(spot_mean_reversion, _volatility_curve(spot_volatility, periods)),
            Factor(0.0, _volatility_curve(long_term_volatility, periods)),
        )
        return cls(factors=factors, correlation=np.array([[1.0, correlation], [correlation, 1.0]]))


def _volatility_curve(
    volatility: float | Mapping[Any, float],
    periods: Iterable[Any] | None,
) -> Mapping[Any, float]:
    if isinstance(volatility, Mapping):
        return volatility
    if hasattr(volatility, "items"):  # pd.Series
        return dict(volatility.items())
    if periods is None:
        raise ValueError("CRITICAL: periods are required for a flat volatility")
    return {period: float(volatility) for period in periods}
