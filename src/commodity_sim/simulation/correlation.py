"""
Correlation matrix factorization.

Produces a lower-triangular L with L Lᵀ = ρ, used to turn independent
standard normals ε into correlated draws L ε. The factorization is computed
once per simulation run and reused for every step and path.

[T1] Cholesky-Banachiewicz recursion:
    L_jj = sqrt(ρ_jj - Σ_{k<j} L_jk²)
    L_ij = (ρ_ij - Σ_{k<j} L_ik L_jk) / L_jj,  i > j

Positive semi-definite (rank deficient) matrices, e.g. perfectly correlated
factors, produce residual pivots of (numerically) zero. These are floored to
exactly zero and the column below them must then vanish as well.

References
----------
[T1] Glasserman, P. (2003). Monte Carlo Methods in Financial Engineering.
     Section 2.3.3 - Cholesky factorization of singular covariance matrices.
[T1] Higham, N. J. (2002). Accuracy and Stability of Numerical Algorithms. Ch. 10.
"""

import logging
from dataclasses import dataclass

import numpy as np
from scipy import linalg

from commodity_sim.config.settings import SETTINGS, CorrelationConfig
from commodity_sim.errors import NonPositiveSemiDefiniteCorrelationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorrelationFactor:
    """
    Result of correlation factorization.

    Attributes
    ----------
    lower : np.ndarray
        Lower-triangular factor, shape (N, N), read-only
    zero_pivots : tuple[int, ...]
        Indices of residual pivots floored to zero
    """

    lower: np.ndarray
    zero_pivots: tuple[int, ...] = ()

    @property
    def size(self) -> int:
        """Matrix dimension N."""
        return self.lower.shape[0]

    @property
    def rank(self) -> int:
        """Numerical rank of the correlation matrix."""
        return self.size - len(self.zero_pivots)

    @property
    def is_degenerate(self) -> bool:
        """Whether the matrix is only semi-definite."""
        return len(self.zero_pivots) > 0

    def reconstruct(self) -> np.ndarray:
        """L Lᵀ."""
        return self.lower @ self.lower.T

    def correlate(self, normals: np.ndarray) -> np.ndarray:
        """
        Correlate independent standard normals.

        Parameters
        ----------
        normals : np.ndarray
            Shape (N, n_paths), independent standard normals

        Returns
        -------
        np.ndarray
            Shape (N, n_paths), rows correlated per the factorized matrix
        """
        return self.lower @ normals


def _min_eigenvalue(matrix: np.ndarray) -> float:
    return float(linalg.eigvalsh(matrix)[0])


def factorize_correlation(
    correlation: np.ndarray,
    config: CorrelationConfig | None = None,
) -> CorrelationFactor:
    """
    Factorize a correlation matrix, tolerating zero pivots.

    Parameters
    ----------
    correlation : np.ndarray
        Symmetric N×N correlation matrix
    config : CorrelationConfig, optional
        Pivot and reconstruction tolerances (default SETTINGS.correlation)

    Returns
    -------
    CorrelationFactor
        Lower-triangular factor and floored pivot indices

    Raises
    ------
    NonPositiveSemiDefiniteCorrelationError
        If a residual pivot is materially negative, a zero pivot has a
        non-zero column below it, or L Lᵀ does not reproduce the matrix

    Examples
    --------
    >>> factor = factorize_correlation(np.array([[1.0, 1.0], [1.0, 1.0]]))
    >>> factor.zero_pivots
    (1,)
    """
    cfg = config or SETTINGS.correlation
    a = np.asarray(correlation, dtype=float)
    n = a.shape[0]
    lower = np.zeros((n, n))
    zero_pivots: list[int] = []

    for j in range(n):
        pivot = a[j, j] - np.dot(lower[j, :j], lower[j, :j])

        if pivot < -cfg.pivot_tolerance:
            raise NonPositiveSemiDefiniteCorrelationError(
                f"CRITICAL: correlation matrix is not positive semi-definite: "
                f"residual pivot {pivot:.3e} at index {j}",
                min_eigenvalue=_min_eigenvalue(a),
            )

        if pivot <= cfg.pivot_tolerance:
            # Degenerate direction: column j must be explained by earlier columns
            zero_pivots.append(j)
            residuals = a[j + 1:, j] - lower[j + 1:, :j] @ lower[j, :j]
            if residuals.size and np.max(np.abs(residuals)) > cfg.reconstruction_tolerance:
                i = j + 1 + int(np.argmax(np.abs(residuals)))
                raise NonPositiveSemiDefiniteCorrelationError(
                    f"CRITICAL: correlation matrix is not positive semi-definite: "
                    f"zero pivot at index {j} with residual {residuals[i - j - 1]:.3e} at row {i}",
                    min_eigenvalue=_min_eigenvalue(a),
                )
            continue

        lower[j, j] = np.sqrt(pivot)
        lower[j + 1:, j] = (a[j + 1:, j] - lower[j + 1:, :j] @ lower[j, :j]) / lower[j, j]

    error = np.max(np.abs(lower @ lower.T - a))
    if error > cfg.reconstruction_tolerance:
        raise NonPositiveSemiDefiniteCorrelationError(
            f"CRITICAL: correlation factorization failed to reproduce the matrix "
            f"(max error {error:.3e})",
            min_eigenvalue=_min_eigenvalue(a),
        )

    if zero_pivots:
        logger.warning(
            f"Correlation matrix is singular: floored {len(zero_pivots)} zero pivot(s) "
            f"at {zero_pivots}, rank {n - len(zero_pivots)} of {n}"
        )
    else:
        logger.debug(f"Factorized {n}x{n} correlation matrix")

    lower.setflags(write=False)
    return CorrelationFactor(lower=lower, zero_pivots=tuple(zero_pivots))
