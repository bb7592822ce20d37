"""
Error taxonomy for the spot price simulation engine.

Every failure is a caller configuration error detected before any paths are
generated, except StepIndexOutOfRangeError which is raised on result access.
Nothing is retried and nothing is downgraded to a default value.

Each error also derives from the matching builtin (ValueError, KeyError,
IndexError) so generic callers can catch it without importing this module.
"""

from typing import Any


class SimulationError(Exception):
    """Base class for all simulation engine errors."""

    pass


class ShapeMismatchError(SimulationError, ValueError):
    """Raised when the correlation matrix shape does not match the factor count."""

    def __init__(self, expected: tuple[int, ...], actual: tuple[int, ...]):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"CRITICAL: correlation matrix must have shape {expected}, got {actual}"
        )


class InvalidCorrelationError(SimulationError, ValueError):
    """Raised when correlation entries are out of bounds, asymmetric or off-unit diagonal."""

    pass


class NonPositiveSemiDefiniteCorrelationError(SimulationError, ValueError):
    """Raised by the correlation factorization when the matrix is not PSD."""

    def __init__(self, message: str, min_eigenvalue: float | None = None):
        self.min_eigenvalue = min_eigenvalue
        super().__init__(message)


class InvalidFactorError(SimulationError, ValueError):
    """Raised when a factor has a negative or non-finite mean reversion or volatility."""

    pass


class MissingVolatilityError(SimulationError, KeyError):
    """Raised when a factor has no volatility for a simulated period."""

    def __init__(self, factor_index: int, period: Any):
        self.factor_index = factor_index
        self.period = period
        super().__init__(
            f"CRITICAL: factor {factor_index} has no volatility for simulated period {period!r}"
        )

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class MissingForwardPriceError(SimulationError, KeyError):
    """Raised when the forward curve has no price for a simulated period."""

    def __init__(self, period: Any):
        self.period = period
        super().__init__(f"CRITICAL: forward curve has no price for simulated period {period!r}")

    def __str__(self) -> str:
        return str(self.args[0])


class UnorderedPeriodsError(SimulationError, ValueError):
    """Raised when simulated periods are empty, non-increasing or precede the valuation date."""

    def __init__(self, message: str, index: int | None = None):
        self.index = index
        super().__init__(message)


class StepIndexOutOfRangeError(SimulationError, IndexError):
    """Raised when a result step index is outside [0, num_steps)."""

    def __init__(self, index: int, num_steps: int):
        self.index = index
        self.num_steps = num_steps
        super().__init__(
            f"CRITICAL: step index must be in [0, {num_steps}), got {index}"
        )


class InvalidPathCountError(SimulationError, ValueError):
    """Raised when the requested number of paths is not a positive integer."""

    pass
