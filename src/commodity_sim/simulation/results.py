"""
Simulation results container.

Owns one contiguous [steps × paths] float64 buffer and hands out read-only,
zero-copy views of single steps. The buffer is locked on construction and
only views of it are exposed, so results can be shared across threads.
"""

import operator
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Optional

import numpy as np
import pandas as pd

from commodity_sim.errors import StepIndexOutOfRangeError


def _locked_view(values: np.ndarray) -> np.ndarray:
    """
    Read-only view over a locked, C-contiguous owner array.

    A view of a read-only base cannot have its WRITEABLE flag set again.
    Arrays that do not own their memory are copied first, since their base
    may still be writable.
    """
    if values.flags["OWNDATA"] and values.flags["C_CONTIGUOUS"]:
        owner = values
    else:
        owner = np.array(values, dtype=float, order="C")
    owner.setflags(write=False)
    return owner.view()


@dataclass(frozen=True, eq=False)
class SimulationResults:
    """
    Simulated spot prices for every step and path.

    Attributes
    ----------
    spot_prices : np.ndarray
        Read-only buffer, shape (num_steps, num_paths), C-contiguous
    simulated_periods : tuple
        Ordered simulated periods, one per step
    factor_values : np.ndarray, optional
        Read-only per-factor contributions σᵢ(t_k) zᵢ(k),
        shape (num_steps, num_factors, num_paths); None unless requested
    antithetic : bool
        Whether antithetic sampling was used
    n_workers : int
        Number of path blocks simulated

    Examples
    --------
    >>> results = simulator.simulate(100_000)
    >>> prices = results.spot_prices_for_step(0)
    >>> prices.shape
    (100000,)
    """

    spot_prices: np.ndarray
    simulated_periods: tuple
    factor_values: Optional[np.ndarray] = None
    antithetic: bool = False
    n_workers: int = 1

    def __post_init__(self) -> None:
        """Validate shapes and freeze buffers."""
        object.__setattr__(self, "simulated_periods", tuple(self.simulated_periods))
        if self.spot_prices.ndim != 2:
            raise ValueError(
                f"CRITICAL: spot_prices must be 2-D (steps, paths), got {self.spot_prices.ndim}-D"
            )
        if self.spot_prices.shape[0] != len(self.simulated_periods):
            raise ValueError(
                f"CRITICAL: spot_prices has {self.spot_prices.shape[0]} steps but "
                f"{len(self.simulated_periods)} simulated periods were given"
            )
        object.__setattr__(self, "spot_prices", _locked_view(self.spot_prices))

        if self.factor_values is not None:
            expected = (self.num_steps, self.factor_values.shape[1], self.num_paths)
            if self.factor_values.ndim != 3 or self.factor_values.shape != expected:
                raise ValueError(
                    f"CRITICAL: factor_values must have shape (steps, factors, paths) = "
                    f"{expected}, got {self.factor_values.shape}"
                )
            object.__setattr__(self, "factor_values", _locked_view(self.factor_values))

    @property
    def num_paths(self) -> int:
        """Number of paths."""
        return self.spot_prices.shape[1]

    @property
    def num_steps(self) -> int:
        """Number of simulated steps."""
        return self.spot_prices.shape[0]

    @property
    def num_factors(self) -> Optional[int]:
        """Number of stored factors, None if factors were not stored."""
        if self.factor_values is None:
            return None
        return self.factor_values.shape[1]

    @cached_property
    def _period_index(self) -> dict:
        return {period: i for i, period in enumerate(self.simulated_periods)}

    def _check_step_index(self, step_index: Any) -> int:
        step_index = operator.index(step_index)
        if step_index < 0 or step_index >= self.num_steps:
            raise StepIndexOutOfRangeError(step_index, self.num_steps)
        return step_index

    def spot_prices_for_step(self, step_index: int) -> np.ndarray:
        """
        Spot prices of all paths at one step.

        Parameters
        ----------
        step_index : int
            0-based step index; negative indices are not accepted

        Returns
        -------
        np.ndarray
            Read-only view of num_paths contiguous values (no copy)

        Raises
        ------
        StepIndexOutOfRangeError
            If step_index is outside [0, num_steps)
        """
        return self.spot_prices[self._check_step_index(step_index)]

    def step_index(self, period: Any) -> int:
        """
        Step index of a simulated period.

        Raises
        ------
        KeyError
            If the period was not simulated
        """
        try:
            return self._period_index[period]
        except KeyError:
            raise KeyError(f"CRITICAL: period {period!r} was not simulated") from None

    def spot_prices_for_period(self, period: Any) -> np.ndarray:
        """Read-only view of the spot prices for a simulated period."""
        return self.spot_prices[self.step_index(period)]

    def factor_values_for_step(self, factor_index: int, step_index: int) -> np.ndarray:
        """
        One factor's contribution to the log deviation at one step.

        Raises
        ------
        ValueError
            If factors were not stored
        IndexError
            If factor_index is out of range
        StepIndexOutOfRangeError
            If step_index is out of range
        """
        if self.factor_values is None:
            raise ValueError("CRITICAL: factor values were not stored; simulate with store_factors=True")
        step_index = self._check_step_index(step_index)
        factor_index = operator.index(factor_index)
        if factor_index < 0 or factor_index >= self.factor_values.shape[1]:
            raise IndexError(
                f"CRITICAL: factor_index must be in [0, {self.factor_values.shape[1]}), got {factor_index}"
            )
        return self.factor_values[step_index, factor_index]

    def to_frame(self, max_paths: Optional[int] = None) -> pd.DataFrame:
        """
        Copy spot prices into a DataFrame (periods × paths).

        Parameters
        ----------
        max_paths : int, optional
            Only include the first max_paths paths

        Returns
        -------
        pd.DataFrame
            Index: simulated periods; columns: path indices
        """
        n = self.num_paths if max_paths is None else min(max_paths, self.num_paths)
        return pd.DataFrame(
            np.array(self.spot_prices[:, :n]),
            index=pd.Index(self.simulated_periods, name="period"),
            columns=pd.RangeIndex(n, name="path"),
        )

    def __repr__(self) -> str:
        return (
            f"SimulationResults(num_steps={self.num_steps}, num_paths={self.num_paths}, "
            f"antithetic={self.antithetic}, n_workers={self.n_workers})"
        )
