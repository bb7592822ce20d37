"""
Multi-factor spot price path simulator.

Implements time-stepped simulation of spot prices consistent with a forward
curve:

    zᵢ(k) = zᵢ(k-1) e^(-κᵢΔt_k) + sqrt(uᵢ(k)) (L ε_k)ᵢ,   zᵢ(0) = 0
    X(k)  = Σᵢ σᵢ(t_k) zᵢ(k)
    S(k)  = F(period_k) exp(X(k) - Var[X(k)] / 2)

where L is the correlation factor, ε_k independent standard normals and
Var[X(k)] the analytic variance (see covariance.py). E[S(k)] = F(period_k)
exactly, and zero volatility reproduces the forward curve bit for bit.

Paths are independent, so they are simulated vectorized per step and,
optionally, in contiguous blocks on worker threads. Each block owns its own
normal source and writes a disjoint column range of the shared buffer.

See: Glasserman (2003) "Monte Carlo Methods in Financial Engineering", Ch. 3
"""

import logging
import numbers
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Mapping, Optional, Sequence

import numpy as np

from commodity_sim.config.settings import SETTINGS, SimulationConfig
from commodity_sim.errors import (
    InvalidPathCountError,
    MissingForwardPriceError,
    UnorderedPeriodsError,
)
from commodity_sim.models.parameters import MultiFactorParameters
from commodity_sim.periods.day_count import DayCountFunction, get_day_count
from commodity_sim.periods.period import period_start
from commodity_sim.simulation.correlation import CorrelationFactor
from commodity_sim.simulation.covariance import AnalyticMoments, compute_analytic_moments
from commodity_sim.simulation.normals import MersenneTwisterGenerator, NormalGenerator
from commodity_sim.simulation.results import SimulationResults

logger = logging.getLogger(__name__)


class MultiFactorSpotSimulator:
    """
    Spot price simulator for a multi-factor model.

    All inputs are validated on construction, in order: periods,
    volatilities, forward prices. Path count and correlation factorization
    are validated at the start of ``simulate``, before any buffer is
    allocated.

    Parameters
    ----------
    parameters : MultiFactorParameters
        Factors and correlation
    current_date : date, datetime or pd.Timestamp
        Valuation date (t = 0)
    forward_curve : Mapping or pd.Series
        Forward price per simulated period
    simulated_periods : Sequence
        Strictly increasing simulated periods
    time_func : callable, optional
        Day count (instant, instant) -> years. Default from SETTINGS (Act/365).
    normal_generator : NormalGenerator, optional
        Standard normal source. Default: MersenneTwisterGenerator seeded with
        config.default_seed.
    config : SimulationConfig, optional
        Run configuration (default SETTINGS.simulation)

    Examples
    --------
    >>> simulator = MultiFactorSpotSimulator(
    ...     params, datetime(2020, 7, 27), forward_curve, periods,
    ...     time_func=act_365, normal_generator=MersenneTwisterGenerator(12),
    ... )
    >>> results = simulator.simulate(1_000_000)
    """

    def __init__(
        self,
        parameters: MultiFactorParameters,
        current_date: Any,
        forward_curve: Mapping[Any, float],
        simulated_periods: Sequence[Any],
        time_func: Optional[DayCountFunction] = None,
        normal_generator: Optional[NormalGenerator] = None,
        config: Optional[SimulationConfig] = None,
    ):
        if not isinstance(parameters, MultiFactorParameters):
            raise TypeError(
                f"CRITICAL: parameters must be MultiFactorParameters, got {type(parameters).__name__}"
            )

        self.config = config or SETTINGS.simulation
        self.parameters = parameters
        self.current_date = current_date
        self.time_func = time_func or get_day_count(SETTINGS.day_count.default_convention)
        self.normal_generator = normal_generator or MersenneTwisterGenerator(self.config.default_seed)

        self.simulated_periods = self._validate_periods(simulated_periods)
        volatilities = parameters.volatility_matrix(self.simulated_periods)
        self.forward_prices = self._forward_prices(forward_curve, self.simulated_periods)
        times = self._times(self.simulated_periods)

        self._moments = compute_analytic_moments(
            volatilities=volatilities,
            mean_reversions=parameters.mean_reversions,
            correlation=parameters.correlation,
            times=times,
        )

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate_periods(simulated_periods: Sequence[Any]) -> tuple:
        periods = tuple(simulated_periods)
        if len(periods) == 0:
            raise UnorderedPeriodsError("CRITICAL: at least one simulated period is required")
        for k in range(1, len(periods)):
            if not periods[k - 1] < periods[k]:
                raise UnorderedPeriodsError(
                    f"CRITICAL: simulated periods must be strictly increasing, got "
                    f"{periods[k - 1]!r} followed by {periods[k]!r} at index {k}",
                    index=k,
                )
        return periods

    @staticmethod
    def _forward_prices(forward_curve: Mapping[Any, float], periods: tuple) -> np.ndarray:
        prices = np.empty(len(periods))
        for k, period in enumerate(periods):
            try:
                price = forward_curve[period]
            except KeyError:
                raise MissingForwardPriceError(period) from None
            price = float(price)
            if not np.isfinite(price):
                raise ValueError(f"CRITICAL: forward price for {period!r} must be finite, got {price}")
            prices[k] = price
        prices.setflags(write=False)
        return prices

    def _times(self, periods: tuple) -> np.ndarray:
        times = np.array(
            [self.time_func(self.current_date, period_start(period)) for period in periods],
            dtype=float,
        )
        if times[0] < 0:
            raise UnorderedPeriodsError(
                f"CRITICAL: simulated period {periods[0]!r} starts before the valuation "
                f"date {self.current_date!r} (t={times[0]:.6f})",
                index=0,
            )
        decreasing = np.flatnonzero(np.diff(times) < 0)
        if decreasing.size:
            k = int(decreasing[0]) + 1
            raise UnorderedPeriodsError(
                f"CRITICAL: period start times must be non-decreasing, got t={times[k]:.6f} "
                f"after t={times[k - 1]:.6f} at index {k}",
                index=k,
            )
        return times

    @staticmethod
    def _validate_path_count(n_paths: Any, antithetic: bool) -> int:
        if isinstance(n_paths, bool) or not isinstance(n_paths, numbers.Integral):
            raise InvalidPathCountError(
                f"CRITICAL: n_paths must be an integer, got {type(n_paths).__name__}"
            )
        n_paths = int(n_paths)
        if n_paths <= 0:
            raise InvalidPathCountError(f"CRITICAL: n_paths must be > 0, got {n_paths}")
        if antithetic and n_paths % 2 != 0:
            raise InvalidPathCountError(f"CRITICAL: n_paths must be even for antithetic, got {n_paths}")
        return n_paths

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def analytic_moments(self) -> AnalyticMoments:
        """Per-step times, decays, step variances and log variances."""
        return self._moments

    @property
    def num_steps(self) -> int:
        """Number of simulated steps."""
        return len(self.simulated_periods)

    # -------------------------------------------------------------------------
    # Simulation
    # -------------------------------------------------------------------------

    def simulate(
        self,
        n_paths: int,
        antithetic: Optional[bool] = None,
        n_workers: Optional[int] = None,
        store_factors: Optional[bool] = None,
    ) -> SimulationResults:
        """
        Simulate spot price paths.

        Parameters
        ----------
        n_paths : int
            Number of paths (> 0, even when antithetic)
        antithetic : bool, optional
            Mirror normal draws within each block (default config.antithetic)
        n_workers : int, optional
            Number of path blocks run on worker threads (default config.n_workers)
        store_factors : bool, optional
            Keep per-factor contributions (default config.store_factors)

        Returns
        -------
        SimulationResults
            Read-only spot prices, shape (num_steps, n_paths)

        Raises
        ------
        InvalidPathCountError
            If n_paths is not a positive integer (or odd with antithetic)
        NonPositiveSemiDefiniteCorrelationError
            If the correlation matrix cannot be factorized
        TypeError
            If n_workers > 1 and the normal generator cannot spawn streams
        """
        antithetic = self.config.antithetic if antithetic is None else antithetic
        n_workers = self.config.n_workers if n_workers is None else n_workers
        store_factors = self.config.store_factors if store_factors is None else store_factors

        n_paths = self._validate_path_count(n_paths, antithetic)
        if n_workers <= 0:
            raise ValueError(f"CRITICAL: n_workers must be > 0, got {n_workers}")

        factor = self.parameters.correlation_factor

        blocks = _partition_paths(n_paths, n_workers, antithetic)
        generators = self._block_generators(len(blocks))

        n_factors = self.parameters.num_factors
        spot_prices = np.empty((self.num_steps, n_paths))
        factor_values = np.empty((self.num_steps, n_factors, n_paths)) if store_factors else None

        logger.info(
            f"Simulating {n_paths:,} paths x {self.num_steps} steps x {n_factors} factors "
            f"({len(blocks)} block(s), antithetic={antithetic})"
        )
        start_time = time.time()

        if len(blocks) == 1:
            start, stop = blocks[0]
            self._simulate_block(generators[0], factor, spot_prices, factor_values, start, stop, antithetic)
        else:
            with ThreadPoolExecutor(max_workers=len(blocks)) as executor:
                future_to_block = {
                    executor.submit(
                        self._simulate_block,
                        generator,
                        factor,
                        spot_prices,
                        factor_values,
                        start,
                        stop,
                        antithetic,
                    ): (start, stop)
                    for generator, (start, stop) in zip(generators, blocks)
                }
                for future in as_completed(future_to_block):
                    start, stop = future_to_block[future]
                    future.result()
                    logger.debug(f"  Completed paths [{start:,}, {stop:,})")

        logger.info(f"Completed in {time.time() - start_time:.2f}s")

        return SimulationResults(
            spot_prices=spot_prices,
            simulated_periods=self.simulated_periods,
            factor_values=factor_values,
            antithetic=antithetic,
            n_workers=len(blocks),
        )

    def _block_generators(self, n_blocks: int) -> list:
        if n_blocks == 1:
            return [self.normal_generator]
        spawn = getattr(self.normal_generator, "spawn", None)
        if spawn is None:
            raise TypeError(
                f"CRITICAL: normal generator {type(self.normal_generator).__name__} must "
                f"implement spawn(n) to run {n_blocks} worker blocks"
            )
        return list(spawn(n_blocks))

    def _simulate_block(
        self,
        generator: NormalGenerator,
        factor: CorrelationFactor,
        spot_prices: np.ndarray,
        factor_values: Optional[np.ndarray],
        start: int,
        stop: int,
        antithetic: bool,
    ) -> None:
        """Simulate paths [start, stop) into the shared buffers."""
        moments = self._moments
        correction = moments.martingale_correction
        n_factors = self.parameters.num_factors
        n_block = stop - start
        n_draw = n_block // 2 if antithetic else n_block

        # Unit factor state per path, zero at the valuation date
        state = np.zeros((n_factors, n_block))

        for k in range(self.num_steps):
            normals = np.asarray(
                generator.draw_standard_normals(n_factors * n_draw), dtype=float
            ).reshape(n_factors, n_draw)
            if antithetic:
                normals = np.concatenate([normals, -normals], axis=1)

            state *= moments.decay[k][:, np.newaxis]
            state += moments.unit_step_std[k][:, np.newaxis] * factor.correlate(normals)

            log_deviation = moments.volatilities[k] @ state
            spot_prices[k, start:stop] = self.forward_prices[k] * np.exp(log_deviation - correction[k])

            if factor_values is not None:
                factor_values[k, :, start:stop] = moments.volatilities[k][:, np.newaxis] * state


def _partition_paths(n_paths: int, n_workers: int, antithetic: bool) -> list[tuple[int, int]]:
    """
    Split [0, n_paths) into at most n_workers contiguous non-empty blocks.

    With antithetic sampling every block holds an even number of paths.
    """
    unit = 2 if antithetic else 1
    n_units = n_paths // unit
    n_blocks = max(1, min(n_workers, n_units))
    sizes = [len(chunk) * unit for chunk in np.array_split(np.arange(n_units), n_blocks)]
    blocks = []
    start = 0
    for size in sizes:
        blocks.append((start, start + size))
        start += size
    return blocks


def simulate_spot_prices(
    parameters: MultiFactorParameters,
    current_date: Any,
    forward_curve: Mapping[Any, float],
    simulated_periods: Sequence[Any],
    n_paths: Optional[int] = None,
    seed: Optional[int] = None,
    time_func: Optional[DayCountFunction] = None,
    antithetic: bool = False,
    n_workers: int = 1,
    store_factors: bool = False,
) -> SimulationResults:
    """
    Convenience function: simulate with a Mersenne Twister source.

    Parameters
    ----------
    parameters : MultiFactorParameters
        Factors and correlation
    current_date : date or datetime
        Valuation date
    forward_curve : Mapping or pd.Series
        Forward price per simulated period
    simulated_periods : Sequence
        Strictly increasing simulated periods
    n_paths : int, optional
        Number of paths (default SETTINGS.simulation.default_paths)
    seed : int, optional
        Seed for the normal source (default SETTINGS.simulation.default_seed)
    time_func : callable, optional
        Day count (default Act/365)
    antithetic : bool, default False
        Use antithetic variates
    n_workers : int, default 1
        Number of worker threads
    store_factors : bool, default False
        Keep per-factor contributions

    Returns
    -------
    SimulationResults
        Simulated spot prices
    """
    seed = SETTINGS.simulation.default_seed if seed is None else seed
    n_paths = SETTINGS.simulation.default_paths if n_paths is None else n_paths
    simulator = MultiFactorSpotSimulator(
        parameters,
        current_date,
        forward_curve,
        simulated_periods,
        time_func=time_func,
        normal_generator=MersenneTwisterGenerator(seed),
    )
    return simulator.simulate(
        n_paths, antithetic=antithetic, n_workers=n_workers, store_factors=store_factors
    )
