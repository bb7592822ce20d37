#!/usr/bin/env python3
"""
Forward Consistency and Mean Reversion Demo.

This example simulates a three-factor spot price model and checks that the
simulated prices are consistent with the forward curve they were built from:

    "Does the average simulated spot price reproduce the forward price?"

Key Concepts:
- Martingale correction: -Var/2 keeps E[S] equal to the forward price
- Mean reversion: fast factors add short-dated volatility that decays away
- Analytic log volatility: the exact standard deviation of ln S per period

Usage:
    python examples/01_forward_consistency.py               # 100,000 paths
    python examples/01_forward_consistency.py --ci          # CI mode (fewer paths)
    python examples/01_forward_consistency.py --workers 4   # parallel blocks
"""

import argparse
import logging
import sys
from datetime import datetime

import numpy as np
import pandas as pd

# Add src to path if running as script
sys.path.insert(0, "src")

from commodity_sim import (
    Factor,
    Month,
    MultiFactorParameters,
    MultiFactorSpotSimulator,
    PCG64Generator,
    period_range,
    summarize_results,
)

CURRENT_DATE = datetime(2021, 1, 4)


def build_model(periods: list) -> MultiFactorParameters:
    """
    Long-term, medium and fast factors with a winter volatility premium.

    Parameters
    ----------
    periods : list[Month]
        Simulated delivery months

    Returns
    -------
    MultiFactorParameters
        Three factor model
    """
    winter = {p: 1.3 if p.month in (12, 1, 2) else 1.0 for p in periods}
    return MultiFactorParameters(
        factors=[
            Factor(0.0, {p: 0.18 for p in periods}),
            Factor(2.5, {p: 0.25 * winter[p] for p in periods}),
            Factor(16.2, {p: 0.90 * winter[p] for p in periods}),
        ],
        correlation=np.array([
            [1.0, 0.6, 0.3],
            [0.6, 1.0, 0.4],
            [0.3, 0.4, 1.0],
        ]),
    )


def build_forward_curve(periods: list) -> pd.Series:
    """Seasonal forward curve: winter months trade at a premium."""
    prices = [52.0 + 0.15 * i + (6.0 if p.month in (12, 1, 2) else 0.0) for i, p in enumerate(periods)]
    return pd.Series(prices, index=periods)


def mean_reversion_effect(periods: list) -> pd.DataFrame:
    """
    Analytic log volatility per period with and without the fast factor.

    Higher mean reversion → shocks decay faster → less long-dated volatility.
    """
    full = build_model(periods)
    without_fast = MultiFactorParameters(factors=full.factors[:2], correlation=full.correlation[:2, :2])
    curve = build_forward_curve(periods)

    rows = {}
    for name, params in [("three_factor", full), ("two_factor", without_fast)]:
        simulator = MultiFactorSpotSimulator(params, CURRENT_DATE, curve, periods)
        rows[name] = simulator.analytic_moments.log_std
    return pd.DataFrame(rows, index=pd.Index(periods, name="period"))


def print_summary(summary: pd.DataFrame) -> None:
    """Print forward consistency table."""
    print("\n" + "=" * 72)
    print("FORWARD CONSISTENCY")
    print("=" * 72)
    print("\n  Period      Forward      Mean     z-score   Log std   Analytic")
    print("  " + "-" * 66)
    for period, row in summary.iterrows():
        print(
            f"  {str(period):9s} {row['forward']:9.3f} {row['mean']:9.3f} "
            f"{row['z_score']:9.2f} {row['log_std']:9.4f} {row['analytic_log_std']:9.4f}"
        )
    worst = summary["z_score"].abs().max()
    print(f"\n★ Largest |z| = {worst:.2f} (expect < 3 for an unbiased simulation)")


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--ci", action="store_true", help="CI mode: fewer paths")
    parser.add_argument("--workers", type=int, default=1, help="worker threads")
    parser.add_argument("--seed", type=int, default=12, help="random seed")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    n_paths = 10_000 if args.ci else 100_000
    periods = period_range(Month(2021, 2), Month(2022, 1))

    simulator = MultiFactorSpotSimulator(
        build_model(periods),
        CURRENT_DATE,
        build_forward_curve(periods),
        periods,
        normal_generator=PCG64Generator(args.seed),
    )
    results = simulator.simulate(n_paths, n_workers=args.workers, antithetic=True)
    print_summary(summarize_results(simulator, results))

    print("\n" + "=" * 72)
    print("MEAN REVERSION EFFECT ON LOG VOLATILITY")
    print("=" * 72)
    print(mean_reversion_effect(periods).to_string(float_format=lambda x: f"{x:.4f}"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
