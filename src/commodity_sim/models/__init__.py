"""
Multi-factor model parameters.

Provides:
- Factor: mean reversion rate and per-period volatility curve
- MultiFactorParameters: factors plus validated correlation matrix
"""

from commodity_sim.models.parameters import Factor, MultiFactorParameters

__all__ = [
    "Factor",
    "MultiFactorParameters",
]
