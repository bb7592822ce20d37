"""
Frozen configuration and tolerance framework.
"""

from commodity_sim.config.settings import (
    SETTINGS,
    CorrelationConfig,
    DayCountConfig,
    Settings,
    SimulationConfig,
)

__all__ = [
    "SETTINGS",
    "CorrelationConfig",
    "DayCountConfig",
    "Settings",
    "SimulationConfig",
]
