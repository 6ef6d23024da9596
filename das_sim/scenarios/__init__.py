"""Simulation scenario runners."""

from .baseline import run_baseline_scenario
from .sweep import SweepRun, run_sweep

__all__ = [
    "SweepRun",
    "run_baseline_scenario",
    "run_sweep",
]
