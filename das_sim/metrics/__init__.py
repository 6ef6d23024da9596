"""Metrics collection and results."""

from das_sim.metrics.collector import MetricsCollector
from das_sim.metrics.results import CoverageGap, SimulationResults

__all__ = ["CoverageGap", "MetricsCollector", "SimulationResults"]
