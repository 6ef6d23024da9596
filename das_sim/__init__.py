"""Discrete event simulator for data availability sampling over XOR regions."""

from das_sim.config import ConfigurationError, MappingFunction, SimulationConfig

__all__ = [
    "ConfigurationError",
    "MappingFunction",
    "SimulationConfig",
]
