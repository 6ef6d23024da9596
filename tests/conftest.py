"""Shared pytest fixtures for DAS simulator tests."""

import pytest

from das_sim.core.identifiers import IdentifierSpace
from das_sim.core.network import Network
from das_sim.core.simulator import Simulator
from das_sim.metrics.collector import MetricsCollector


@pytest.fixture
def simulator() -> Simulator:
    """Create a fresh simulator with default seed."""
    return Simulator(seed=42)


@pytest.fixture
def metrics(simulator: Simulator) -> MetricsCollector:
    """Create a metrics collector."""
    return MetricsCollector(simulator=simulator)


@pytest.fixture
def network(simulator: Simulator, metrics: MetricsCollector) -> Network:
    """Create a zero-delay network and attach it to the simulator."""
    net = Network(simulator, metrics)
    simulator._network = net
    return net


@pytest.fixture
def space() -> IdentifierSpace:
    return IdentifierSpace(256)
