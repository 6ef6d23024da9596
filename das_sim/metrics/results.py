"""Simulation results and coverage records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.types import ActorId


@dataclass
class CoverageGap:
    """A round in which some samples fell outside every node's region."""

    sequence_number: int
    timestamp: float
    missing_samples: int
    total_samples: int


@dataclass
class SimulationResults:
    """Derived metrics computed after simulation completes."""

    # Coverage
    rounds: int
    total_samples: int
    samples_covered: int
    coverage_ratio: float
    total_assignments: int

    # Requests
    requests_sent: int
    samples_retrieved: int
    sample_misses: int
    request_timeouts: int
    request_retries: int
    request_success_rate: float
    median_response_latency: float

    # Routing
    mean_lookup_hops: float

    # Bandwidth
    total_bandwidth_bytes: int
    control_bandwidth_bytes: int = 0
    data_bandwidth_bytes: int = 0

    # Raw data for further analysis
    coverage_gaps: list[CoverageGap] = field(default_factory=list)
    bytes_sent_per_node: dict[ActorId, int] = field(default_factory=dict)
    bytes_received_per_node: dict[ActorId, int] = field(default_factory=dict)

    @property
    def missing_samples(self) -> int:
        return self.total_samples - self.samples_covered

    def to_dict(self) -> dict[str, object]:
        return {
            "rounds": self.rounds,
            "total_samples": self.total_samples,
            "samples_covered": self.samples_covered,
            "coverage_ratio": self.coverage_ratio,
            "total_assignments": self.total_assignments,
            "requests_sent": self.requests_sent,
            "samples_retrieved": self.samples_retrieved,
            "sample_misses": self.sample_misses,
            "request_timeouts": self.request_timeouts,
            "request_retries": self.request_retries,
            "request_success_rate": self.request_success_rate,
            "median_response_latency": self.median_response_latency,
            "mean_lookup_hops": self.mean_lookup_hops,
            "total_bandwidth_bytes": self.total_bandwidth_bytes,
            "control_bandwidth_bytes": self.control_bandwidth_bytes,
            "data_bandwidth_bytes": self.data_bandwidth_bytes,
            "coverage_gaps": len(self.coverage_gaps),
        }
