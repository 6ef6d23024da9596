"""Metrics collection for simulation analysis."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from statistics import mean, median
from typing import TYPE_CHECKING

from das_sim.metrics.results import CoverageGap, SimulationResults

if TYPE_CHECKING:
    from das_sim.actors.round_driver import RoundReport
    from das_sim.core.simulator import Simulator
    from das_sim.core.types import ActorId, NodeId
    from das_sim.p2p.node import Role


@dataclass
class MetricsCollector:
    """Collects and aggregates simulation metrics.

    Tracks bandwidth usage, request outcomes, routing cost, and per-round
    coverage for analysis after simulation completes.
    """

    simulator: Simulator
    node_count: int = 0  # Set during initialization

    # Node registry
    node_ids: dict[ActorId, NodeId] = field(default_factory=dict)
    node_roles: dict[ActorId, Role] = field(default_factory=dict)

    # Bandwidth tracking (cumulative)
    bytes_sent: dict[ActorId, int] = field(default_factory=lambda: defaultdict(int))
    bytes_received: dict[ActorId, int] = field(default_factory=lambda: defaultdict(int))

    # Request tracking
    requests_sent: dict[ActorId, int] = field(default_factory=lambda: defaultdict(int))
    samples_retrieved: dict[ActorId, int] = field(default_factory=lambda: defaultdict(int))
    retries: int = 0
    timeouts: int = 0
    sample_misses: int = 0
    response_latencies: list[float] = field(default_factory=list)

    # Routing
    lookup_hops: list[int] = field(default_factory=list)

    # Rounds
    rounds: list[RoundReport] = field(default_factory=list)
    coverage_gaps: list[CoverageGap] = field(default_factory=list)

    # Internal state
    _total_bytes: int = 0
    _control_bytes: int = 0
    _data_bytes: int = 0

    def register_node(self, node_id: ActorId, overlay_id: NodeId, role: Role) -> None:
        self.node_ids[node_id] = overlay_id
        self.node_roles[node_id] = role
        self.node_count += 1

    def record_bandwidth(
        self,
        from_: ActorId,
        to: ActorId,
        size: int,
        is_control: bool = False,
    ) -> None:
        self.bytes_sent[from_] += size
        self.bytes_received[to] += size
        self._total_bytes += size

        if is_control:
            self._control_bytes += size
        else:
            self._data_bytes += size

    def record_request(self, node_id: ActorId, is_retry: bool = False) -> None:
        self.requests_sent[node_id] += 1
        if is_retry:
            self.retries += 1

    def record_response(self, node_id: ActorId, latency: float) -> None:
        self.samples_retrieved[node_id] += 1
        self.response_latencies.append(latency)

    def record_sample_miss(self, node_id: ActorId) -> None:
        self.sample_misses += 1

    def record_timeout(self, node_id: ActorId) -> None:
        self.timeouts += 1

    def record_lookup(self, hops: int) -> None:
        self.lookup_hops.append(hops)

    def record_round(self, report: RoundReport) -> None:
        self.rounds.append(report)
        if report.deficit > 0:
            self.coverage_gaps.append(
                CoverageGap(
                    sequence_number=report.sequence_number,
                    timestamp=report.started_at,
                    missing_samples=report.deficit,
                    total_samples=report.total_samples,
                )
            )

    def finalize(self) -> SimulationResults:
        total_samples = sum(r.total_samples for r in self.rounds)
        samples_covered = sum(r.samples_covered for r in self.rounds)
        total_requests = sum(self.requests_sent.values())
        total_retrieved = sum(self.samples_retrieved.values())

        return SimulationResults(
            # Coverage
            rounds=len(self.rounds),
            total_samples=total_samples,
            samples_covered=samples_covered,
            coverage_ratio=samples_covered / total_samples if total_samples > 0 else 0.0,
            total_assignments=sum(r.assignments_dispatched for r in self.rounds),
            # Requests
            requests_sent=total_requests,
            samples_retrieved=total_retrieved,
            sample_misses=self.sample_misses,
            request_timeouts=self.timeouts,
            request_retries=self.retries,
            request_success_rate=(
                total_retrieved / total_requests if total_requests > 0 else 0.0
            ),
            median_response_latency=(
                median(self.response_latencies) if self.response_latencies else 0.0
            ),
            # Routing
            mean_lookup_hops=mean(self.lookup_hops) if self.lookup_hops else 0.0,
            # Bandwidth
            total_bandwidth_bytes=self._total_bytes,
            control_bandwidth_bytes=self._control_bytes,
            data_bandwidth_bytes=self._data_bytes,
            # Raw data
            coverage_gaps=list(self.coverage_gaps),
            bytes_sent_per_node=dict(self.bytes_sent),
            bytes_received_per_node=dict(self.bytes_received),
        )
