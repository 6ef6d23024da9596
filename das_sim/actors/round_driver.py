"""RoundDriver actor orchestrating block production and distribution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..config import SimulationConfig
from ..core.actor import Actor, EventPayload
from ..core.identifiers import IdentifierSpace
from ..core.types import ActorId
from ..protocol.block import Block
from ..protocol.commands import StartRound
from ..protocol.messages import BlockAnnouncement, SampleAssignment
from ..protocol.region import region_match

if TYPE_CHECKING:
    from ..core.simulator import Simulator
    from ..core.types import NodeId
    from ..metrics.collector import MetricsCollector
    from ..p2p.node import DASNode

logger = logging.getLogger(__name__)

ROUND_DRIVER_ID = ActorId("round-driver")


@dataclass(frozen=True)
class RoundReport:
    """Coverage statistics of one round."""

    sequence_number: int
    started_at: float
    radius: int
    total_samples: int
    samples_covered: int  # samples inside at least one node's region
    assignments_dispatched: int

    @property
    def deficit(self) -> int:
        return self.total_samples - self.samples_covered

    @property
    def coverage(self) -> float:
        return self.samples_covered / self.total_samples if self.total_samples else 0.0


class RoundDriver(Actor):
    """Actor that produces one block per round and distributes it.

    Each round it builds a block, computes the region radius for the whole
    network, hands every in-region node its samples directly, announces the
    block to every node (builders first), and reports coverage.
    """

    def __init__(
        self,
        simulator: Simulator,
        config: SimulationConfig | None = None,
        space: IdentifierSpace | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        super().__init__(ROUND_DRIVER_ID, simulator)
        self._config = config or SimulationConfig()
        self._space = space or IdentifierSpace(self._config.id_bits)
        self._metrics = metrics
        self._nodes: list[DASNode] = []
        self._next_sequence_number = 0
        self._reports: list[RoundReport] = []

    @property
    def rounds_completed(self) -> int:
        return len(self._reports)

    @property
    def reports(self) -> list[RoundReport]:
        return self._reports

    @property
    def builder_address(self) -> NodeId:
        for node in self._nodes:
            if node.is_builder:
                return node.node_id
        raise RuntimeError("No builder node registered")

    def register_node(self, node: DASNode) -> None:
        if node not in self._nodes:
            self._nodes.append(node)

    def register_nodes(self, nodes: list[DASNode]) -> None:
        for node in nodes:
            self.register_node(node)

    def start(self, delay: float = 0.0) -> None:
        self.schedule_command(delay, StartRound())

    def on_event(self, payload: EventPayload) -> None:
        match payload:
            case StartRound():
                self.run_round()
                if self._config.rounds is None or self.rounds_completed < self._config.rounds:
                    self.schedule_command(self._config.round_interval, StartRound())

    def run_round(self) -> RoundReport:
        block = Block(
            self._config.block_dim_size,
            self._next_sequence_number,
            self._space,
            self._config.mapping_fn,
        )
        self._next_sequence_number += 1

        radius = block.compute_region_radius(self._config.sample_copies_per_peer, len(self._nodes))
        builder_address = self.builder_address
        now = self._simulator.current_time

        samples_covered = 0
        assignments_dispatched = 0
        while block.has_next():
            sample = block.next_sample()
            covered = False
            for node in self._nodes:
                sample_id = region_match(sample, node.node_id, radius)
                if sample_id is None:
                    continue

                assignment = SampleAssignment(
                    sender=self._id,
                    src=builder_address,
                    dst=node.node_id,
                    timestamp=now,
                    sample_id=sample_id,
                )
                self._simulator.deliver_now(assignment, node.id)
                assignments_dispatched += 1
                if not covered:
                    samples_covered += 1
                    covered = True

        block.init_iterator()
        self._announce_block(block, builder_address)

        report = RoundReport(
            sequence_number=block.sequence_number,
            started_at=now,
            radius=radius,
            total_samples=block.num_samples,
            samples_covered=samples_covered,
            assignments_dispatched=assignments_dispatched,
        )
        self._reports.append(report)
        if self._metrics is not None:
            self._metrics.record_round(report)

        logger.info(
            "Block %d: %d samples out of %d are within a node's region, %d assignments",
            report.sequence_number,
            report.samples_covered,
            report.total_samples,
            report.assignments_dispatched,
        )
        if report.deficit > 0:
            logger.warning(
                "Block %d: %d samples are not within the region of any peer",
                report.sequence_number,
                report.deficit,
            )

        return report

    def _announce_block(self, block: Block, builder_address: NodeId) -> None:
        """Announce to builders before validators so ingestion happens first."""
        ordered = sorted(self._nodes, key=lambda node: not node.is_builder)
        for node in ordered:
            announcement = BlockAnnouncement(
                sender=self._id,
                src=builder_address,
                dst=node.node_id,
                timestamp=self._simulator.current_time,
                block=block,
            )
            self._simulator.deliver_now(announcement, node.id)
