"""Tests for the DAS node actor."""

from dataclasses import dataclass

import pytest

from das_sim.config import ConfigurationError
from das_sim.core.actor import Actor, EventPayload, Message
from das_sim.core.events import Event
from das_sim.core.identifiers import IdentifierSpace
from das_sim.core.network import Network
from das_sim.core.simulator import Simulator
from das_sim.core.topology import NodeDirectory, Topology, build_topology
from das_sim.core.types import ActorId, NodeId, RequestId, SampleId
from das_sim.metrics.collector import MetricsCollector
from das_sim.p2p.node import DASNode, NodeConfig, Role, make_node
from das_sim.protocol.block import Block
from das_sim.protocol.messages import (
    BlockAnnouncement,
    GetSample,
    ProtocolViolation,
    SampleAssignment,
)
from das_sim.store.kv_store import KeyValueStore

BUILDER = ActorId("builder")
VALIDATOR = ActorId("node-0000")


class SilentActor(Actor):
    """Swallows everything it receives."""

    def on_event(self, payload: EventPayload) -> None:
        pass


@dataclass
class Ping(Message):
    """A message kind nodes do not understand."""


@dataclass
class World:
    simulator: Simulator
    topology: Topology
    builder: Actor
    validator: DASNode


def make_world(
    simulator: Simulator,
    metrics: MetricsCollector,
    replication_target: int = 10**6,
    max_request_retries: int = 0,
    silent_builder: bool = False,
) -> World:
    """A builder and one validator on a two-node overlay."""
    topology = build_topology([BUILDER, VALIDATOR], IdentifierSpace(256), 3, simulator.rng)
    builder_address = topology.node_ids[BUILDER]

    def node(actor_id: ActorId, role: Role) -> DASNode:
        config = NodeConfig(
            role=role,
            builder_address=builder_address,
            replication_target=replication_target,
            request_timeout=5.0,
            max_request_retries=max_request_retries,
        )
        directory = NodeDirectory(topology, topology.node_ids[actor_id], metrics)
        return make_node(actor_id, simulator, config, directory, metrics=metrics)

    builder: Actor
    if silent_builder:
        builder = SilentActor(BUILDER, simulator)
    else:
        builder = node(BUILDER, Role.BUILDER)
    validator = node(VALIDATOR, Role.VALIDATOR)
    simulator.register_actor(builder)
    simulator.register_actor(validator)
    return World(simulator, topology, builder, validator)


def announce(world: World, block: Block, *targets: ActorId) -> None:
    for target in targets:
        announcement = BlockAnnouncement(
            sender=ActorId("round-driver"),
            src=world.topology.node_ids[BUILDER],
            dst=world.topology.node_ids[target],
            timestamp=world.simulator.current_time,
            block=block,
        )
        world.simulator.deliver_now(announcement, target)


class TestBuilder:
    def test_ingests_every_sample(
        self, simulator: Simulator, network: Network, metrics: MetricsCollector
    ) -> None:
        world = make_world(simulator, metrics)
        block = Block(4, 0)

        announce(world, block, BUILDER)
        simulator.run_until_empty()

        assert isinstance(world.builder, DASNode)
        store = world.builder.store
        assert store is not None
        assert len(store) == 16
        for sample in block.samples():
            assert store.get(sample.row_id) == sample.payload
            assert store.get(sample.column_id) == sample.payload
        assert network.messages_delivered == 0

    def test_builder_is_flagged(self, simulator: Simulator, metrics: MetricsCollector) -> None:
        world = make_world(simulator, metrics)

        assert isinstance(world.builder, DASNode)
        assert world.builder.is_builder
        assert world.builder.role == Role.BUILDER
        assert world.builder.node_id == world.builder.builder_address
        assert not world.validator.is_builder


class TestSampling:
    def test_retrieves_samples_in_region(
        self, simulator: Simulator, network: Network, metrics: MetricsCollector
    ) -> None:
        """With the widest radius a validator fetches every sample by row id."""
        world = make_world(simulator, metrics)
        block = Block(4, 0)

        announce(world, block, BUILDER, VALIDATOR)
        simulator.run_until_empty()

        retrieved = world.validator.retrieved_samples
        assert set(retrieved) == {s.row_id for s in block.samples()}
        assert all(retrieved[s.row_id] == s.payload for s in block.samples())
        assert not world.validator.pending_requests
        assert metrics.timeouts == 0
        assert sum(metrics.samples_retrieved.values()) == 16

    def test_zero_target_fetches_nothing(
        self, simulator: Simulator, network: Network, metrics: MetricsCollector
    ) -> None:
        world = make_world(simulator, metrics, replication_target=0)

        announce(world, Block(4, 0), BUILDER, VALIDATOR)
        simulator.run_until_empty()

        assert world.validator.retrieved_samples == {}
        assert network.messages_delivered == 0

    def test_unknown_samples_count_as_misses(
        self, simulator: Simulator, network: Network, metrics: MetricsCollector
    ) -> None:
        """A builder that never saw the block answers with empty responses."""
        world = make_world(simulator, metrics)

        announce(world, Block(4, 0), VALIDATOR)
        simulator.run_until_empty()

        assert metrics.sample_misses == 16
        assert world.validator.retrieved_samples == {}
        assert not world.validator.pending_requests

    def test_builder_lookup_is_cached(
        self, simulator: Simulator, network: Network, metrics: MetricsCollector
    ) -> None:
        world = make_world(simulator, metrics)

        announce(world, Block(4, 0), BUILDER, VALIDATOR)
        announce(world, Block(4, 1), BUILDER, VALIDATOR)
        simulator.run_until_empty()

        assert len(metrics.lookup_hops) == 1
        assert len(world.validator.retrieved_samples) == 32

    def test_assignment_is_recorded(
        self, simulator: Simulator, network: Network, metrics: MetricsCollector
    ) -> None:
        world = make_world(simulator, metrics)
        assignment = SampleAssignment(
            sender=ActorId("round-driver"),
            src=world.topology.node_ids[BUILDER],
            dst=world.validator.node_id,
            timestamp=0.0,
            sample_id=SampleId(99),
        )

        simulator.deliver_now(assignment, VALIDATOR)
        simulator.run_until_empty()

        assert world.validator.assigned_samples == {SampleId(99)}


class TestRequestTimeouts:
    def test_unanswered_requests_time_out(
        self, simulator: Simulator, network: Network, metrics: MetricsCollector
    ) -> None:
        world = make_world(simulator, metrics, silent_builder=True)

        announce(world, Block(4, 0), VALIDATOR)
        simulator.run(until=1.0)
        assert len(world.validator.pending_requests) == 16

        simulator.run_until_empty()

        assert metrics.timeouts == 16
        assert not world.validator.pending_requests
        assert simulator.current_time == pytest.approx(5.0)

    def test_retries_until_limit_reached(
        self, simulator: Simulator, network: Network, metrics: MetricsCollector
    ) -> None:
        world = make_world(simulator, metrics, max_request_retries=1, silent_builder=True)

        announce(world, Block(4, 0), VALIDATOR)
        simulator.run_until_empty()

        assert sum(metrics.requests_sent.values()) == 32
        assert metrics.retries == 16
        assert metrics.timeouts == 32
        assert not world.validator.pending_requests

    def test_stale_requests_evicted_on_next_block(
        self, simulator: Simulator, network: Network, metrics: MetricsCollector
    ) -> None:
        """An announcement at the deadline evicts before the timers fire."""
        world = make_world(simulator, metrics, silent_builder=True)
        announce(world, Block(4, 0), VALIDATOR)
        simulator.run(until=1.0)

        second = BlockAnnouncement(
            sender=ActorId("round-driver"),
            src=world.topology.node_ids[BUILDER],
            dst=world.validator.node_id,
            timestamp=5.0,
            block=Block(4, 1),
        )
        simulator.schedule(Event(timestamp=5.0, target_id=VALIDATOR, payload=second))
        simulator.run(until=5.0)

        # First-round requests evicted, second-round requests outstanding
        assert metrics.timeouts == 16
        assert len(world.validator.pending_requests) == 16
        assert all(r.sent_at == 5.0 for r in world.validator.pending_requests.values())

        simulator.run_until_empty()
        assert metrics.timeouts == 32

    def test_evict_expired_with_nothing_pending(
        self, simulator: Simulator, network: Network, metrics: MetricsCollector
    ) -> None:
        world = make_world(simulator, metrics)

        assert world.validator.evict_expired() == 0


class TestProtocolViolations:
    def test_missing_source_rejected(
        self, simulator: Simulator, network: Network, metrics: MetricsCollector
    ) -> None:
        world = make_world(simulator, metrics)
        msg = SampleAssignment(
            sender=ActorId("round-driver"),
            src=None,
            dst=world.validator.node_id,
            timestamp=0.0,
            sample_id=SampleId(1),
        )

        simulator.deliver_now(msg, VALIDATOR)
        with pytest.raises(ProtocolViolation, match="missing source"):
            simulator.run_until_empty()

    def test_get_sample_to_validator_rejected(
        self, simulator: Simulator, network: Network, metrics: MetricsCollector
    ) -> None:
        world = make_world(simulator, metrics)
        msg = GetSample(
            sender=BUILDER,
            src=world.topology.node_ids[BUILDER],
            dst=world.validator.node_id,
            timestamp=0.0,
            sample_id=SampleId(1),
            request_id=RequestId(0),
        )

        simulator.deliver_now(msg, VALIDATOR)
        with pytest.raises(ProtocolViolation, match="non-builder"):
            simulator.run_until_empty()

    def test_unknown_message_rejected(
        self, simulator: Simulator, network: Network, metrics: MetricsCollector
    ) -> None:
        world = make_world(simulator, metrics)

        simulator.deliver_now(Ping(BUILDER, NodeId(1), world.validator.node_id, 0.0), VALIDATOR)
        with pytest.raises(ProtocolViolation, match="unknown message kind"):
            simulator.run_until_empty()


class TestMakeNode:
    def test_builder_gets_store(self, simulator: Simulator, metrics: MetricsCollector) -> None:
        world = make_world(simulator, metrics)

        assert isinstance(world.builder, DASNode)
        assert isinstance(world.builder.store, KeyValueStore)
        assert world.validator.store is None

    def test_validator_cannot_hold_store(
        self, simulator: Simulator, metrics: MetricsCollector
    ) -> None:
        world = make_world(simulator, metrics)
        config = NodeConfig(
            role=Role.VALIDATOR,
            builder_address=world.topology.node_ids[BUILDER],
            replication_target=2,
        )
        directory = NodeDirectory(world.topology, world.validator.node_id)

        with pytest.raises(ConfigurationError, match="store"):
            make_node(ActorId("node-0001"), simulator, config, directory, store=KeyValueStore())

    def test_builder_requires_store(self, simulator: Simulator, metrics: MetricsCollector) -> None:
        world = make_world(simulator, metrics)
        config = NodeConfig(
            role=Role.BUILDER,
            builder_address=world.topology.node_ids[BUILDER],
            replication_target=2,
        )
        directory = NodeDirectory(world.topology, world.topology.node_ids[BUILDER])

        with pytest.raises(ConfigurationError, match="store"):
            DASNode(BUILDER, simulator, config, directory, store=None)

    def test_builder_keeps_latest_block(
        self, simulator: Simulator, network: Network, metrics: MetricsCollector
    ) -> None:
        """Re-announcing over reused ids replaces entries instead of failing."""
        world = make_world(simulator, metrics)
        space = IdentifierSpace(5)
        first, second = Block(4, 0, space), Block(4, 1, space)

        announce(world, first, BUILDER)
        announce(world, second, BUILDER)
        simulator.run_until_empty()

        assert isinstance(world.builder, DASNode)
        store = world.builder.store
        assert store is not None
        assert len(store) == 16
        for sample in second.samples():
            assert store.get(sample.row_id) == sample.payload
            assert store.get(sample.column_id) == sample.payload
