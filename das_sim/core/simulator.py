"""Discrete event simulation engine."""

from __future__ import annotations

import heapq
from random import Random
from typing import TYPE_CHECKING, TypeVar

from das_sim.core.events import Event

if TYPE_CHECKING:
    from das_sim.actors.round_driver import RoundDriver
    from das_sim.config import SimulationConfig
    from das_sim.core.actor import Actor
    from das_sim.core.events import EventPayload
    from das_sim.core.network import Network
    from das_sim.core.topology import Topology
    from das_sim.core.types import ActorId
    from das_sim.metrics.collector import MetricsCollector
    from das_sim.metrics.results import SimulationResults
    from das_sim.p2p.node import DASNode

ActorT = TypeVar("ActorT", bound="Actor")

BUILDER_ID = "builder"


class Simulator:
    """Single-threaded, deterministic discrete event simulator.

    Uses a min-heap priority queue for event scheduling and processing.
    All randomness is derived from a seeded RNG for reproducibility.
    """

    def __init__(self, seed: int = 42) -> None:
        self._current_time: float = 0.0
        self._event_queue: list[Event] = []
        self._actors: dict[ActorId, Actor] = {}
        self._rng = Random(seed)
        self._events_processed: int = 0
        self._next_sequence: int = 0

        self._network: Network | None = None
        self._round_driver: RoundDriver | None = None
        self._topology: Topology | None = None
        self._metrics: MetricsCollector | None = None

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def rng(self) -> Random:
        return self._rng

    @property
    def actors(self) -> dict[ActorId, Actor]:
        return self._actors

    def actors_by_type(self, actor_type: type[ActorT]) -> list[ActorT]:
        return [actor for actor in self._actors.values() if isinstance(actor, actor_type)]

    @property
    def events_processed(self) -> int:
        return self._events_processed

    @property
    def nodes(self) -> list[DASNode]:
        from das_sim.p2p.node import DASNode

        return self.actors_by_type(DASNode)

    @property
    def builder(self) -> DASNode:
        for node in self.nodes:
            if node.is_builder:
                return node
        raise RuntimeError("Simulator has no builder node")

    @property
    def validators(self) -> list[DASNode]:
        return [node for node in self.nodes if not node.is_builder]

    @property
    def network(self) -> Network:
        if self._network is None:
            raise RuntimeError("Simulator not configured with network")
        return self._network

    @property
    def round_driver(self) -> RoundDriver:
        if self._round_driver is None:
            raise RuntimeError("Simulator not configured with round_driver")
        return self._round_driver

    @property
    def topology(self) -> Topology:
        if self._topology is None:
            raise RuntimeError("Simulator not configured with topology")
        return self._topology

    @property
    def metrics(self) -> MetricsCollector:
        if self._metrics is None:
            raise RuntimeError("Simulator not configured with metrics")
        return self._metrics

    def finalize_metrics(self) -> SimulationResults:
        return self.metrics.finalize()

    def register_actor(self, actor: Actor) -> None:
        if actor.id in self._actors:
            raise ValueError(f"Actor {actor.id} already registered")
        self._actors[actor.id] = actor

    def schedule(self, event: Event) -> None:
        if event.timestamp < self._current_time:
            raise ValueError(
                f"Cannot schedule event in the past: {event.timestamp} < {self._current_time}"
            )
        event.sequence = self._next_sequence
        self._next_sequence += 1
        heapq.heappush(self._event_queue, event)

    def deliver_now(self, payload: EventPayload, target_id: ActorId) -> None:
        """Deliver a payload to a target actor at the current time, bypassing the network."""
        self.schedule(
            Event(
                timestamp=self._current_time,
                priority=0,
                target_id=target_id,
                payload=payload,
            )
        )

    def run(self, until: float) -> None:
        while self._event_queue and self._current_time < until:
            event = heapq.heappop(self._event_queue)

            # Don't process events beyond our target time
            if event.timestamp > until:
                # Put it back and stop
                heapq.heappush(self._event_queue, event)
                break

            self._current_time = event.timestamp
            self._dispatch_event(event)
            self._events_processed += 1

    def run_until_empty(self) -> None:
        while self._event_queue:
            event = heapq.heappop(self._event_queue)
            self._current_time = event.timestamp
            self._dispatch_event(event)
            self._events_processed += 1

    def _dispatch_event(self, event: Event) -> None:
        if event.target_id not in self._actors:
            raise RuntimeError(f"Event targeted unknown actor: {event.target_id}")
        actor = self._actors[event.target_id]
        actor.on_event(event.payload)

    def pending_event_count(self) -> int:
        return len(self._event_queue)

    @classmethod
    def build(cls, config: SimulationConfig | None = None) -> Simulator:
        """Build a fully configured simulator.

        Validates the configuration once, then creates all components
        (Network, overlay, builder and validator nodes, RoundDriver) and
        registers everything with the simulator.
        """
        from das_sim.actors.round_driver import RoundDriver
        from das_sim.config import SimulationConfig
        from das_sim.core.identifiers import IdentifierSpace
        from das_sim.core.network import Network
        from das_sim.core.topology import NodeDirectory, build_topology
        from das_sim.core.types import ActorId
        from das_sim.metrics.collector import MetricsCollector
        from das_sim.p2p.node import NodeConfig, Role, make_node

        if config is None:
            config = SimulationConfig()
        config.validate()

        simulator = cls(seed=config.seed)
        metrics = MetricsCollector(simulator=simulator)

        network = Network(
            simulator=simulator,
            metrics=metrics,
            min_delay=config.min_delay,
            max_delay=config.max_delay,
            drop_rate=config.effective_drop_rate,
        )

        space = IdentifierSpace(config.id_bits)
        builder_id = ActorId(BUILDER_ID)
        actor_ids = [builder_id] + [ActorId(f"node-{i:04d}") for i in range(config.node_count)]
        topology = build_topology(actor_ids, space, config.bucket_size, simulator.rng)
        builder_address = topology.node_ids[builder_id]

        round_driver = RoundDriver(simulator=simulator, config=config, space=space, metrics=metrics)

        for actor_id in actor_ids:
            role = Role.BUILDER if actor_id == builder_id else Role.VALIDATOR
            node_config = NodeConfig(
                role=role,
                builder_address=builder_address,
                replication_target=config.sample_copies_per_peer,
                request_timeout=config.request_timeout,
                max_request_retries=config.max_request_retries,
            )
            directory = NodeDirectory(topology, topology.node_ids[actor_id], metrics)
            node = make_node(actor_id, simulator, node_config, directory, metrics=metrics)

            simulator.register_actor(node)
            metrics.register_node(actor_id, node.node_id, role)
            round_driver.register_node(node)

        simulator.register_actor(round_driver)

        simulator._network = network
        simulator._round_driver = round_driver
        simulator._topology = topology
        simulator._metrics = metrics

        return simulator
