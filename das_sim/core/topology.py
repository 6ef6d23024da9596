"""Kademlia-style overlay and the per-node directory built on it."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, NamedTuple

import networkx as nx

from das_sim.config import ConfigurationError
from das_sim.core.identifiers import bucket_index, distance

if TYPE_CHECKING:
    from collections.abc import Iterable
    from random import Random

    from das_sim.core.identifiers import IdentifierSpace
    from das_sim.core.types import ActorId, NodeId
    from das_sim.metrics.collector import MetricsCollector


class Topology(NamedTuple):
    """Overlay graph keyed by node identifier, plus the actor -> id mapping."""

    node_ids: dict[ActorId, NodeId]
    graph: nx.Graph


def build_topology(
    actor_ids: Iterable[ActorId],
    space: IdentifierSpace,
    bucket_size: int,
    rng: Random,
) -> Topology:
    """Assign identifiers and connect every node to its bucket contacts.

    Each node keeps up to bucket_size random contacts per non-empty bucket,
    which is enough for greedy XOR routing to reach any identifier.
    """
    node_ids: dict[ActorId, NodeId] = {}
    graph = nx.Graph()
    for actor_id in actor_ids:
        node_id = space.node_id(actor_id)
        if node_id in graph:
            raise ConfigurationError(
                "id_bits", space.bits, f"identifier collision for {actor_id}"
            )
        node_ids[actor_id] = node_id
        graph.add_node(node_id, actor_id=actor_id)

    all_ids = list(graph.nodes)
    for node_id in all_ids:
        buckets: dict[int, list[NodeId]] = defaultdict(list)
        for other in all_ids:
            if other != node_id:
                buckets[bucket_index(node_id, other)].append(other)

        for bucket in sorted(buckets):
            candidates = buckets[bucket]
            for contact in rng.sample(candidates, min(bucket_size, len(candidates))):
                graph.add_edge(node_id, contact)

    return Topology(node_ids=node_ids, graph=graph)


def route(graph: nx.Graph, source: NodeId, target: NodeId) -> list[NodeId]:
    """Greedy XOR routing from source to target; returns the visited path."""
    if target not in graph:
        raise LookupError(f"Unknown node identifier: {target:#x}")

    path = [source]
    current = source
    while current != target:
        best = min(graph.neighbors(current), key=lambda n: distance(n, target), default=None)
        if best is None or distance(best, target) >= distance(current, target):
            raise LookupError(f"Routing stalled at {current:#x} towards {target:#x}")
        path.append(best)
        current = best
    return path


class NodeDirectory:
    """A node's view of the routing layer.

    Exposes only the node's own identifier, the network size, and
    identifier -> actor resolution through the overlay.
    """

    def __init__(
        self,
        topology: Topology,
        self_id: NodeId,
        metrics: MetricsCollector | None = None,
    ) -> None:
        if self_id not in topology.graph:
            raise LookupError(f"Unknown node identifier: {self_id:#x}")
        self._topology = topology
        self._self_id = self_id
        self._metrics = metrics

    @property
    def self_id(self) -> NodeId:
        return self._self_id

    @property
    def network_size(self) -> int:
        return self._topology.graph.number_of_nodes()

    def resolve(self, node_id: NodeId) -> ActorId:
        """Look up the actor owning node_id by routing towards it."""
        path = route(self._topology.graph, self._self_id, node_id)
        if self._metrics is not None:
            self._metrics.record_lookup(len(path) - 1)
        return self._topology.graph.nodes[node_id]["actor_id"]
