"""Node actor implementing the DAS sampling protocol."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

from ..config import ConfigurationError
from ..core.types import RequestId
from ..core.actor import Actor, Command, EventPayload, Message
from ..protocol.commands import RequestTimeout
from ..protocol.messages import (
    BlockAnnouncement,
    GetSample,
    ProtocolViolation,
    SampleAssignment,
    SampleResponse,
    validate_message,
)
from ..protocol.region import region_match
from ..store.kv_store import KeyValueStore

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..core.simulator import Simulator
    from ..core.topology import NodeDirectory
    from ..core.types import ActorId, NodeId, SampleId
    from ..metrics.collector import MetricsCollector
    from ..protocol.block import Block

logger = logging.getLogger(__name__)


class Role(Enum):
    """Node's role in block distribution."""

    BUILDER = auto()  # Originates blocks and serves every sample
    VALIDATOR = auto()  # Fetches the samples inside its region


@dataclass(frozen=True)
class NodeConfig:
    """Immutable per-node settings fixed at construction."""

    role: Role
    builder_address: NodeId
    replication_target: int
    request_timeout: float = 5.0
    max_request_retries: int = 0


@dataclass
class PendingRequest:
    """Tracks an outstanding get-sample request."""

    request_id: RequestId
    sample_id: SampleId
    target_peer: ActorId
    sent_at: float
    attempt: int = 1


class DASNode(Actor):
    """Reactive DAS protocol handler.

    Builders store every sample of an announced block and answer get-sample
    requests. Validators request the samples falling inside their region from
    the builder and track outstanding requests until they are answered or
    time out. Nodes are created through make_node().
    """

    def __init__(
        self,
        actor_id: ActorId,
        simulator: Simulator,
        config: NodeConfig,
        directory: NodeDirectory,
        store: KeyValueStore | None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        if config.role == Role.BUILDER and store is None:
            raise ConfigurationError("store", store, "builder nodes need a store")

        super().__init__(actor_id, simulator)
        self._config = config
        self._directory = directory
        self._store = store
        self._metrics = metrics

        self._builder_actor: ActorId | None = None

        # Request tracking
        self._pending_requests: dict[RequestId, PendingRequest] = {}
        self._next_request_id: int = 0

        # Samples this node is responsible for / has fetched
        self._assigned: set[SampleId] = set()
        self._retrieved: dict[SampleId, bytes] = {}

    @property
    def node_id(self) -> NodeId:
        return self._directory.self_id

    @property
    def role(self) -> Role:
        return self._config.role

    @property
    def is_builder(self) -> bool:
        return self._config.role == Role.BUILDER

    @property
    def builder_address(self) -> NodeId:
        return self._config.builder_address

    @property
    def store(self) -> KeyValueStore | None:
        return self._store

    @property
    def pending_requests(self) -> Mapping[RequestId, PendingRequest]:
        return self._pending_requests

    @property
    def assigned_samples(self) -> set[SampleId]:
        return self._assigned

    @property
    def retrieved_samples(self) -> dict[SampleId, bytes]:
        return self._retrieved

    def on_event(self, payload: EventPayload) -> None:
        """Dispatch events to appropriate handlers."""
        match payload:
            case RequestTimeout(request_id=request_id):
                self._handle_request_timeout(request_id)
            case Message() as msg:
                validate_message(msg)
                self._handle_message(msg)
            case Command():
                pass  # Not addressed to nodes

    def _handle_message(self, msg: Message) -> None:
        match msg:
            case BlockAnnouncement(block=block):
                if self.is_builder:
                    self._ingest_block(block)
                else:
                    self._sample_block(block)
            case SampleAssignment(sample_id=sample_id):
                self._assigned.add(sample_id)
            case GetSample():
                self._handle_get_sample(msg)
            case SampleResponse():
                self._handle_sample_response(msg)
            case _:
                raise ProtocolViolation(msg, "unknown message kind")

    def _ingest_block(self, block: Block) -> None:
        """Store every sample of the block under its row id (column id as alias)."""
        store = self._store  # builders always hold one
        for sample in block.samples():
            store.add(sample.id, sample.payload, sample.column_id)
        logger.debug(
            "%s stored %d samples of block %d (%d entries held)",
            self._id,
            block.num_samples,
            block.sequence_number,
            len(store),
        )

    def _sample_block(self, block: Block) -> None:
        """Request every sample of the block that falls inside our region."""
        self.evict_expired()

        radius = block.compute_region_radius(
            self._config.replication_target, self._directory.network_size
        )
        for sample in block.samples():
            sample_id = region_match(sample, self.node_id, radius)
            if sample_id is not None:
                self._send_get_sample(sample_id)

    def _resolve_builder(self) -> ActorId:
        if self._builder_actor is None:
            self._builder_actor = self._directory.resolve(self._config.builder_address)
        return self._builder_actor

    def _send_get_sample(self, sample_id: SampleId, attempt: int = 1) -> None:
        target = self._resolve_builder()
        request_id = self._allocate_request_id()
        now = self._simulator.current_time

        self._pending_requests[request_id] = PendingRequest(
            request_id=request_id,
            sample_id=sample_id,
            target_peer=target,
            sent_at=now,
            attempt=attempt,
        )

        msg = GetSample(
            sender=self._id,
            src=self.node_id,
            dst=self._config.builder_address,
            timestamp=now,
            sample_id=sample_id,
            request_id=request_id,
        )
        self.send(msg, target)
        self.schedule_command(self._config.request_timeout, RequestTimeout(request_id))

        if self._metrics is not None:
            self._metrics.record_request(self._id, is_retry=attempt > 1)

    def _handle_get_sample(self, msg: GetSample) -> None:
        """Serve a sample from the store (builder only)."""
        if self._store is None:
            raise ProtocolViolation(msg, f"get-sample request sent to non-builder {self._id}")

        response = SampleResponse(
            sender=self._id,
            src=self.node_id,
            dst=msg.src,
            timestamp=self._simulator.current_time,
            sample_id=msg.sample_id,
            request_id=msg.request_id,
            payload=self._store.get(msg.sample_id),
        )
        self.send(response, msg.sender)

    def _handle_sample_response(self, msg: SampleResponse) -> None:
        request = self._pending_requests.pop(msg.request_id, None)
        if request is None:
            return  # Late response for an evicted request

        if msg.payload is None:
            if self._metrics is not None:
                self._metrics.record_sample_miss(self._id)
            return

        self._retrieved[msg.sample_id] = msg.payload
        if self._metrics is not None:
            self._metrics.record_response(self._id, self._simulator.current_time - request.sent_at)

    def _handle_request_timeout(self, request_id: RequestId) -> None:
        request = self._pending_requests.get(request_id)
        if request is None:
            return  # Already answered

        self._expire(request)

    def evict_expired(self) -> int:
        """Evict every pending request past its deadline; returns the count."""
        deadline = self._simulator.current_time - self._config.request_timeout
        expired = [r for r in self._pending_requests.values() if r.sent_at <= deadline]
        for request in expired:
            self._expire(request)
        return len(expired)

    def _expire(self, request: PendingRequest) -> None:
        del self._pending_requests[request.request_id]
        logger.debug(
            "%s: request %d for sample %#x timed out (attempt %d)",
            self._id,
            request.request_id,
            request.sample_id,
            request.attempt,
        )
        if self._metrics is not None:
            self._metrics.record_timeout(self._id)

        if request.attempt <= self._config.max_request_retries:
            self._send_get_sample(request.sample_id, attempt=request.attempt + 1)

    def _allocate_request_id(self) -> RequestId:
        request_id = RequestId(self._next_request_id)
        self._next_request_id += 1
        return request_id


def make_node(
    actor_id: ActorId,
    simulator: Simulator,
    config: NodeConfig,
    directory: NodeDirectory,
    store: KeyValueStore | None = None,
    metrics: MetricsCollector | None = None,
) -> DASNode:
    """Create a node; builders get a fresh store unless one is supplied."""
    if config.role == Role.BUILDER:
        if store is None:
            store = KeyValueStore()
    elif store is not None:
        raise ConfigurationError("store", store, "only builder nodes hold a store")

    return DASNode(actor_id, simulator, config, directory, store, metrics)
