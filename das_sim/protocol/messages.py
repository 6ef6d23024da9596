"""DAS protocol message types."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..core.actor import Message
from ..core.types import RequestId, SampleId
from .block import Block
from .constants import BLOCK_HEADER_SIZE, ID_SIZE, MESSAGE_OVERHEAD


class ProtocolViolation(Exception):
    """A message cannot be processed as the protocol defines it."""

    def __init__(self, msg: Message, reason: str) -> None:
        self.message = msg
        self.reason = reason
        super().__init__(f"{type(msg).__name__} from {msg.sender}: {reason}")


@dataclass
class BlockAnnouncement(Message):
    """Announce a new block; builders ingest it, validators sample it."""

    block: Block = field(repr=False)

    @property
    def size_bytes(self) -> int:
        return BLOCK_HEADER_SIZE


@dataclass
class SampleAssignment(Message):
    """Hand a node responsibility for a sample at round start.

    Sent directly by the round driver, bypassing the request/response path.
    """

    sample_id: SampleId

    @property
    def size_bytes(self) -> int:
        return MESSAGE_OVERHEAD + ID_SIZE


@dataclass
class GetSample(Message):
    """Request a sample from the builder by row or column id."""

    sample_id: SampleId
    request_id: RequestId

    @property
    def size_bytes(self) -> int:
        return MESSAGE_OVERHEAD + ID_SIZE


@dataclass
class SampleResponse(Message):
    """Response to GetSample; payload is None when the builder lacks the sample."""

    sample_id: SampleId
    request_id: RequestId
    payload: bytes | None = field(default=None, repr=False)

    @property
    def size_bytes(self) -> int:
        return MESSAGE_OVERHEAD + ID_SIZE + (len(self.payload) if self.payload else 0)


def validate_message(msg: Message) -> None:
    """Reject messages missing their overlay source or destination."""
    if msg.src is None:
        raise ProtocolViolation(msg, "missing source identifier")
    if msg.dst is None:
        raise ProtocolViolation(msg, "missing destination identifier")
