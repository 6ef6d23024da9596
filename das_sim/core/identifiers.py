"""Identifier space and XOR distance metric."""

from __future__ import annotations

from dataclasses import dataclass
from hashlib import sha256
from typing import TYPE_CHECKING

from das_sim.config import ConfigurationError
from das_sim.core.types import NodeId

if TYPE_CHECKING:
    from random import Random

    from das_sim.core.types import ActorId

MAX_ID_BITS = 256  # sha256 digest width


def distance(a: int, b: int) -> int:
    """XOR distance between two identifiers."""
    return a ^ b


def within_radius(a: int, b: int, radius: int) -> bool:
    return distance(a, b) <= radius


def bucket_index(a: int, b: int) -> int:
    """Kademlia bucket holding b from a's point of view (-1 when a == b)."""
    return distance(a, b).bit_length() - 1


@dataclass(frozen=True)
class IdentifierSpace:
    """Fixed-width unsigned identifier space."""

    bits: int = MAX_ID_BITS

    def __post_init__(self) -> None:
        if not 1 <= self.bits <= MAX_ID_BITS:
            raise ConfigurationError("id_bits", self.bits, f"must be in [1, {MAX_ID_BITS}]")

    @property
    def size(self) -> int:
        return 1 << self.bits

    @property
    def max_id(self) -> int:
        return self.size - 1

    def contains(self, identifier: int) -> bool:
        return 0 <= identifier <= self.max_id

    def digest_id(self, text: str) -> int:
        """Top `bits` bits of sha256(text)."""
        digest = int.from_bytes(sha256(text.encode()).digest(), "big")
        return digest >> (MAX_ID_BITS - self.bits)

    def node_id(self, actor_id: ActorId) -> NodeId:
        return NodeId(self.digest_id(actor_id))

    def random_id(self, rng: Random) -> int:
        return rng.getrandbits(self.bits)
