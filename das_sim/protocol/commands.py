"""Commands for local simulation events (not transmitted over network).

Commands are local events that actors send to themselves or receive from
the simulation infrastructure. Unlike Messages, Commands are never transmitted
over the network.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from das_sim.core.events import Command

if TYPE_CHECKING:
    from das_sim.core.types import RequestId

__all__ = [
    "Command",
    "RequestTimeout",
    "StartRound",
]


@dataclass
class StartRound(Command):
    """Round boundary tick: produce and distribute the next block."""


@dataclass
class RequestTimeout(Command):
    """Deadline for a pending get-sample request."""

    request_id: RequestId
