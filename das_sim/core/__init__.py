"""Core simulation infrastructure."""

from das_sim.core.actor import Actor, Command, Event, EventPayload, Message
from das_sim.core.identifiers import IdentifierSpace, distance, within_radius
from das_sim.core.types import ActorId, NodeId, RequestId, SampleId

__all__ = [
    "Actor",
    "ActorId",
    "Command",
    "Event",
    "EventPayload",
    "IdentifierSpace",
    "Message",
    "NodeId",
    "RequestId",
    "SampleId",
    "distance",
    "within_radius",
]
