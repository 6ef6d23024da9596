"""P2P node behavior."""

from .node import DASNode, NodeConfig, PendingRequest, Role, make_node

__all__ = [
    "DASNode",
    "NodeConfig",
    "PendingRequest",
    "Role",
    "make_node",
]
