"""Core type aliases for the simulation."""

from typing import NewType

# Actor identification - unique string identifier for each actor in the simulation
ActorId = NewType("ActorId", str)

# Overlay identifier of a node - unsigned integer in the identifier space
NodeId = NewType("NodeId", int)

# Sample identifier - row- or column-derived key in the identifier space
SampleId = NewType("SampleId", int)

# Request ID for matching request/response pairs
RequestId = NewType("RequestId", int)
