"""Protocol layer: blocks, region assignment, and messages."""

from das_sim.protocol.block import Block, Sample
from das_sim.protocol.messages import (
    BlockAnnouncement,
    GetSample,
    ProtocolViolation,
    SampleAssignment,
    SampleResponse,
)
from das_sim.protocol.region import (
    is_in_region,
    is_in_region_by_column,
    is_in_region_by_row,
    region_match,
    region_radius,
)

__all__ = [
    "Block",
    "BlockAnnouncement",
    "GetSample",
    "ProtocolViolation",
    "Sample",
    "SampleAssignment",
    "SampleResponse",
    "is_in_region",
    "is_in_region_by_column",
    "is_in_region_by_row",
    "region_match",
    "region_radius",
]
