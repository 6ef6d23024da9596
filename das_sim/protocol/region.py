"""Region assignment: which peers are responsible for which samples.

A peer is responsible for a sample when its identifier lies within the region
radius of the sample's row id or column id. The round driver and every node
use these same functions so their views of responsibility never diverge.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from das_sim.config import ConfigurationError
from das_sim.core.identifiers import within_radius

if TYPE_CHECKING:
    from das_sim.core.identifiers import IdentifierSpace
    from das_sim.core.types import NodeId, SampleId
    from das_sim.protocol.block import Sample


def region_radius(replication_target: int, network_size: int, space: IdentifierSpace) -> int:
    """Largest radius whose expected peer count approximates replication_target.

    Under XOR distance exactly radius + 1 identifiers lie within radius of any
    target, so with network_size uniformly placed peers the expected holder
    count is network_size * (radius + 1) / space.size.
    """
    if network_size <= 0:
        raise ConfigurationError(
            "network_size", network_size, "radius is undefined for an empty network"
        )
    if replication_target < 0:
        raise ConfigurationError(
            "sample_copies_per_peer", replication_target, "must be non-negative"
        )

    radius = (replication_target * space.size) // network_size - 1
    return min(max(0, radius), space.max_id)


def is_in_region_by_row(sample: Sample, peer_id: NodeId, radius: int) -> bool:
    return within_radius(sample.row_id, peer_id, radius)


def is_in_region_by_column(sample: Sample, peer_id: NodeId, radius: int) -> bool:
    return within_radius(sample.column_id, peer_id, radius)


def is_in_region(sample: Sample, peer_id: NodeId, radius: int) -> bool:
    return is_in_region_by_row(sample, peer_id, radius) or is_in_region_by_column(
        sample, peer_id, radius
    )


def region_match(sample: Sample, peer_id: NodeId, radius: int) -> SampleId | None:
    """Identifier under which the peer holds the sample, row id first."""
    if is_in_region_by_row(sample, peer_id, radius):
        return sample.row_id
    if is_in_region_by_column(sample, peer_id, radius):
        return sample.column_id
    return None
