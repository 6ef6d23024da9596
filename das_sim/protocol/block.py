"""Blocks and the samples they are made of."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from hashlib import sha256

from das_sim.config import ConfigurationError, MappingFunction
from das_sim.core.identifiers import IdentifierSpace
from das_sim.core.types import SampleId
from das_sim.protocol.region import region_radius


@dataclass(frozen=True)
class Sample:
    """One grid cell of a block.

    A sample is addressable by two identifiers: one derived from its position
    in row-major order and one from column-major order. Equality only looks at
    the block sequence number and the cell coordinates.
    """

    sequence_number: int
    row: int
    column: int
    row_id: SampleId = field(compare=False)
    column_id: SampleId = field(compare=False)
    payload: bytes = field(compare=False, repr=False)

    @property
    def id(self) -> SampleId:
        """Primary key of the sample in a builder's store."""
        return self.row_id


class Block:
    """A D x D grid of samples tagged with a sequence number.

    Samples are materialized lazily. The block is its own row-major iterator;
    init_iterator() rewinds it so the same block can be replayed. samples()
    gives an independent full pass that leaves the cursor alone.
    """

    def __init__(
        self,
        dimension: int,
        sequence_number: int,
        space: IdentifierSpace | None = None,
        mapping_fn: MappingFunction = MappingFunction.LINEAR,
    ) -> None:
        if dimension < 1:
            raise ConfigurationError("block_dim_size", dimension, "must be positive")
        if sequence_number < 0:
            raise ConfigurationError("sequence_number", sequence_number, "must be non-negative")

        self._dimension = dimension
        self._sequence_number = sequence_number
        self._space = space or IdentifierSpace()
        self._mapping_fn = mapping_fn
        self._cursor = 0

        if 2 * self.num_samples > self._space.size:
            raise ConfigurationError(
                "block_dim_size",
                dimension,
                f"{2 * self.num_samples} row and column ids do not fit in {self._space.bits} bits",
            )

        # Cells are spread evenly over the id space, shifted per block. Column
        # ids sit halfway between row ids so the two grids never overlap.
        self._spacing = self._space.size // self.num_samples
        self._offset = self._space.digest_id(f"block:{sequence_number}")
        self._column_offset = self._offset + self._spacing // 2

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def sequence_number(self) -> int:
        return self._sequence_number

    @property
    def space(self) -> IdentifierSpace:
        return self._space

    @property
    def num_samples(self) -> int:
        return self._dimension * self._dimension

    def has_next(self) -> bool:
        return self._cursor < self.num_samples

    def next_sample(self) -> Sample:
        """Return the sample under the cursor and advance.

        Raises StopIteration once every cell has been produced.
        """
        if not self.has_next():
            raise StopIteration(f"Block {self._sequence_number} exhausted")
        row, column = divmod(self._cursor, self._dimension)
        self._cursor += 1
        return self.sample_at(row, column)

    def init_iterator(self) -> None:
        self._cursor = 0

    def __iter__(self) -> Iterator[Sample]:
        return self

    def __next__(self) -> Sample:
        return self.next_sample()

    def samples(self) -> Iterator[Sample]:
        for row in range(self._dimension):
            for column in range(self._dimension):
                yield self.sample_at(row, column)

    def sample_at(self, row: int, column: int) -> Sample:
        if not (0 <= row < self._dimension and 0 <= column < self._dimension):
            raise IndexError(f"Cell ({row}, {column}) outside {self._dimension}x{self._dimension}")
        return Sample(
            sequence_number=self._sequence_number,
            row=row,
            column=column,
            row_id=self._row_id(row, column),
            column_id=self._column_id(row, column),
            payload=sha256(f"{self._sequence_number}:{row}:{column}".encode()).digest(),
        )

    def _row_id(self, row: int, column: int) -> SampleId:
        match self._mapping_fn:
            case MappingFunction.LINEAR:
                return self._linear_id(row * self._dimension + column, self._offset)
            case MappingFunction.HASH:
                return SampleId(
                    self._space.digest_id(f"row:{self._sequence_number}:{row}:{column}")
                )

    def _column_id(self, row: int, column: int) -> SampleId:
        match self._mapping_fn:
            case MappingFunction.LINEAR:
                return self._linear_id(column * self._dimension + row, self._column_offset)
            case MappingFunction.HASH:
                return SampleId(
                    self._space.digest_id(f"column:{self._sequence_number}:{row}:{column}")
                )

    def _linear_id(self, index: int, offset: int) -> SampleId:
        return SampleId((index * self._spacing + offset) % self._space.size)

    def compute_region_radius(self, replication_target: int, network_size: int) -> int:
        """Radius giving each sample about replication_target holders."""
        return region_radius(replication_target, network_size, self._space)

    def __repr__(self) -> str:
        return (
            f"Block(seq={self._sequence_number}, dim={self._dimension}, "
            f"mapping={self._mapping_fn.name})"
        )
