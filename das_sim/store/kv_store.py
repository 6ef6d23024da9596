"""Builder-local key-value store of sample payloads."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from das_sim.core.types import SampleId


class KeyValueStore:
    """Mapping from sample id to payload in which the latest insert wins.

    A value may be reachable under extra alias keys (a sample's column id
    resolves to the entry stored under its row id). Every identifier is bound
    to at most one entry: adding a key or alias that is already bound drops
    the old binding, and replacing a primary key drops the aliases that
    pointed at it. Only primary keys count towards the store's size.
    """

    def __init__(self) -> None:
        self._values: dict[SampleId, bytes] = {}
        self._aliases: dict[SampleId, SampleId] = {}
        self._aliases_of: defaultdict[SampleId, set[SampleId]] = defaultdict(set)

    def add(self, key: SampleId, value: bytes, *aliases: SampleId) -> None:
        self._unbind(key)
        self._values[key] = value
        for alias in aliases:
            if alias == key:
                continue
            self._unbind(alias)
            self._aliases[alias] = key
            self._aliases_of[key].add(alias)

    def _unbind(self, key: SampleId) -> None:
        if key in self._values:
            del self._values[key]
            for alias in self._aliases_of.pop(key, set()):
                del self._aliases[alias]
        elif key in self._aliases:
            self._aliases_of[self._aliases.pop(key)].discard(key)

    def get(self, key: SampleId) -> bytes | None:
        """Look up by primary key, then by alias."""
        if key in self._values:
            return self._values[key]
        if key in self._aliases:
            return self._values[self._aliases[key]]
        return None

    def contains(self, key: SampleId) -> bool:
        return key in self._values or key in self._aliases

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[SampleId]:
        return iter(self._values)
