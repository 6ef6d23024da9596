"""Builder-side sample storage."""

from das_sim.store.kv_store import KeyValueStore

__all__ = ["KeyValueStore"]
