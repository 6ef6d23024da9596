"""Simulation configuration."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path


DEFAULT_BLOCK_DIM_SIZE = 16  # used when block_dim_size is not set
DEFAULT_ID_BITS = 256


class ConfigurationError(ValueError):
    """A configuration parameter is missing or invalid."""

    def __init__(self, key: str, value: object, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid configuration {key}={value!r}: {reason}")


class MappingFunction(Enum):
    """How a sample's (row, column) cell is mapped onto the identifier space."""

    LINEAR = 1  # Cells evenly spaced, row-major for row ids, column-major for column ids
    HASH = 2  # Cells hashed independently


TRANSPORTS = ("uniform", "unreliable")
ROUTING_PROTOCOLS = ("kademlia",)

# Host-style parameter names that differ from the dataclass field names
_PARAM_ALIASES = {
    "sample_copy_per_node": "sample_copies_per_peer",
    "kademlia": "routing",
}
_REQUIRED_PARAMS = ("sample_copies_per_peer",)


@dataclass(frozen=True)
class SimulationConfig:
    """Configuration for the DAS simulation."""

    # Network
    node_count: int = 100  # validators; the builder is added on top
    transport: str = "uniform"
    routing: str = "kademlia"
    id_bits: int = DEFAULT_ID_BITS
    bucket_size: int = 3  # contacts kept per Kademlia bucket

    # Sampling
    mapping_fn: MappingFunction = MappingFunction.LINEAR
    sample_copies_per_peer: int = 2  # replication target per sample
    block_dim_size: int = DEFAULT_BLOCK_DIM_SIZE

    # Requests
    request_timeout: float = 5.0
    max_request_retries: int = 0

    # Rounds
    round_interval: float = 300.0  # one block every 5 minutes
    rounds: int | None = 1

    # Transport
    min_delay: float = 0.01
    max_delay: float = 0.1
    drop_rate: float = 0.0  # only honored by the unreliable transport

    seed: int = 42

    def validate(self) -> None:
        """Raise ConfigurationError on the first invalid parameter."""
        if self.node_count < 1:
            raise ConfigurationError("node_count", self.node_count, "must be positive")
        if self.transport not in TRANSPORTS:
            raise ConfigurationError("transport", self.transport, f"expected one of {TRANSPORTS}")
        if self.routing not in ROUTING_PROTOCOLS:
            raise ConfigurationError(
                "routing", self.routing, f"expected one of {ROUTING_PROTOCOLS}"
            )
        if not 1 <= self.id_bits <= 256:
            raise ConfigurationError("id_bits", self.id_bits, "must be in [1, 256]")
        if self.bucket_size < 1:
            raise ConfigurationError("bucket_size", self.bucket_size, "must be positive")
        if self.sample_copies_per_peer < 0:
            raise ConfigurationError(
                "sample_copies_per_peer", self.sample_copies_per_peer, "must be non-negative"
            )
        if self.block_dim_size < 1:
            raise ConfigurationError("block_dim_size", self.block_dim_size, "must be positive")
        if 2 * self.block_dim_size**2 > 1 << self.id_bits:
            # Every cell needs a distinct row id and column id
            raise ConfigurationError(
                "block_dim_size",
                self.block_dim_size,
                f"{2 * self.block_dim_size**2} sample ids do not fit in {self.id_bits} bits",
            )
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout", self.request_timeout, "must be positive")
        if self.max_request_retries < 0:
            raise ConfigurationError(
                "max_request_retries", self.max_request_retries, "must be non-negative"
            )
        if self.round_interval <= 0:
            raise ConfigurationError("round_interval", self.round_interval, "must be positive")
        if self.rounds is not None and self.rounds < 1:
            raise ConfigurationError("rounds", self.rounds, "must be positive or None")
        if self.min_delay < 0 or self.max_delay < self.min_delay:
            raise ConfigurationError(
                "max_delay", self.max_delay, f"must be >= min_delay ({self.min_delay}) >= 0"
            )
        if not 0.0 <= self.drop_rate < 1.0:
            raise ConfigurationError("drop_rate", self.drop_rate, "must be in [0, 1)")

    @property
    def effective_drop_rate(self) -> float:
        return self.drop_rate if self.transport == "unreliable" else 0.0

    @classmethod
    def from_mapping(cls, params: Mapping[str, object], prefix: str = "") -> SimulationConfig:
        """Build a config from flat host-style parameters.

        Keys are looked up as "<prefix>.<name>" when a prefix is given. The
        replication target (sample_copy_per_node) is required; everything else
        falls back to the defaults, block_dim_size included.
        """
        scoped: dict[str, object] = {}
        for key, value in params.items():
            if prefix:
                if not key.startswith(prefix + "."):
                    continue
                key = key[len(prefix) + 1 :]
            scoped[_PARAM_ALIASES.get(key, key)] = value

        for name in _REQUIRED_PARAMS:
            if name not in scoped:
                raise ConfigurationError(name, None, "required parameter missing")

        kwargs: dict[str, object] = {}
        for f in fields(cls):
            if f.name in scoped:
                kwargs[f.name] = _coerce(f.name, scoped[f.name], getattr(cls, f.name))

        config = cls(**kwargs)  # type: ignore[arg-type]
        config.validate()
        return config

    @classmethod
    def from_toml(cls, path: Path) -> SimulationConfig:
        """Load the [simulation] table of a TOML file."""
        import tomllib

        with path.open("rb") as f:
            data = tomllib.load(f)

        return cls.from_mapping(data.get("simulation", {}))


def _coerce(name: str, value: object, default: object) -> object:
    """Convert a raw parameter to the type of the field's default."""
    try:
        if name == "mapping_fn":
            if isinstance(value, MappingFunction):
                return value
            if isinstance(value, str) and not value.isdigit():
                return MappingFunction[value.upper()]
            return MappingFunction(int(value))  # type: ignore[call-overload]
        if name == "rounds" and value is None:
            return None
        if isinstance(default, int) or name == "rounds":
            return int(value)  # type: ignore[call-overload]
        if isinstance(default, float):
            return float(value)  # type: ignore[arg-type]
        return str(value)
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(name, value, str(e)) from e
