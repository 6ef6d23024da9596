"""Tests for simulation configuration."""

from pathlib import Path

import pytest

from das_sim.config import (
    DEFAULT_BLOCK_DIM_SIZE,
    ConfigurationError,
    MappingFunction,
    SimulationConfig,
)


class TestSimulationConfig:
    def test_default_values(self) -> None:
        """Defaults describe a 100-validator network with 2 copies per sample."""
        config = SimulationConfig()

        assert config.node_count == 100
        assert config.transport == "uniform"
        assert config.routing == "kademlia"
        assert config.id_bits == 256
        assert config.mapping_fn == MappingFunction.LINEAR
        assert config.sample_copies_per_peer == 2
        assert config.block_dim_size == DEFAULT_BLOCK_DIM_SIZE
        assert config.request_timeout == 5.0
        assert config.max_request_retries == 0
        assert config.rounds == 1
        assert config.seed == 42

    def test_defaults_are_valid(self) -> None:
        SimulationConfig().validate()

    def test_config_is_frozen(self) -> None:
        """Configuration is immutable after creation."""
        config = SimulationConfig()

        with pytest.raises(AttributeError):
            config.node_count = 10  # type: ignore[misc]

    @pytest.mark.parametrize(
        ("overrides", "key"),
        [
            ({"node_count": 0}, "node_count"),
            ({"transport": "carrier-pigeon"}, "transport"),
            ({"routing": "chord"}, "routing"),
            ({"id_bits": 0}, "id_bits"),
            ({"id_bits": 512}, "id_bits"),
            ({"sample_copies_per_peer": -1}, "sample_copies_per_peer"),
            ({"block_dim_size": 0}, "block_dim_size"),
            ({"request_timeout": 0.0}, "request_timeout"),
            ({"rounds": 0}, "rounds"),
            ({"min_delay": 0.5, "max_delay": 0.1}, "max_delay"),
            ({"drop_rate": 1.0}, "drop_rate"),
            ({"id_bits": 8, "block_dim_size": 32}, "block_dim_size"),
            ({"id_bits": 8, "block_dim_size": 16}, "block_dim_size"),
        ],
    )
    def test_validate_rejects(self, overrides: dict[str, object], key: str) -> None:
        config = SimulationConfig(**overrides)  # type: ignore[arg-type]

        with pytest.raises(ConfigurationError) as exc_info:
            config.validate()
        assert exc_info.value.key == key

    def test_block_fills_narrow_space(self) -> None:
        """Row and column ids of a 16x16 block exactly fill a 9-bit space."""
        SimulationConfig(id_bits=9, block_dim_size=16).validate()

    def test_drop_rate_only_for_unreliable_transport(self) -> None:
        assert SimulationConfig(drop_rate=0.2).effective_drop_rate == 0.0
        assert SimulationConfig(transport="unreliable", drop_rate=0.2).effective_drop_rate == 0.2


class TestFromMapping:
    def test_host_style_keys(self) -> None:
        """Host parameter names map onto config fields."""
        config = SimulationConfig.from_mapping(
            {
                "transport": "unreliable",
                "kademlia": "kademlia",
                "mapping_fn": "2",
                "sample_copy_per_node": "3",
                "block_dim_size": "8",
            }
        )

        assert config.transport == "unreliable"
        assert config.mapping_fn == MappingFunction.HASH
        assert config.sample_copies_per_peer == 3
        assert config.block_dim_size == 8

    def test_prefix_scopes_keys(self) -> None:
        config = SimulationConfig.from_mapping(
            {
                "control.traffic.sample_copy_per_node": 4,
                "control.traffic.node_count": 10,
                "other.node_count": 999,
            },
            prefix="control.traffic",
        )

        assert config.sample_copies_per_peer == 4
        assert config.node_count == 10

    def test_block_dim_size_defaults(self) -> None:
        config = SimulationConfig.from_mapping({"sample_copy_per_node": 1})

        assert config.block_dim_size == DEFAULT_BLOCK_DIM_SIZE

    def test_missing_replication_target(self) -> None:
        with pytest.raises(ConfigurationError, match="required parameter missing"):
            SimulationConfig.from_mapping({"block_dim_size": 4})

    def test_non_numeric_value(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            SimulationConfig.from_mapping({"sample_copy_per_node": "two"})
        assert exc_info.value.key == "sample_copies_per_peer"

    def test_mapping_fn_by_name(self) -> None:
        config = SimulationConfig.from_mapping({"sample_copy_per_node": 1, "mapping_fn": "hash"})

        assert config.mapping_fn == MappingFunction.HASH

    def test_unknown_mapping_fn(self) -> None:
        with pytest.raises(ConfigurationError):
            SimulationConfig.from_mapping({"sample_copy_per_node": 1, "mapping_fn": 7})

    def test_loaded_config_is_validated(self) -> None:
        with pytest.raises(ConfigurationError):
            SimulationConfig.from_mapping({"sample_copy_per_node": 1, "node_count": 0})

    def test_from_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "sim.toml"
        path.write_text(
            "[simulation]\n"
            "sample_copy_per_node = 5\n"
            "node_count = 20\n"
            'mapping_fn = "linear"\n'
            "request_timeout = 2.5\n",
            encoding="utf-8",
        )

        config = SimulationConfig.from_toml(path)

        assert config.sample_copies_per_peer == 5
        assert config.node_count == 20
        assert config.mapping_fn == MappingFunction.LINEAR
        assert config.request_timeout == 2.5
