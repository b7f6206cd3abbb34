"""Tests for configuration loading and validation."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
import yaml

from shieldpool.config.loader import ConfigError, load_config, save_config
from shieldpool.config.schema import ShieldPoolConfig, TreeConfig
from shieldpool.crypto.field import FIELD_SIZE
from shieldpool.tree.merkle import ZERO_VALUE


def test_default_config():
    """Test that default config has expected values."""
    config = ShieldPoolConfig()

    assert config.note.prefix == "shieldpool"
    assert config.note.asset == "eth"
    assert config.note.denomination == "1"
    assert config.note.network_id == 1
    assert config.note.decimals == 18

    assert config.tree.height == 20
    assert config.tree.zero_value == ZERO_VALUE
    assert config.tree.root_history_size == 30

    assert config.prover.snarkjs_path == "snarkjs"
    assert config.prover.timeout == 300


def test_load_config_nonexistent_returns_defaults():
    """Test that loading a nonexistent config returns defaults."""
    with TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "nonexistent.yaml"
        config = load_config(config_path)

        assert config.tree.height == 20


def test_load_config_empty_file_returns_defaults():
    """Test that an empty config file returns defaults."""
    with TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "empty.yaml"
        config_path.write_text("")

        config = load_config(config_path)
        assert config.note.asset == "eth"


def test_load_config_partial_override():
    """Test that partial config overrides only specified values."""
    with TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "partial.yaml"
        config_path.write_text(
            yaml.dump(
                {
                    "note": {"denomination": "0.1", "network_id": 5},
                    "tree": {"height": 4},
                }
            )
        )

        config = load_config(str(config_path))

        assert config.note.denomination == "0.1"
        assert config.note.network_id == 5
        assert config.note.asset == "eth"
        assert config.tree.height == 4
        assert config.tree.root_history_size == 30


def test_load_config_invalid_yaml():
    """Test that invalid YAML raises ConfigError."""
    with TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "invalid.yaml"
        config_path.write_text("tree: [unclosed")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(config_path)


@pytest.mark.parametrize(
    "data",
    [
        {"tree": {"height": 0}},
        {"tree": {"height": 33}},
        {"tree": {"zero_value": FIELD_SIZE}},
        {"note": {"denomination": "1."}},
        {"note": {"prefix": "bad-prefix"}},
        {"prover": {"timeout": 0}},
    ],
)
def test_load_config_validation_error(data):
    """Test that out-of-range values raise ConfigError."""
    with TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "bad.yaml"
        config_path.write_text(yaml.dump(data))

        with pytest.raises(ConfigError, match="validation failed"):
            load_config(config_path)


def test_load_config_not_a_mapping():
    with TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "list.yaml"
        config_path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_config(config_path)


def test_save_and_reload():
    """Test that a saved config loads back unchanged."""
    with TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "nested" / "shieldpool.yaml"
        config = ShieldPoolConfig(tree=TreeConfig(height=8))
        config.note.asset = "dai"

        save_config(config, config_path)
        loaded = load_config(config_path)

        assert loaded == config
        assert loaded.tree.zero_value == ZERO_VALUE


def test_validation_error_names_field():
    """Test that validation errors point at the offending key."""
    with TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "bad.yaml"
        config_path.write_text(yaml.dump({"tree": {"height": 40}}))

        with pytest.raises(ConfigError, match="tree.height"):
            load_config(config_path)


@pytest.mark.parametrize(
    "note",
    [
        {"denomination": "0.001", "decimals": 2},
        {"denomination": "0"},
        {"denomination": "0.000"},
    ],
)
def test_load_config_rejects_unusable_denomination(note):
    """Test that a denomination the pool cannot lock fails at load time."""
    with TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "pool.yaml"
        config_path.write_text(yaml.dump({"note": note}))

        with pytest.raises(ConfigError, match="note.denomination"):
            load_config(config_path)


def test_load_config_unreadable_path():
    """Test that a path that cannot be read raises ConfigError."""
    with TemporaryDirectory() as tmpdir:
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(tmpdir)


def test_save_config_writes_only_overrides():
    with TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "shieldpool.yaml"
        config = ShieldPoolConfig(tree=TreeConfig(height=8))

        assert save_config(config, str(config_path)) == config_path

        saved = yaml.safe_load(config_path.read_text())
        assert saved["tree"] == {"height": 8}
        assert "zero_value" not in config_path.read_text()


def test_save_config_rejects_zero_denomination():
    with TemporaryDirectory() as tmpdir:
        config = ShieldPoolConfig()
        config.note.denomination = "0"

        with pytest.raises(ConfigError):
            save_config(config, Path(tmpdir) / "shieldpool.yaml")
