"""Shared fixtures for CLI tests."""

import json
from pathlib import Path

import pytest


@pytest.fixture
def tmp_config_path(tmp_path: Path) -> Path:
    """Provide a config path with a small tree."""
    path = tmp_path / "shieldpool.yaml"
    path.write_text("tree:\n  height: 4\n")
    return path


@pytest.fixture
def deposits(scheme):
    """Three deposits, the middle one derived from nullifier=7, secret=42."""
    return [scheme.derive(1, 2), scheme.derive(7, 42), scheme.derive(3, 4)]


@pytest.fixture
def events_file(tmp_path: Path, deposits) -> Path:
    """Exported event log for *deposits*, written out of order."""
    records = [
        {"leafIndex": i, "commitment": d.commitment.to_hex()} for i, d in enumerate(deposits)
    ]
    path = tmp_path / "events.json"
    path.write_text(json.dumps(list(reversed(records))))
    return path
