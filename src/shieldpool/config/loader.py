"""Loading, validation and saving of shieldpool.yaml.

A pool's note settings and tree parameters must match the deployed pool
exactly, so a config that would only fail at deposit or withdrawal time is
rejected here instead.
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from shieldpool.client import parse_amount
from shieldpool.config.schema import ShieldPoolConfig
from shieldpool.errors import DenominationMismatchError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".shieldpool" / "shieldpool.yaml"


class ConfigError(Exception):
    """Configuration loading or validation error."""


def _resolve(path: str | Path | None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path)


def _format_validation_error(error: ValidationError) -> str:
    lines = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "<root>"
        lines.append(f"  {location}: {item['msg']}")
    return "\n".join(lines)


def _check_pool(config: ShieldPoolConfig) -> None:
    """Cross-field checks pydantic cannot express per field."""
    note = config.note
    try:
        units = parse_amount(note.denomination, note.decimals)
    except DenominationMismatchError as e:
        raise ConfigError(f"note.denomination: {e}") from e
    if units == 0:
        raise ConfigError("note.denomination: a pool cannot have a zero denomination")


def load_config(path: str | Path | None = None) -> ShieldPoolConfig:
    """Load and validate the pool configuration.

    Args:
        path: Config file. Defaults to ``~/.shieldpool/shieldpool.yaml``.
            A missing or empty file yields the default configuration.

    Raises:
        ConfigError: If the file cannot be read, is not a YAML mapping, or
            describes an invalid pool.
    """
    path = _resolve(path)
    if not path.exists():
        logger.debug("No config at %s, using defaults", path)
        return ShieldPoolConfig()

    try:
        data = yaml.safe_load(path.read_text())
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return ShieldPoolConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")

    try:
        config = ShieldPoolConfig.model_validate(data)
    except ValidationError as e:
        details = _format_validation_error(e)
        raise ConfigError(f"Configuration validation failed in {path}:\n{details}") from e

    _check_pool(config)
    logger.debug("Loaded config from %s", path)
    return config


def save_config(config: ShieldPoolConfig, path: str | Path | None = None) -> Path:
    """Write the settings that differ from the defaults. Returns the path.

    Defaults are left out so the zero value and prover paths keep tracking
    the library unless they were set explicitly.
    """
    _check_pool(config)
    path = _resolve(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(exclude_defaults=True)
    path.write_text(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
    return path
