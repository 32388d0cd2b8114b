"""Configuration loader.

Resolves an ``AskConfig`` from three layers, lowest priority first:
packaged defaults.toml, environment (after keys.env / .env are loaded),
and explicit overrides from the command line.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from runask.keys import (
    API_KEY_ENV,
    PIPELINE_ID_ENV,
    STREAMING_SPEED_ENV,
    load_keys_env,
)
from runask.schemas.config import AskConfig

logger = logging.getLogger(__name__)

_CONFIG_DIR = Path(__file__).parent / "config"

_DEFAULT_SPEED_MS = 30


def load_defaults(config_path: Path | None = None) -> dict[str, Any]:
    """Read the ``[ask]`` table from a TOML file.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the ``[ask]`` section is missing or not a table.
    """
    path = config_path or _CONFIG_DIR / "defaults.toml"
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    section = raw.get("ask")
    if not isinstance(section, dict):
        raise ValueError(f"No [ask] section found in {path}")
    return dict(section)


def parse_speed(value: str | None, default: int = _DEFAULT_SPEED_MS) -> int:
    """Parse a ms-per-character preference, falling back on bad input."""
    if value is None or not value.strip():
        return default
    try:
        speed = int(value.strip())
    except ValueError:
        logger.warning("Ignoring non-numeric streaming speed %r, using %d", value, default)
        return default
    if speed < 0:
        logger.warning("Ignoring negative streaming speed %d, using %d", speed, default)
        return default
    return speed


def load_config(
    config_path: Path | None = None,
    *,
    load_env_files: bool = True,
    **overrides: Any,
) -> AskConfig:
    """Build the effective configuration.

    Args:
        config_path: TOML defaults file. Defaults to runask/config/defaults.toml.
        load_env_files: Load ~/.runask/keys.env and ./.env first.
        **overrides: AskConfig fields from the command line; None values
            are ignored.
    """
    if load_env_files:
        load_keys_env()

    values = load_defaults(config_path)

    env_speed = os.environ.get(STREAMING_SPEED_ENV)
    values["streaming_speed_ms"] = parse_speed(
        env_speed, default=int(values.get("streaming_speed_ms", _DEFAULT_SPEED_MS)),
    )
    values["api_key"] = os.environ.get(API_KEY_ENV, "")
    values["pipeline_id"] = os.environ.get(PIPELINE_ID_ENV, "")

    values.update({k: v for k, v in overrides.items() if v is not None})
    return AskConfig(**values)
