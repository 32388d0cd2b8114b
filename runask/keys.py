"""API key and preference management for runask.

Keys are stored in ~/.runask/keys.env and loaded with this priority:
  1. Environment variables (highest, already set in shell)
  2. ~/.runask/keys.env (user's saved keys from `runask setup`)
  3. .env in current directory (project-level)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

RUNASK_HOME = Path.home() / ".runask"
KEYS_FILE = RUNASK_HOME / "keys.env"

API_KEY_ENV = "RUNLLM_API_KEY"
PIPELINE_ID_ENV = "RUNLLM_PIPELINE_ID"
STREAMING_SPEED_ENV = "RUNLLM_STREAMING_SPEED"

# (env_var, display_name, description, secret)
PREFERENCES = [
    (API_KEY_ENV, "API Key", "Your RunLLM API key", True),
    (PIPELINE_ID_ENV, "Pipeline ID", "The pipeline to ask questions of", False),
    (STREAMING_SPEED_ENV, "Streaming Speed", "Milliseconds per character (default 30)", False),
]


def load_keys_env(keys_file: Path | None = None) -> None:
    """Load preferences from keys.env and .env into os.environ.

    Existing env vars are NOT overwritten, and earlier files win over
    later ones.
    """
    files = [keys_file or KEYS_FILE, Path.cwd() / ".env"]
    for env_file in files:
        if env_file.is_file():
            _load_env_file(env_file)


def _load_env_file(path: Path) -> None:
    """Parse a simple KEY=VALUE .env file and set vars that aren't already set."""
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip("'\"")
            if key and not os.environ.get(key):
                os.environ[key] = value
                logger.debug("Loaded %s from %s", key, path)
    except OSError:
        logger.debug("Could not read %s", path)


def save_keys(keys: dict[str, str], keys_file: Path | None = None) -> Path:
    """Save preferences to keys.env (only non-empty values).

    Returns:
        Path to the saved file.
    """
    path = keys_file or KEYS_FILE
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = ["# runask preferences", "# Saved by `runask setup`", ""]
    for env_var, value in keys.items():
        if value:
            lines.append(f"{env_var}={value}")

    path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    # Restrict permissions on Unix
    try:
        path.chmod(0o600)
    except OSError:
        pass

    return path


def clear_keys(keys_file: Path | None = None) -> bool:
    """Remove keys.env. Returns False if it didn't exist."""
    path = keys_file or KEYS_FILE
    if path.is_file():
        path.unlink()
        return True
    return False
