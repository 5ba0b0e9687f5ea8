"""Load sync configuration from TOML."""

from __future__ import annotations

import tomllib
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from locsync_schemas.config import SyncConfig
from locsync_schemas.primitives import JsonValue

DEFAULT_CONFIG_NAME = "locsync.toml"


class ConfigError(Exception):
    """Raised when a configuration file cannot be loaded."""


def load_sync_config(config_path: str | Path = DEFAULT_CONFIG_NAME) -> SyncConfig:
    """Load a sync configuration file.

    A ``.env`` file next to the configuration is loaded first so the API
    key variable can live beside the project. Existing environment
    variables win. A relative ``project_dir`` resolves against the
    configuration file's directory.

    Args:
        config_path: Path to the TOML configuration, ``locsync.toml`` in the
            working directory by default.

    Returns:
        SyncConfig: Validated configuration.

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid.
    """
    path = Path(config_path)
    _load_dotenv(path)
    if not path.exists():
        raise ConfigError(f"Config not found: {path}")
    try:
        with open(path, "rb") as handle:
            payload: dict[str, JsonValue] = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to read config: {exc}") from exc
    try:
        config = SyncConfig.model_validate(payload, strict=False)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config: {exc}") from exc
    project_dir = Path(config.project_dir)
    if not project_dir.is_absolute():
        project_dir = (path.parent / project_dir).resolve()
    return config.model_copy(update={"project_dir": str(project_dir)})


def _load_dotenv(config_path: Path) -> None:
    env_path = config_path.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)
