"""Configuration I/O utilities for reading and writing TOML config files.

This module handles serialization/deserialization of PushRangeConfig to/from TOML format.
"""

import os
import platform
import tomllib  # Built-in Python 3.11+
from pathlib import Path
from typing import Any

import tomli_w

from pushrange.domain.config import PushRangeConfig

LOCAL_CONFIG_NAME = "pushrange.toml"


def get_global_config_path() -> Path:
    """Get the path to the global config file.

    The location is platform-dependent:
    - Linux/macOS: $XDG_CONFIG_HOME/pushrange/config.toml or ~/.config/pushrange/config.toml
    - Windows: %APPDATA%/pushrange/config.toml

    Returns:
        Path to the global config file (may not exist)
    """
    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "pushrange" / "config.toml"
        return Path.home() / ".config" / "pushrange" / "config.toml"
    else:
        xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
        if xdg_config:
            return Path(xdg_config) / "pushrange" / "config.toml"
        return Path.home() / ".config" / "pushrange" / "config.toml"


def get_local_config_path(git_dir: Path) -> Path:
    """Get the path of a repository's own config file.

    Args:
        git_dir: The repository's git directory (the repo itself when bare)

    Returns:
        Path to <git_dir>/pushrange.toml (may not exist)
    """
    return git_dir / LOCAL_CONFIG_NAME


def load_config_data(path: Path) -> dict[str, Any]:
    """Load raw TOML data from a config file.

    Args:
        path: Path to config file

    Returns:
        Dictionary with parsed TOML data

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in config file: {e}") from e


def load_config(path: Path) -> PushRangeConfig:
    """Load configuration from a TOML file on top of the defaults.

    Args:
        path: Path to config file

    Returns:
        Parsed PushRangeConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed or has invalid values
    """
    data = load_config_data(path)
    return PushRangeConfig.from_partial(PushRangeConfig.default(), data)


def config_to_data(config: PushRangeConfig) -> dict[str, Any]:
    """Convert a config to the mapping written to TOML.

    Args:
        config: PushRangeConfig to convert

    Returns:
        Dictionary of sections
    """
    return {
        "resolver": {
            "exclude_tags": config.resolver.exclude_tags,
            "dedupe_batch": config.resolver.dedupe_batch,
        },
        "describe": {
            "tags_only": config.describe.tags_only,
        },
        "lock": {
            "retry_timeout": config.lock.retry_timeout,
            "retry_interval": config.lock.retry_interval,
            "release_on_signal": config.lock.release_on_signal,
        },
        "logging": {
            "level": config.logging.level,
            "file": config.logging.file,
        },
    }


def save_config(config: PushRangeConfig, path: Path) -> None:
    """Save configuration to a TOML file.

    Args:
        config: PushRangeConfig to save
        path: Destination path
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("wb") as f:
        tomli_w.dump(config_to_data(config), f)
