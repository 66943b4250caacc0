"""Configuration provider port.

Defines the interface for loading and accessing application configuration.
"""

from pathlib import Path
from typing import Protocol

from pushrange.domain.config import PushRangeConfig


class ConfigProvider(Protocol):
    """Protocol for loading and providing configuration."""

    def load(self, git_dir: Path) -> PushRangeConfig:
        """Load configuration for a repository.

        Args:
            git_dir: Path to the git directory containing pushrange.toml

        Returns:
            PushRangeConfig instance with loaded or default values

        Note:
            Implementations should gracefully fall back to defaults
            if config file is missing or invalid.
        """
        ...
