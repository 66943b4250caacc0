"""TOML-based configuration provider.

Loads configuration from <git-dir>/pushrange.toml with global config fallback.

Config loading priority (highest to lowest):
1. Local: <git-dir>/pushrange.toml (repo-specific)
2. Global: ~/.config/pushrange/config.toml (user defaults)
3. Built-in defaults
"""

import logging
from pathlib import Path

from pushrange.domain.config import PushRangeConfig
from pushrange.shared.config_io import (
    get_global_config_path,
    get_local_config_path,
    load_config_data,
)

logger = logging.getLogger(__name__)


class TomlConfigProvider:
    """Configuration provider that loads from TOML files.

    Implements config cascade:
    1. Load global config (~/.config/pushrange/config.toml) if present
    2. Load local config (<git-dir>/pushrange.toml) if present
    3. Local values override global values (key-level merge per section)
    4. Missing values fall back to built-in defaults

    Gracefully handles missing or invalid configs with warnings.
    """

    def load(self, git_dir: Path) -> PushRangeConfig:
        """Load configuration with global fallback.

        Uses domain-level merging via PushRangeConfig.from_partial to ensure
        validation happens at each merge step.

        Args:
            git_dir: Path to the git directory containing pushrange.toml

        Returns:
            PushRangeConfig instance with merged global/local values or defaults
        """
        local_path = get_local_config_path(git_dir)
        global_path = get_global_config_path()

        config = PushRangeConfig.default()

        if global_path.exists():
            try:
                global_data = load_config_data(global_path)
                config = PushRangeConfig.from_partial(config, global_data)
                logger.debug("Loaded global config from %s", global_path)
            except (FileNotFoundError, ValueError, TypeError) as e:
                logger.warning(
                    "Failed to parse global config at %s: %s. Ignoring global config.",
                    global_path,
                    e,
                )

        if local_path.exists():
            try:
                local_data = load_config_data(local_path)
                config = PushRangeConfig.from_partial(config, local_data)
                logger.debug("Loaded local config from %s", local_path)
            except (FileNotFoundError, ValueError, TypeError) as e:
                logger.warning(
                    "Failed to parse %s: %s. Using global/default configuration.",
                    local_path,
                    e,
                )

        return config
