"""Config domain models for pushrange.

Configuration is stored in <git-dir>/pushrange.toml and represents the
policy choices of a hook installation: which refs count as already
announced, how descriptions are computed, how long to wait for the lock and
where logs go. This module defines the domain models that represent
validated configuration state.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Literal

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


@dataclass(frozen=True)
class ResolverConfig:
    """Configuration for new-commit resolution.

    Attributes:
        exclude_tags: Also treat commits reachable from tags as already
                      announced. Off by default: only branch tips suppress
                      commits, so tag summaries can re-surface them.
        dedupe_batch: Report each commit at most once per push, even when
                      several refs in the same push introduce it.
    """

    exclude_tags: bool = False
    dedupe_batch: bool = True


@dataclass(frozen=True)
class DescribeConfig:
    """Configuration for revision descriptions.

    Attributes:
        tags_only: Consider lightweight tags too (git describe --tags);
                   when False only annotated tags are used.
    """

    tags_only: bool = False


@dataclass(frozen=True)
class LockConfig:
    """Configuration for the directory lock.

    Attributes:
        retry_timeout: Seconds to keep retrying a busy lock. 0 means a single
                       attempt (fail fast).
        retry_interval: Seconds between attempts while retrying.
        release_on_signal: Release held locks when the process receives
                           SIGINT, SIGTERM or SIGHUP.

    Raises:
        ValueError: If retry_timeout is negative or retry_interval is not
                    positive.
    """

    retry_timeout: float = 0.0
    retry_interval: float = 1.0
    release_on_signal: bool = True

    def __post_init__(self) -> None:
        """Validate lock config after initialization."""
        if self.retry_timeout < 0:
            raise ValueError(
                f"retry_timeout cannot be negative, got {self.retry_timeout}"
            )
        if self.retry_interval <= 0:
            raise ValueError(
                f"retry_interval must be positive, got {self.retry_interval}"
            )


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for log output.

    Attributes:
        level: Log level name used when neither --verbose nor --quiet is given.
        file: Optional path of a log file, in addition to stderr. Empty
              string disables file logging.

    Raises:
        ValueError: If level is not a known level name.
    """

    level: LogLevel = "WARNING"
    file: str = ""

    def __post_init__(self) -> None:
        """Validate logging config after initialization."""
        if self.level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(
                f"level must be one of DEBUG, INFO, WARNING, ERROR, got {self.level!r}"
            )


@dataclass(frozen=True)
class PushRangeConfig:
    """Complete pushrange configuration.

    Attributes:
        resolver: New-commit resolution policy
        describe: Description policy
        lock: Directory lock policy
        logging: Log output configuration
    """

    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    describe: DescribeConfig = field(default_factory=DescribeConfig)
    lock: LockConfig = field(default_factory=LockConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @staticmethod
    def default() -> "PushRangeConfig":
        """Create a config with all default values."""
        return PushRangeConfig(
            resolver=ResolverConfig(),
            describe=DescribeConfig(),
            lock=LockConfig(),
            logging=LoggingConfig(),
        )

    @staticmethod
    def from_partial(base: "PushRangeConfig", data: dict[str, Any]) -> "PushRangeConfig":
        """Overlay raw config data onto an existing config.

        Each section present in data replaces only the keys it names; other
        keys keep their value from base. Every section is re-validated.

        Args:
            base: Config providing values for keys absent from data.
            data: Raw mapping of section name to key/value pairs.

        Returns:
            New merged PushRangeConfig.

        Raises:
            ValueError: If a section is not a table, a key is unknown, or a
                        merged value fails validation.
        """
        updates: dict[str, Any] = {}
        for section in fields(base):
            section_data = data.get(section.name)
            if section_data is None:
                continue
            if not isinstance(section_data, dict):
                raise ValueError(f"Section [{section.name}] must be a table")

            current = getattr(base, section.name)
            known = {f.name for f in fields(current)}
            unknown = set(section_data) - known
            if unknown:
                raise ValueError(
                    f"Unknown keys in [{section.name}]: {', '.join(sorted(unknown))}"
                )
            updates[section.name] = replace(current, **section_data)

        return replace(base, **updates)
