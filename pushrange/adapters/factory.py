"""Factory classes for use case and adapter instantiation.

This module centralizes the creation of use cases and their dependencies,
keeping the CLI layer free from direct adapter imports. This follows the
Clean Architecture principle that presentation layers should not know
about concrete infrastructure implementations.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pushrange.adapters.git_cmd.git_adapter import GitGraph
    from pushrange.adapters.lock.directory_lock import DirectoryLock
    from pushrange.adapters.lock.serial_counter import SerialCounter
    from pushrange.core.hook_usecase import PostReceiveUseCase
    from pushrange.core.resolver import NewCommitResolver
    from pushrange.domain.config import PushRangeConfig
    from pushrange.ports.config import ConfigProvider


class ConfigFactory:
    """Factory for creating configuration-related instances."""

    def create_config_provider(self) -> ConfigProvider:
        """Create the TOML-backed config provider.

        Returns:
            TomlConfigProvider instance.
        """
        from pushrange.adapters.config.toml_config_provider import TomlConfigProvider

        return TomlConfigProvider()


class RepositoryFactory:
    """Factory for adapters bound to one repository."""

    def create_graph(self, repo_path: Path) -> GitGraph:
        """Create a GitGraph instance.

        Args:
            repo_path: Repository path (worktree or bare repository).

        Returns:
            GitGraph instance.

        Raises:
            RuntimeError: If repo_path is not a git repository.
        """
        from pushrange.adapters.git_cmd.git_adapter import GitGraph

        return GitGraph(repo_path)


class LockFactory:
    """Factory for locks and the state they guard.

    Args:
        config: Configuration supplying the lock policy.
    """

    def __init__(self, config: PushRangeConfig) -> None:
        self._config = config

    def create_lock(self, path: Path) -> DirectoryLock:
        """Create a DirectoryLock using the configured retry policy.

        Args:
            path: Lock directory path.

        Returns:
            DirectoryLock instance (not yet acquired).
        """
        from pushrange.adapters.lock.directory_lock import DirectoryLock

        return DirectoryLock.from_config(path, self._config.lock)

    def create_serial_counter(self, counter_path: Path, lock_path: Path | None = None) -> SerialCounter:
        """Create a SerialCounter guarded by a directory lock.

        Args:
            counter_path: File holding the counter value.
            lock_path: Lock directory. Default: counter_path + ".lock".

        Returns:
            SerialCounter instance.
        """
        from pushrange.adapters.lock.serial_counter import SerialCounter

        lock_path = lock_path or counter_path.with_name(counter_path.name + ".lock")
        return SerialCounter(counter_path, self.create_lock(lock_path))


class UseCaseFactory:
    """Factory for creating use case instances with all dependencies.

    Centralizes the dependency wiring for use cases, keeping the CLI layer
    clean and testable.
    """

    def create_resolver(self, repo_path: Path, config: PushRangeConfig) -> NewCommitResolver:
        """Create a NewCommitResolver over the repository's git graph.

        Args:
            repo_path: Repository path.
            config: Configuration with resolver policy.

        Returns:
            Configured NewCommitResolver.
        """
        from pushrange.core.resolver import NewCommitResolver

        graph = RepositoryFactory().create_graph(repo_path)
        return NewCommitResolver(graph, config.resolver)

    def create_post_receive_usecase(
        self, repo_path: Path, config: PushRangeConfig
    ) -> PostReceiveUseCase:
        """Create PostReceiveUseCase with all required dependencies.

        Args:
            repo_path: Repository path.
            config: Configuration with resolver and describe policy.

        Returns:
            Configured PostReceiveUseCase.
        """
        from pushrange.core.hook_usecase import PostReceiveUseCase

        graph = RepositoryFactory().create_graph(repo_path)
        return PostReceiveUseCase(graph, config)
