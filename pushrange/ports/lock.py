"""Mutual-exclusion lock port interface."""

from typing import Protocol


class MutexLock(Protocol):
    """Protocol for a lock shared between independent hook processes."""

    @property
    def held(self) -> bool:
        """Whether this process currently owns the lock."""
        ...

    def acquire(self) -> bool:
        """Try to take the lock.

        Returns:
            True if the lock is now held by this process, False if it is
            busy (held by someone else).
        """
        ...

    def release(self) -> None:
        """Give the lock back. A no-op when the lock is not held."""
        ...
