"""Lock adapters for serializing work across hook processes."""

from pushrange.adapters.lock.directory_lock import (
    DirectoryLock,
    acquire_lock,
    locked,
    release_all_held,
)
from pushrange.adapters.lock.serial_counter import SerialCounter

__all__ = [
    "DirectoryLock",
    "SerialCounter",
    "acquire_lock",
    "locked",
    "release_all_held",
]
