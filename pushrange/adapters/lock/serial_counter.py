"""Shared serial counter guarded by a mutual-exclusion lock."""

import logging
import os
import tempfile
from pathlib import Path

from pushrange.domain.exceptions import LockBusyError
from pushrange.ports.lock import MutexLock

logger = logging.getLogger(__name__)


class SerialCounter:
    """Monotonic integer stored in a file, bumped by concurrent hook runs.

    The read-increment-write sequence runs while holding the lock, so two
    pushes never receive the same serial number.
    """

    def __init__(self, counter_path: Path, lock: MutexLock) -> None:
        """Initialize the counter.

        Args:
            counter_path: File holding the current value (missing = 0).
            lock: Lock serializing updates across processes.
        """
        self.counter_path = counter_path
        self._lock = lock

    def current_value(self) -> int:
        """Read the current value without locking.

        Returns:
            The stored value, 0 if the file is missing or empty.

        Raises:
            ValueError: If the file does not hold an integer.
        """
        try:
            text = self.counter_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return 0
        if not text:
            return 0
        try:
            return int(text)
        except ValueError as e:
            raise ValueError(f"Corrupt counter file {self.counter_path}: {text!r}") from e

    def next_value(self) -> int:
        """Increment the counter and return the new value.

        Returns:
            The incremented value.

        Raises:
            LockBusyError: If the lock is held by another process.
            ValueError: If the counter file is corrupt.
        """
        if not self._lock.acquire():
            raise LockBusyError(str(getattr(self._lock, "path", self.counter_path)))
        try:
            value = self.current_value() + 1
            self._write(value)
            logger.debug(f"Counter {self.counter_path} advanced to {value}")
            return value
        finally:
            self._lock.release()

    def _write(self, value: int) -> None:
        """Replace the counter file atomically."""
        self.counter_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.counter_path.parent, prefix=f".{self.counter_path.name}."
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(f"{value}\n")
            os.replace(tmp_name, self.counter_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
