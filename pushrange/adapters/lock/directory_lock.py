"""Directory-based mutual exclusion between hook processes.

Creating a directory is atomic: when several processes call mkdir on the
same path at once, exactly one succeeds and the others get EEXIST. The lock
is held while the directory exists and free once it is removed.

While any lock is held, SIGINT, SIGTERM and SIGHUP handlers remove the held
lock directories before the process dies, and an atexit hook does the same on
interpreter exit. A signal the process ignores (SIGHUP under nohup, for
instance) or handles itself does not end the critical section and gets no
handler. Release signals are blocked while the directory and the held flag
change together. Only locks whose held flag is set are ever removed, so a
process that lost the race never deletes someone else's lock.
"""

import atexit
import logging
import os
import signal
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from pushrange.domain.config import LockConfig
from pushrange.domain.exceptions import LockBusyError

logger = logging.getLogger(__name__)

_RELEASE_SIGNALS: tuple[signal.Signals, ...] = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGHUP") if hasattr(signal, name)
)

# Process-wide registry of held locks and the handlers we displaced.
# Re-entrant because the signal handler runs on the main thread, possibly
# while that thread is already inside the registry.
_registry_lock = threading.RLock()
_held_locks: set["DirectoryLock"] = set()
_previous_handlers: dict[int, Any] = {}


def _in_main_thread() -> bool:
    return threading.current_thread() is threading.main_thread()


def _kills_process(signum: int) -> bool:
    """Whether the signal's current disposition ends the process.

    Ignored signals and handlers the application installed itself leave the
    process running, so the lock has to stay held through them.
    """
    current = signal.getsignal(signum)
    return current is signal.SIG_DFL or current is signal.default_int_handler


def _install_signal_handlers() -> None:
    """Install release-on-signal handlers once, from the main thread only."""
    with _registry_lock:
        if _previous_handlers or not _in_main_thread():
            return
        for signum in _RELEASE_SIGNALS:
            if not _kills_process(signum):
                continue
            _previous_handlers[signum] = signal.signal(signum, _handle_signal)


def _restore_signal_handlers() -> None:
    """Put back whatever handlers were active before we installed ours."""
    with _registry_lock:
        if not _previous_handlers or not _in_main_thread():
            return
        for signum, previous in _previous_handlers.items():
            signal.signal(signum, previous)
        _previous_handlers.clear()


def release_all_held() -> None:
    """Release every lock this process holds, logging failures."""
    with _registry_lock:
        held = list(_held_locks)
    for lock in held:
        try:
            lock.release()
        except OSError as e:
            logger.error(f"Failed to release lock {lock.path}: {e}")


def _handle_signal(signum: int, frame: Any) -> None:
    """Release held locks, then re-deliver the signal with its old disposition."""
    logger.warning(f"Received signal {signum}, releasing held locks")
    release_all_held()
    _restore_signal_handlers()
    os.kill(os.getpid(), signum)


atexit.register(release_all_held)


@contextmanager
def _signals_deferred() -> Iterator[None]:
    """Block release signals for this thread until the block exits.

    A signal sent meanwhile stays pending and is handled once the held flag
    matches the lock directory again.
    """
    if not _RELEASE_SIGNALS or not hasattr(signal, "pthread_sigmask"):
        yield
        return
    previous = signal.pthread_sigmask(signal.SIG_BLOCK, _RELEASE_SIGNALS)
    try:
        yield
    finally:
        signal.pthread_sigmask(signal.SIG_SETMASK, previous)


class DirectoryLock:
    """Lock guarding a critical section shared by concurrent hook processes.

    Busy is a normal outcome of ``acquire`` (it returns False). Using the
    lock as a context manager turns Busy into LockBusyError and guarantees
    release on every exit path.

    Example:
        lock = DirectoryLock(git_dir / "serial.lock")
        if lock.acquire():
            try:
                bump_counter()
            finally:
                lock.release()
    """

    def __init__(
        self,
        path: Path | str,
        retry_timeout: float = 0.0,
        retry_interval: float = 1.0,
        release_on_signal: bool = True,
    ) -> None:
        """Initialize the lock.

        Args:
            path: Directory whose existence means "held".
            retry_timeout: Seconds to keep retrying while busy. 0 = one attempt.
            retry_interval: Seconds to sleep between attempts.
            release_on_signal: Remove the directory if the process is
                interrupted or terminated while holding it.
        """
        self.path = Path(path)
        self.retry_timeout = retry_timeout
        self.retry_interval = retry_interval
        self.release_on_signal = release_on_signal
        self._held = False

    @classmethod
    def from_config(cls, path: Path | str, config: LockConfig) -> "DirectoryLock":
        """Create a lock using the retry and signal policy from config."""
        return cls(
            path,
            retry_timeout=config.retry_timeout,
            retry_interval=config.retry_interval,
            release_on_signal=config.release_on_signal,
        )

    @property
    def held(self) -> bool:
        """Whether this process currently owns the lock."""
        return self._held

    def _try_create(self) -> bool:
        try:
            os.mkdir(self.path)
        except FileExistsError:
            return False
        return True

    def acquire(self) -> bool:
        """Try to take the lock, retrying up to retry_timeout seconds.

        Returns:
            True if the lock is held by this process, False if it is busy.

        Raises:
            OSError: If the lock directory cannot be created for a reason
                other than already existing (e.g., permissions).
        """
        if self._held:
            return True

        self.path.parent.mkdir(parents=True, exist_ok=True)
        if self.release_on_signal:
            _install_signal_handlers()

        deadline = time.monotonic() + self.retry_timeout
        attempts = 0
        while True:
            attempts += 1
            with _signals_deferred():
                created = self._try_create()
                if created:
                    with _registry_lock:
                        self._held = True
                        _held_locks.add(self)
            if created:
                logger.debug(f"Acquired lock {self.path} after {attempts} attempt(s)")
                return True

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            time.sleep(min(self.retry_interval, remaining))

        logger.info(f"Lock {self.path} is busy (gave up after {attempts} attempt(s))")
        self._forget()
        return False

    def release(self) -> None:
        """Remove the lock directory if this process holds it.

        A no-op when the lock is not held, so a double release (for example
        from a signal handler and a finally block) is harmless.

        Raises:
            OSError: If the directory exists but cannot be removed.
        """
        if not self._held:
            logger.debug(f"Lock {self.path} not held, nothing to release")
            return

        with _signals_deferred():
            self._held = False
            try:
                os.rmdir(self.path)
            except FileNotFoundError:
                logger.warning(f"Lock directory {self.path} was already removed")
            finally:
                self._forget()
        logger.debug(f"Released lock {self.path}")

    def _forget(self) -> None:
        """Drop this lock from the registry; restore handlers once none are held."""
        with _registry_lock:
            _held_locks.discard(self)
            if not _held_locks:
                _restore_signal_handlers()

    def __enter__(self) -> "DirectoryLock":
        if not self.acquire():
            raise LockBusyError(str(self.path))
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "held" if self._held else "free"
        return f"DirectoryLock({str(self.path)!r}, {state})"


def acquire_lock(path: Path | str, config: LockConfig | None = None) -> DirectoryLock | None:
    """Try to take a directory lock.

    Args:
        path: Lock directory path.
        config: Retry and signal policy. Default: fail fast.

    Returns:
        The held lock, or None if another process holds it.
    """
    lock = DirectoryLock.from_config(path, config or LockConfig())
    return lock if lock.acquire() else None


@contextmanager
def locked(path: Path | str, config: LockConfig | None = None) -> Iterator[DirectoryLock]:
    """Hold a directory lock for the duration of a with-block.

    Args:
        path: Lock directory path.
        config: Retry and signal policy. Default: fail fast.

    Yields:
        The held lock.

    Raises:
        LockBusyError: If the lock could not be acquired.
    """
    with DirectoryLock.from_config(path, config or LockConfig()) as lock:
        yield lock
