"""Cross-process locks on cache entries.

Each entry is guarded by ``<entry>.lock`` beside it. Where the platform offers
advisory file locks (``fcntl`` on Unix, ``msvcrt`` on Windows) the lock is an
OS lock, which the kernel drops when the holding process dies. Elsewhere
filelock falls back to ``SoftFileLock``, which stamps the lock file with the
owner's PID and host and breaks it once that process is gone.
"""

import logging
from pathlib import Path
from typing import Optional, Type

from filelock import BaseFileLock, FileLock, Timeout

from bincache.errors import CacheLockError
from bincache.files import ensure_parent_directory

logger = logging.getLogger(__name__)

def lock_path_for(path: Path) -> Path:
    return Path(path).with_name(Path(path).name + ".lock")


class EntryLock:
    """Exclusive, cross-process lock on one cache entry path.

    Obtain one with ``EntryLock.acquire``. ``release`` may be called any number
    of times; only the first call releases. The lock is also a context manager.

    Examples:
        >>> with EntryLock.acquire(Path("/cache/5.0/Foo/1.0/Release/Foo.framework.zip")) as lock:
        ...     consume(lock.path)
    """

    def __init__(self, path: Path, lock: BaseFileLock):
        self.path = Path(path)
        self._lock: Optional[BaseFileLock] = lock

    @classmethod
    def acquire(
        cls,
        path: Path,
        timeout: Optional[float] = None,
        lock_class: Optional[Type[BaseFileLock]] = None,
    ) -> "EntryLock":
        """Block until the entry at ``path`` is locked.

        Args:
            path: Cache entry path to lock
            timeout: Seconds to wait. None waits forever, 0 tries once.
            lock_class: filelock class to use (``FileLock`` picks the platform's best)

        Returns:
            Held EntryLock

        Raises:
            CacheLockError: If the lock is not acquired within ``timeout``
        """
        path = Path(path)
        ensure_parent_directory(path)
        lock_class = lock_class or FileLock
        wait = -1 if timeout is None or timeout < 0 else timeout
        # thread_local=False: the lock may be released by a different thread
        lock = lock_class(str(lock_path_for(path)), timeout=wait, thread_local=False)
        try:
            lock.acquire()
        except Timeout as e:
            raise CacheLockError(
                f"Timeout acquiring lock for {path} after {timeout} seconds"
            ) from e
        logger.debug(f"Locked {path}")
        return cls(path, lock)

    @property
    def is_locked(self) -> bool:
        return self._lock is not None

    def release(self) -> None:
        if self._lock is None:
            return
        lock, self._lock = self._lock, None
        lock.release()
        logger.debug(f"Unlocked {self.path}")

    def __enter__(self) -> "EntryLock":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "locked" if self.is_locked else "released"
        return f"EntryLock({str(self.path)!r}, {state})"
