"""
Run-level single-flight lock.

Two runs against the same contractor pool would both read the same
workload snapshot and could push one contractor past its intended load.
RunLock holds a process-wide lock for the duration of a run and, when a
lock file path is configured, an exclusive lock file so runs started by
separate processes (cron plus a manual trigger) exclude each other too.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from types import TracebackType

from maint.core.errors import RunInProgressError

logger = logging.getLogger(__name__)

_process_lock = threading.Lock()


class RunLock:
    """
    Non-blocking run lock.

    Usage:
        >>> with RunLock(lock_file=Path(".maint.lock")):
        ...     ...  # run

    Raises:
        RunInProgressError: On enter, if another run holds the lock
    """

    def __init__(self, lock_file: Path | str | None = None) -> None:
        self.lock_file = Path(lock_file) if lock_file else None
        self._held = False
        self._file_held = False

    def acquire(self) -> None:
        if not _process_lock.acquire(blocking=False):
            raise RunInProgressError("Another automation run is already in progress")
        self._held = True

        if self.lock_file is None:
            return
        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.lock_file, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError as e:
            self._release_process_lock()
            raise RunInProgressError(
                f"Another automation run holds {self.lock_file}",
                lock_file=str(self.lock_file),
            ) from e
        except OSError:
            self._release_process_lock()
            raise
        with os.fdopen(fd, "w") as f:
            f.write(str(os.getpid()))
        self._file_held = True
        logger.debug(f"Acquired run lock file {self.lock_file}")

    def release(self) -> None:
        if self._file_held and self.lock_file is not None:
            try:
                self.lock_file.unlink()
            except FileNotFoundError:
                logger.warning(f"Run lock file {self.lock_file} was already removed")
            self._file_held = False
        self._release_process_lock()

    def _release_process_lock(self) -> None:
        if self._held:
            _process_lock.release()
            self._held = False

    def __enter__(self) -> RunLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
