"""
Locked, atomic JSON state files.

The cooldown history, block list, catalog links and rule overrides persist
as small JSON documents. Writes take an exclusive lock on a sidecar
``.<name>.lock`` file (POSIX fcntl, Windows msvcrt) and replace the document
atomically so a crash never leaves a half-written file.
"""

import json
import logging
import os
import sys
import tempfile
import time
from pathlib import Path
from typing import Any, Optional

from .exceptions import StoreError

logger = logging.getLogger(__name__)

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl


class FileLock:
    """
    Context manager for an exclusive lock guarding a state file.

    Examples:
        with FileLock(path, timeout=5):
            data = load_json(path, {})
            data["k"] = "v"
            write_json_atomic(path, data)
    """

    DEFAULT_TIMEOUT = 10.0
    POLL_INTERVAL = 0.05

    def __init__(self, path: str | Path, timeout: Optional[float] = None):
        self.path = Path(path).resolve()
        self.timeout = self.DEFAULT_TIMEOUT if timeout is None else timeout
        self._lock_path = self.path.parent / f".{self.path.name}.lock"
        self._lock_file = None

    def __enter__(self):
        self._acquire_lock()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._release_lock()

    def is_locked(self) -> bool:
        return self._lock_file is not None

    @property
    def lock_file(self) -> Path:
        return self._lock_path

    def _acquire_lock(self) -> None:
        """
        Acquire exclusive lock with timeout.

        Raises:
            TimeoutError: If the lock cannot be acquired within timeout
        """
        start_time = time.monotonic()
        self._lock_path.parent.mkdir(parents=True, exist_ok=True)

        while True:
            lock_file = open(str(self._lock_path), "w", encoding="utf-8")
            try:
                if sys.platform == "win32":
                    msvcrt.locking(lock_file.fileno(), msvcrt.LK_NBLCK, 1)
                else:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                self._lock_file = lock_file
                logger.debug(f"Acquired lock on {self.path}")
                return
            except OSError as e:
                lock_file.close()
                if time.monotonic() - start_time >= self.timeout:
                    raise TimeoutError(
                        f"Failed to acquire lock on {self.path} after {self.timeout}s"
                    ) from e
                time.sleep(self.POLL_INTERVAL)

    def _release_lock(self) -> None:
        if self._lock_file is None:
            return
        try:
            if sys.platform == "win32":
                msvcrt.locking(self._lock_file.fileno(), msvcrt.LK_UNLCK, 1)
            else:
                fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_UN)
            self._lock_file.close()
            logger.debug(f"Released lock on {self.path}")
        finally:
            self._lock_file = None


def load_json(path: Path, default: Any) -> Any:
    """Read a JSON document, returning ``default`` when the file is absent.

    Raises:
        StoreError: If the file exists but is not valid JSON
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError:
        return default
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise StoreError(f"State file {path} is corrupt: {e}") from e


def write_json_atomic(path: Path, data: Any) -> None:
    """Write ``data`` to ``path`` via a temp file and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, ensure_ascii=False, sort_keys=True)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
