"""
JSON file key-value store.

Each key is stored as ``<data_dir>/<key>.json``. Writes hold a per-key
``filelock.FileLock`` and go through a temp file followed by an atomic
rename, so a concurrent reader sees either the previous value or the new
one, never a partial file.
"""

import os
import re
from pathlib import Path
from typing import Callable, Optional, TypeVar

from filelock import FileLock, Timeout as FileLockTimeout

from recallforge.core.exceptions import StorageError, ValidationError
from recallforge.core.logging import get_logger
from recallforge.storage.base import KeyValueStore

logger = get_logger(__name__)

KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")
DEFAULT_LOCK_TIMEOUT = 10.0

T = TypeVar("T")


class JsonFileStore(KeyValueStore):
    """File-per-key store under a data directory.

    Example:
        store = JsonFileStore(Path(".recallforge"))
        store.set("progress", json.dumps(data))
    """

    def __init__(self, data_dir: Path, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        """
        Initialize store.

        Args:
            data_dir: Directory for data files (created on first write)
            lock_timeout: Maximum time to wait for a file lock (seconds)
        """
        self.data_dir = Path(data_dir)
        self.lock_timeout = lock_timeout

    def path_for(self, key: str) -> Path:
        """
        File path holding key.

        Raises:
            ValidationError: If key is empty or could escape data_dir
        """
        if not KEY_PATTERN.match(key) or ".." in key:
            raise ValidationError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None

        def _read() -> str:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()

        return self._with_lock(path, _read, "read")

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        temp_file = path.with_suffix(".json.tmp")

        def _write_atomic() -> None:
            """Write to temp file then atomic rename."""
            with open(temp_file, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            temp_file.replace(path)

        self._ensure_dir()
        self._with_lock(path, _write_atomic, "write")
        logger.debug("Stored blob", key=key, bytes=len(value))

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        if not path.exists():
            return False

        def _remove() -> bool:
            path.unlink(missing_ok=True)
            return True

        return self._with_lock(path, _remove, "delete")

    def _ensure_dir(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self.data_dir}: {e}") from e

    def _with_lock(self, path: Path, func: Callable[[], T], action: str) -> T:
        """Run func while holding the key's lock file.

        Raises:
            StorageError: On lock timeout or I/O failure
        """
        lock = FileLock(str(path.with_suffix(".json.lock")), timeout=self.lock_timeout)
        try:
            with lock:
                return func()
        except FileLockTimeout as e:
            raise StorageError(
                f"Could not acquire lock for {path} after {self.lock_timeout}s"
            ) from e
        except OSError as e:
            raise StorageError(f"Could not {action} {path}: {e}") from e
