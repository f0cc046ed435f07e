"""Key-value stores backing persisted search history."""

import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol, Union, runtime_checkable

from loguru import logger

from .errors import StorageError


@runtime_checkable
class PersistentStore(Protocol):
    """Minimal string key-value interface."""

    def load(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key was never saved."""
        ...

    def save(self, key: str, value: str) -> None:
        ...


class MemoryStore:
    """In-process store, mostly for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def load(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def save(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value


class JsonFileStore:
    """
    Stores each key as a file in a directory.

    Write path:
    1. Write value to a temp file in the same directory
    2. Flush + fsync
    3. Atomically rename over the key file

    Writes are serialized so only one write per store is ever in flight.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory).expanduser()
        self._write_lock = threading.Lock()

    def path_for(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9._-]", "_", key)
        return self.directory / f"{safe}.json"

    def load(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(key, f"read failed: {e}") from e

    def save(self, key: str, value: str) -> None:
        path = self.path_for(key)
        with self._write_lock:
            try:
                self.directory.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=".json")
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        f.write(value)
                        f.flush()
                        os.fsync(f.fileno())
                    os.replace(tmp_name, path)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
            except OSError as e:
                raise StorageError(key, f"write failed: {e}") from e

        logger.debug(f"Saved {len(value)} bytes to {path}")
