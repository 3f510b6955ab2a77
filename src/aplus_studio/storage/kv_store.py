"""Key-value byte stores used for local, best-effort persistence."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Protocol, runtime_checkable

from filelock import FileLock

from aplus_studio.config.logging import get_logger
from aplus_studio.exceptions import StorageCapacityError, StorageError
from aplus_studio.utils.file_utils import write_atomically

logger = get_logger(__name__)
_KEY_RE = re.compile(r"^[\w.-]+$")


@runtime_checkable
class KeyValueStore(Protocol):
    """Persistence collaborator: `get`, `set` (may raise StorageCapacityError), `remove`."""

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes) -> None: ...

    def remove(self, key: str) -> None: ...


def _check_key(key: str) -> str:
    if not _KEY_RE.match(key):
        raise StorageError(f"Invalid storage key: {key!r}")
    return key


class InMemoryKeyValueStore:
    """Dict-backed store with an optional byte quota."""

    def __init__(self, quota_bytes: int = 0):
        self._data: dict[str, bytes] = {}
        self._quota = quota_bytes

    def get(self, key: str) -> bytes | None:
        return self._data.get(_check_key(key))

    def set(self, key: str, value: bytes) -> None:
        _check_key(key)
        if self._quota:
            used = sum(len(v) for k, v in self._data.items() if k != key)
            if used + len(value) > self._quota:
                raise StorageCapacityError(
                    "Storage quota exceeded", f"{used + len(value)} > {self._quota} bytes"
                )
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(_check_key(key), None)


class FileKeyValueStore:
    """One file per key under a directory, written atomically.

    A non-zero `quota_bytes` caps the total size of all stored values the way a
    browser caps local storage.
    """

    SUFFIX = ".bin"
    LOCK_NAME = ".kv.lock"

    def __init__(self, root: Path, quota_bytes: int = 0):
        self._root = root
        self._quota = quota_bytes
        self._root.mkdir(parents=True, exist_ok=True)
        self._lock = FileLock(str(root / self.LOCK_NAME))

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, key: str) -> Path:
        return self._root / f"{_check_key(key)}{self.SUFFIX}"

    def _used_bytes(self, exclude: Path) -> int:
        total = 0
        for p in self._root.glob(f"*{self.SUFFIX}"):
            if p != exclude:
                total += p.stat().st_size
        return total

    def get(self, key: str) -> bytes | None:
        p = self._path(key)
        if not p.exists():
            return None
        try:
            return p.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read {key!r}", str(e)) from e

    def set(self, key: str, value: bytes) -> None:
        p = self._path(key)
        with self._lock:
            if self._quota:
                used = self._used_bytes(exclude=p)
                if used + len(value) > self._quota:
                    raise StorageCapacityError(
                        "Storage quota exceeded", f"{used + len(value)} > {self._quota} bytes"
                    )
            try:
                write_atomically(p, value)
                logger.debug("Stored %s (%d bytes)", key, len(value))
            except OSError as e:
                raise StorageError(f"Failed to write {key!r}", str(e)) from e

    def remove(self, key: str) -> None:
        with self._lock:
            self._path(key).unlink(missing_ok=True)
