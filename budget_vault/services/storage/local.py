"""
Local Key-Value Store Implementations

InMemoryKeyValueStore backs the tests and the "memory" backend.
JsonFileKeyValueStore persists a single JSON object to disk.

TRADEOFFS:
- Every write rewrites the whole file (fine for a personal budget)
- No locking: single process, single user
- No retries: an unreadable store is a hard failure
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog

from budget_vault.services.storage.interface import KeyValueStore, StorageUnavailable


logger = structlog.get_logger(__name__)


class InMemoryKeyValueStore(KeyValueStore):
    """
    Dict-backed store.

    Set `unavailable = True` to make every operation raise
    StorageUnavailable.
    """

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self.unavailable = False

    def _check(self) -> None:
        if self.unavailable:
            raise StorageUnavailable("In-memory store marked unavailable")

    def get(self, key: str) -> Optional[str]:
        self._check()
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._check()
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._check()
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        self._check()
        return list(self._data)


class JsonFileKeyValueStore(KeyValueStore):
    """
    Store persisted as one JSON object of string values.

    The file is re-read on every access and replaced atomically on
    every write.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
            data = json.loads(raw) if raw.strip() else {}
        except (OSError, json.JSONDecodeError) as e:
            logger.error("store_read_failed", path=str(self._path), error=str(e))
            raise StorageUnavailable(f"Cannot read store at {self._path}: {e}") from e

        if not isinstance(data, dict):
            raise StorageUnavailable(f"Store at {self._path} is not a JSON object")
        return data

    def _write(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self._path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            logger.error("store_write_failed", path=str(self._path), error=str(e))
            raise StorageUnavailable(f"Cannot write store at {self._path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def keys(self) -> list[str]:
        return list(self._read())

    def clear(self) -> None:
        self._write({})
