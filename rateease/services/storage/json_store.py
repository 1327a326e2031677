"""
JSON Document Storage

One file per key, ``<data_dir>/<key>.json``. Writes go to a temporary file
that is then renamed over the old one, so a crash mid-write leaves the
previous document intact.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

import structlog

from rateease.config import get_settings
from rateease.services.storage.interface import (
    StorageError,
    StorageInterface,
    StoreKey,
)

logger = structlog.get_logger(__name__)


class JsonFileStorage(StorageInterface):
    """File-backed implementation of the storage interface."""

    def __init__(self, data_dir: Optional[Path] = None):
        self._data_dir = Path(data_dir or get_settings().storage.data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: StoreKey) -> Path:
        return self._data_dir / f"{StoreKey(key).value}.json"

    def load(self, key: StoreKey, default: Optional[Any] = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            with path.open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not load {key.value} data: {e}")

    def save(self, key: StoreKey, value: Any) -> None:
        path = self._path(key)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._data_dir, prefix=f".{path.stem}-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(value, fh, ensure_ascii=False, default=str)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error("storage_write_failed", key=key.value, error=str(e))
            raise StorageError(f"Could not save {key.value} data: {e}")

    def delete(self, key: StoreKey) -> bool:
        path = self._path(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Could not delete {key.value} data: {e}")

    def exists(self, key: StoreKey) -> bool:
        return self._path(key).exists()


class MemoryStorage(StorageInterface):
    """
    In-memory storage for tests and throwaway sessions.

    Documents are round-tripped through JSON so that callers see exactly
    what the file store would give them back.
    """

    def __init__(self):
        self._documents: dict[StoreKey, str] = {}

    def load(self, key: StoreKey, default: Optional[Any] = None) -> Any:
        raw = self._documents.get(StoreKey(key))
        return default if raw is None else json.loads(raw)

    def save(self, key: StoreKey, value: Any) -> None:
        try:
            self._documents[StoreKey(key)] = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Could not save {key.value} data: {e}")

    def delete(self, key: StoreKey) -> bool:
        return self._documents.pop(StoreKey(key), None) is not None

    def exists(self, key: StoreKey) -> bool:
        return StoreKey(key) in self._documents
