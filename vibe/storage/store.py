"""Persistent key/value store.

Values live in memory until :meth:`KeyValueStore.save` writes them to a JSON
file. Saves replace the file atomically, so a crash between ``set`` and
``save`` leaves the previously committed file intact.
"""

import asyncio
import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

_MISSING = object()


class StoreWriteError(Exception):
    """Persisting the store to disk failed."""


class KeyValueStore:
    """JSON-file backed key/value store with explicit save."""

    def __init__(self, path: Union[str, Path]):
        """Initialize store.

        Args:
            path: Path of the JSON file holding committed values
        """
        self.path = Path(path)
        self._data: Dict[str, Any] = {}
        self._dirty = False
        self._lock = asyncio.Lock()
        logger.info(f"KeyValueStore initialized with file: {self.path}")

    def load(self) -> None:
        """Load committed values from disk, discarding pending writes.

        A missing, unreadable or corrupt file loads as an empty store.
        """
        data: Dict[str, Any] = {}
        if self.path.exists():
            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    raw = json.load(f)
                if isinstance(raw, dict):
                    data = raw
                else:
                    logger.warning(f"Ignoring store file {self.path}: top level is not an object")
            except (OSError, ValueError) as e:
                logger.warning(f"Could not read store file {self.path}: {e}")
        self._data = data
        self._dirty = False
        logger.debug(f"Loaded {len(data)} keys from {self.path}")

    def get(self, key: str, default: Any = None) -> Any:
        value = self._data.get(key, _MISSING)
        if value is _MISSING:
            return default
        return copy.deepcopy(value)

    def has(self, key: str) -> bool:
        return key in self._data

    def set(self, key: str, value: Any) -> None:
        """Stage a value. It is committed by the next :meth:`save`."""
        # Reject values that could never be committed
        try:
            json.dumps(value)
        except (TypeError, ValueError) as e:
            raise TypeError(f"Value for '{key}' is not JSON serializable: {e}")
        self._data[key] = copy.deepcopy(value)
        self._dirty = True
        logger.debug(f"Store key '{key}' set")

    def delete(self, key: str) -> bool:
        if key in self._data:
            del self._data[key]
            self._dirty = True
            return True
        return False

    def clear(self) -> None:
        self._data = {}
        self._dirty = True

    def keys(self) -> List[str]:
        return list(self._data.keys())

    @property
    def dirty(self) -> bool:
        return self._dirty

    async def save(self) -> None:
        """Commit staged values durably.

        Concurrent saves are serialized; the last one to run wins.

        Raises:
            StoreWriteError: If the file could not be written
        """
        async with self._lock:
            snapshot = json.dumps(self._data, indent=2, ensure_ascii=False)
            self._write_atomic(snapshot)
            self._dirty = False
        logger.debug(f"Store saved: {self.path}")

    def _write_atomic(self, text: str) -> None:
        tmp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise StoreWriteError(f"Failed to write store file {self.path}: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
