# ───────────────────────── src/proofscan/storage.py ─────────────────────────
"""
Persisted key/value storage for the network dictionary cache.
"""

import json
import logging
import os
import tempfile
import threading
from abc import abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from .config import SourceMode
from .dictionary import Dictionary, load_dictionary
from .logging_utils import log_error

logger = logging.getLogger(__name__)

DICTIONARY_KEY = "proofdict"
LAST_UPDATED_KEY = "proofdict-lastUpdated"


class Storage(Protocol):
    """Protocol for string-keyed storage backends."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete a value. Missing keys are ignored."""
        pass


class MemoryStorage:
    """In-process storage shared by every scan in the process."""

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = str(value)

    def remove(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


class FileStorage:
    """Storage persisted to a single JSON file.

    Every write rewrites the file atomically, so a crash mid-write leaves the
    previous contents in place. A file that cannot be parsed is treated as
    empty.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, str]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            log_error(f"Ignoring unreadable storage file {self.path}", e)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, items: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False)
            os.replace(tmp, self.path)
        except OSError:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            items = self._read()
            items[key] = str(value)
            self._write(items)

    def remove(self, key: str) -> None:
        with self._lock:
            items = self._read()
            if items.pop(key, None) is not None:
                self._write(items)


_default_storage = MemoryStorage()


def default_storage() -> MemoryStorage:
    """Return the process-wide in-memory storage."""
    return _default_storage


class DictionaryCache:
    """The cached network dictionary and its fetch timestamp.

    Examples:
        >>> cache = DictionaryCache(MemoryStorage())
        >>> cache.last_updated()
        0
        >>> cache.write([{"expected": "the", "patterns": ["teh"]}], now=1000)
        >>> len(cache.read_dictionary())
        1
    """

    def __init__(self, storage: Storage, fix_encoding: bool = True):
        self.storage = storage
        self.fix_encoding = fix_encoding

    def last_updated(self) -> int:
        """Epoch milliseconds of the last successful fetch, 0 if unknown."""
        value = self.storage.get(LAST_UPDATED_KEY)
        if value is None:
            return 0
        try:
            return int(float(value))
        except ValueError:
            logger.debug("Ignoring invalid %s value %r", LAST_UPDATED_KEY, value)
            return 0

    def write(self, data: Any, now: int) -> None:
        """Store freshly fetched dictionary data and its fetch time."""
        self.storage.set(DICTIONARY_KEY, json.dumps(data, ensure_ascii=False))
        self.storage.set(LAST_UPDATED_KEY, str(now))

    def read_dictionary(self) -> Optional[Dictionary]:
        """Return the cached dictionary.

        A cached value that does not deserialize into a dictionary is
        removed and treated as absent.

        Returns:
            The dictionary, or None if nothing usable is cached.
        """
        raw = self.storage.get(DICTIONARY_KEY)
        if raw is None:
            return None
        try:
            return load_dictionary(
                json.loads(raw),
                last_updated=self.last_updated(),
                mode=SourceMode.NETWORK,
                fix_encoding=self.fix_encoding,
            )
        except (ValueError, TypeError) as e:
            logger.debug("Removing corrupt cached dictionary: %s", e)
            self.storage.remove(DICTIONARY_KEY)
            return None
