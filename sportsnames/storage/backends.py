"""
Durable string key -> string value stores.

The persistence adapter only needs get/set/remove and prefix enumeration,
so any embedded or remote key-value store can sit behind it:

- ``InMemoryBackend``: process-local dict (tests, ``backend: memory``)
- ``JsonFileBackend``: one JSON object on disk, replaced atomically on flush
- ``MongoBackend`` (``storage.mongo``): one document per key
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from sportsnames.errors import BackendUnavailable

logger = logging.getLogger(__name__)


class KeyValueBackend(ABC):
    """String key -> string value store."""

    name: str = "base"

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self, prefix: str = "") -> List[str]:
        ...

    def flush(self) -> None:
        """Make buffered writes durable. No-op for write-through stores."""

    def ping(self) -> None:
        """
        Raise ``BackendUnavailable`` when the store cannot be used at all.
        """

    def describe(self) -> str:
        return self.name


class InMemoryBackend(KeyValueBackend):
    name = "memory"

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            return [k for k in self._data if k.startswith(prefix)]

    def raw(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._data)


class JsonFileBackend(KeyValueBackend):
    """
    Embedded key-value file.

    The whole file is read once on open. Writes mutate memory and mark the
    store dirty; ``flush`` writes a temp file beside the target and renames
    it over the old one, so a crash never leaves a half-written file.

    Usage:
        backend = JsonFileBackend("~/.sportsnames/translations.json")
        backend.set("sportsnames:m:team:Porto", "{...}")
        backend.flush()
    """

    name = "json"

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)
        self._data: Dict[str, str] = {}
        self._dirty = False
        self._lock = threading.Lock()
        self._open_error: Optional[str] = None
        self._open()

    def _open(self):
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self._open_error = f"cannot read {self.path}: {e}"
            logger.warning(f"[PERSIST] {self._open_error}")
            return
        if not isinstance(data, dict):
            self._open_error = f"{self.path} is not a JSON object"
            logger.warning(f"[PERSIST] {self._open_error}")
            return
        self._data = data

    def ping(self) -> None:
        if self._open_error:
            raise BackendUnavailable(self._open_error)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            if self._data.get(key) != value:
                self._data[key] = value
                self._dirty = True

    def remove(self, key: str) -> None:
        with self._lock:
            if key in self._data:
                del self._data[key]
                self._dirty = True

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            return [k for k in self._data if k.startswith(prefix)]

    def flush(self) -> None:
        if self._open_error:
            raise BackendUnavailable(self._open_error)
        with self._lock:
            if not self._dirty:
                return
            payload = dict(self._data)
            self._dirty = False

        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".translations-", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, sort_keys=True)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            with self._lock:
                self._dirty = True
            raise

    def describe(self) -> str:
        return f"json:{self.path}"
