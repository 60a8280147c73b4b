"""
Storage layer: key-value backends and the persistence adapter.
"""

import logging
from typing import Optional

from sportsnames.storage.backends import InMemoryBackend, JsonFileBackend, KeyValueBackend
from sportsnames.storage.persistence import PersistenceAdapter, Snapshot

logger = logging.getLogger(__name__)


def build_backend(cache_config, backend: Optional[str] = None, path: Optional[str] = None) -> KeyValueBackend:
    """
    Build the backend named by ``persistence.backend``.

    Args:
        cache_config: TranslationCacheConfig
        backend: Override for ``persistence.backend`` (memory | json | mongo)
        path: Override for ``persistence.path`` (json backend only)

    A Mongo backend that cannot be constructed (no connection string, bad
    URI) falls back to an in-memory backend; the adapter degrades the same
    way when Mongo is unreachable at load time.
    """
    kind = (backend or cache_config.persistence_backend).strip().lower()
    if kind == "memory":
        return InMemoryBackend()
    if kind == "json":
        return JsonFileBackend(path or cache_config.persistence_path)
    if kind == "mongo":
        from pymongo.errors import PyMongoError

        from sportsnames.storage.mongo import MongoBackend
        try:
            return MongoBackend.from_config(cache_config.persistence_collection)
        except (ValueError, PyMongoError) as e:
            logger.warning(f"[PERSIST] Mongo backend unavailable, using memory: {e}")
            return InMemoryBackend()
    raise ValueError(f"Unknown persistence backend '{kind}'")


__all__ = [
    "InMemoryBackend",
    "JsonFileBackend",
    "KeyValueBackend",
    "PersistenceAdapter",
    "Snapshot",
    "build_backend",
]
