"""
MongoDB-backed key-value store.

Each persisted key is one document::

    {"_id": "<key>", "value": "<serialized mapping>", "updated_at": <datetime>}
"""

import logging
import re
from datetime import datetime
from typing import List, Optional
from urllib.parse import urlparse

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError
from pytz import utc

from sportsnames.config import config
from sportsnames.errors import BackendUnavailable
from sportsnames.storage.backends import KeyValueBackend

logger = logging.getLogger(__name__)


class Mongo:
    """
    MongoDB connection wrapper.

    Usage:
        mongo = Mongo()
        collection = mongo.db.translation_cache
    """

    def __init__(self, conn_str: Optional[str] = None, server_selection_timeout_ms: int = 2000):
        conn_str = conn_str or config["mongo_conn_str"]
        if not conn_str:
            raise ValueError("mongo_conn_str is not set (MONGO_CONN_STR or MONGODB_URI)")
        self.client = MongoClient(conn_str, serverSelectionTimeoutMS=server_selection_timeout_ms)

        # Parse database name from connection string (required)
        parsed = urlparse(conn_str)
        db_name = parsed.path.lstrip('/') if parsed.path and parsed.path != '/' else None
        if not db_name:
            raise ValueError("Database name must be specified in mongo_conn_str (e.g., mongodb://localhost:27017/sportsnames)")
        self.db = self.client[db_name]


class MongoBackend(KeyValueBackend):
    """Write-through key-value store over a single collection."""

    name = "mongo"

    def __init__(self, collection: Collection):
        self._collection = collection

    @classmethod
    def from_config(cls, collection_name: str, conn_str: Optional[str] = None) -> "MongoBackend":
        mongo = Mongo(conn_str)
        return cls(mongo.db[collection_name])

    @property
    def collection(self) -> Collection:
        return self._collection

    def ping(self) -> None:
        try:
            self._collection.database.client.admin.command("ping")
        except PyMongoError as e:
            raise BackendUnavailable(f"MongoDB unreachable: {e}") from e

    def get(self, key: str) -> Optional[str]:
        doc = self._collection.find_one({"_id": key}, {"value": 1})
        if doc is None:
            return None
        return doc.get("value")

    def set(self, key: str, value: str) -> None:
        self._collection.update_one(
            {"_id": key},
            {"$set": {"value": value, "updated_at": datetime.now(utc)}},
            upsert=True,
        )

    def remove(self, key: str) -> None:
        self._collection.delete_one({"_id": key})

    def keys(self, prefix: str = "") -> List[str]:
        query = {"_id": {"$regex": f"^{re.escape(prefix)}"}} if prefix else {}
        return [doc["_id"] for doc in self._collection.find(query, {"_id": 1})]

    def describe(self) -> str:
        return f"mongo:{self._collection.full_name}"
