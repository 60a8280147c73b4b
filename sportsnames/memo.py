"""
Ephemeral memo in front of the resolver.

Keeps recently resolved ``name|lang|type[|country]`` results for
``ttl_seconds`` so one rendering pass does not resolve the same name twice.
"""

import threading
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional, Tuple

from sportsnames.models import EntityType
from sportsnames.utils.date_utils import Clock, SystemClock


def memo_key(name: str, lang: str, entity_type: EntityType, context_country: Optional[str] = None) -> str:
    key = f"{name}|{lang}|{entity_type.value}"
    if context_country:
        key = f"{key}|{context_country}"
    return key


class EphemeralMemo:
    """Bounded TTL cache; oldest entries go first when full."""

    def __init__(self, ttl_seconds: float = 300, max_entries: int = 5000, clock: Optional[Clock] = None):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.max_entries = max_entries
        self.clock = clock or SystemClock()
        self._entries: "OrderedDict[str, Tuple[str, datetime]]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[str]:
        now = self.clock.now()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            value, stored_at = entry
            if now - stored_at > self.ttl:
                del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
            return value

    def put(self, key: str, value: str):
        now = self.clock.now()
        with self._lock:
            self._entries[key] = (value, now)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def invalidate(self, name: str, entity_type: EntityType):
        """Drop every memoized result for ``name`` of ``entity_type``."""
        self.invalidate_many([(name, entity_type)])

    def invalidate_many(self, keys: Iterable[Tuple[str, EntityType]]) -> int:
        """
        Drop memoized results for each ``(name, type)`` in one pass.

        Names compare case-insensitively, as learned lookups do.
        """
        targets = {(name.strip().casefold(), entity_type.value) for name, entity_type in keys}
        if not targets:
            return 0
        with self._lock:
            stale = []
            for k in self._entries:
                parts = k.split("|")
                if len(parts) >= 3 and (parts[0].strip().casefold(), parts[2]) in targets:
                    stale.append(k)
            for k in stale:
                del self._entries[k]
        return len(stale)

    def begin_pass(self):
        """Start a new rendering pass: results from the previous pass are dropped."""
        self.clear()

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"size": len(self._entries), "hits": self.hits, "misses": self.misses}
