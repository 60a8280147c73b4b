"""
Learned mapping store.

Bounded collection of ``TranslationMapping`` entries keyed by
``(original, type)``. Learning goes through ``upsert``:

- existing key: translations are unioned, but a new value only replaces an
  echo placeholder; ``frequency`` +1, ``last_used`` = now,
  ``confidence`` = max(old, new)
- absent key: inserted only when it carries at least one real translation

``correct`` and ``remove`` are the manual repair path for a wrong value.

Once ``size() > cleanup_threshold`` an eviction pass keeps the
``retain_mappings`` best entries by ``frequency x recency_boost``.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from sportsnames.events import EVICTED, TranslationEvents
from sportsnames.models import EntityType, MappingKey, TranslationMapping
from sportsnames.schemas import is_sentinel
from sportsnames.utils.date_utils import Clock, SystemClock

logger = logging.getLogger(__name__)


class UpsertOutcome(str, Enum):
    INSERTED = "inserted"
    MERGED = "merged"
    REJECTED = "rejected"


class LearnedMappingStore:
    """
    Usage:
        store = LearnedMappingStore(cache_config, clock=clock, adapter=adapter)
        store.load()
        store.upsert(TranslationMapping("FC Porto", EntityType.TEAM, {"zh-hk": "波圖"}))
        store.get("FC Porto", EntityType.TEAM).translations["zh-hk"]  # '波圖'
    """

    def __init__(self, cache_config, clock: Optional[Clock] = None, adapter=None,
                 events: Optional[TranslationEvents] = None):
        self.max_mappings = cache_config.max_mappings
        self.cleanup_threshold = cache_config.cleanup_threshold
        self.retain_mappings = cache_config.retain_mappings
        self.recency_window = timedelta(days=cache_config.recency_window_days)
        self.recency_boost = cache_config.recency_boost
        self.clock = clock or SystemClock()
        self.adapter = adapter
        self.events = events

        self._mappings: Dict[MappingKey, TranslationMapping] = {}
        self._folded: Dict[Tuple[str, EntityType], MappingKey] = {}
        self._lock = threading.RLock()
        self._save_lock = threading.Lock()
        self._defer_depth = 0
        self._save_pending = False
        self._dirty = False

        self._counters = {"inserted": 0, "merged": 0, "rejected": 0, "corrected": 0, "removed": 0,
                          "evicted": 0, "eviction_passes": 0}

    # --- Reads ---

    def size(self) -> int:
        with self._lock:
            return len(self._mappings)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: MappingKey) -> bool:
        with self._lock:
            return key in self._mappings

    def get(self, original: str, entity_type: EntityType) -> Optional[TranslationMapping]:
        """Exact-key lookup. Returns a copy; callers never hold the stored instance."""
        with self._lock:
            m = self._mappings.get((original, entity_type))
            return m.copy() if m is not None else None

    def find(self, original: str, entity_type: EntityType) -> Optional[TranslationMapping]:
        """Exact match, then case-insensitive match."""
        if not original:
            return None
        with self._lock:
            m = self._mappings.get((original, entity_type))
            if m is None:
                key = self._folded.get((original.strip().casefold(), entity_type))
                m = self._mappings.get(key) if key is not None else None
            return m.copy() if m is not None else None

    def counts_by_type(self) -> Dict[str, int]:
        with self._lock:
            counts = {t.value: 0 for t in EntityType}
            for original, entity_type in self._mappings:
                counts[entity_type.value] += 1
            return counts

    def all_mappings(self) -> List[TranslationMapping]:
        with self._lock:
            return [m.copy() for m in self._mappings.values()]

    def __iter__(self) -> Iterator[TranslationMapping]:
        return iter(self.all_mappings())

    def stats(self) -> Dict[str, object]:
        with self._lock:
            return {
                "size": len(self._mappings),
                "by_type": self.counts_by_type(),
                "max_mappings": self.max_mappings,
                "cleanup_threshold": self.cleanup_threshold,
                "retain_mappings": self.retain_mappings,
                **self._counters,
            }

    # --- Writes ---

    def upsert(self, mapping: TranslationMapping) -> UpsertOutcome:
        """Insert or merge ``mapping``; see module docstring for the merge rule."""
        evicted: List[TranslationMapping] = []
        with self._lock:
            now = self.clock.now()
            existing = self._mappings.get(mapping.key)

            if existing is not None:
                content_changed = self._merge_into(existing, mapping)
                existing.frequency += 1
                existing.last_used = now
                existing.confidence = max(existing.confidence, mapping.confidence)
                self._counters["merged"] += 1
                self._dirty = True
                outcome = UpsertOutcome.MERGED
                save = content_changed
            else:
                translations = {
                    lang: v for lang, v in mapping.translations.items()
                    if isinstance(v, str) and not is_sentinel(v)
                }
                if not any(v != mapping.original for v in translations.values()):
                    self._counters["rejected"] += 1
                    return UpsertOutcome.REJECTED
                inserted = mapping.copy()
                inserted.translations = translations
                inserted.frequency = max(1, inserted.frequency)
                if inserted.last_used is None:
                    inserted.last_used = now
                self._put(inserted)
                self._counters["inserted"] += 1
                self._dirty = True
                outcome = UpsertOutcome.INSERTED
                save = True
                if len(self._mappings) > self.cleanup_threshold:
                    evicted = self._evict_locked(now)

            if save:
                self._save_pending = True

        self._emit_evicted(evicted)
        if save:
            self._maybe_save()
        return outcome

    def record_use(self, original: str, entity_type: EntityType) -> bool:
        """Usage bump for a resolver hit. False when the key is not stored."""
        with self._lock:
            if (original, entity_type) not in self._mappings:
                return False
        outcome = self.upsert(TranslationMapping(original=original, type=entity_type, translations={},
                                                 last_used=self.clock.now()))
        return outcome == UpsertOutcome.MERGED

    def correct(self, original: str, entity_type: EntityType,
                translations: Dict[str, str]) -> Optional[TranslationMapping]:
        """
        Overwrite the given languages of one mapping, real values included.

        This is the repair path for a wrong learned value; ``upsert`` never
        replaces a real value. A value equal to ``original`` resets that
        language to a placeholder. A mapping left without a real translation
        is removed, and None is returned.

        Raises:
            ValueError: if ``translations`` has no usable value, or the
                mapping does not exist and would carry no real translation
        """
        cleaned = {
            lang.strip().lower(): v.strip() for lang, v in (translations or {}).items()
            if isinstance(lang, str) and lang.strip() and isinstance(v, str) and not is_sentinel(v)
        }
        if not cleaned:
            raise ValueError(f"No usable translations given for {entity_type.value} '{original}'")

        evicted: List[TranslationMapping] = []
        with self._lock:
            now = self.clock.now()
            key = self._resolve_key(original, entity_type)
            existing = self._mappings.get(key) if key is not None else None
            if existing is None:
                mapping = TranslationMapping(original=original, type=entity_type, translations=cleaned,
                                             frequency=1, last_used=now, confidence=1.0)
                if not mapping.has_useful_translation():
                    raise ValueError(f"No real translation given for new {entity_type.value} '{original}'")
                self._put(mapping)
                self._counters["inserted"] += 1
                if len(self._mappings) > self.cleanup_threshold:
                    evicted = self._evict_locked(now)
            else:
                mapping = existing
                mapping.translations.update(cleaned)
                mapping.last_used = now
                mapping.confidence = 1.0
                if not mapping.has_useful_translation():
                    del self._mappings[mapping.key]
                    self._reindex()
                    mapping = None
            self._counters["corrected"] += 1
            self._dirty = True
            self._save_pending = True
            result = mapping.copy() if mapping is not None and mapping.key in self._mappings else None

        logger.info(f"[STORE] Corrected {entity_type.value} '{original}': {sorted(cleaned)}")
        self._emit_evicted(evicted)
        self._maybe_save()
        return result

    def remove(self, original: str, entity_type: EntityType) -> Optional[TranslationMapping]:
        """Delete one mapping (exact, then case-insensitive name). Returns it, or None when absent."""
        with self._lock:
            key = self._resolve_key(original, entity_type)
            if key is None:
                return None
            removed = self._mappings.pop(key)
            self._reindex()
            self._counters["removed"] += 1
            self._dirty = True
            self._save_pending = True
        logger.info(f"[STORE] Removed {entity_type.value} '{removed.original}'")
        self._maybe_save()
        return removed

    def _resolve_key(self, original: str, entity_type: EntityType) -> Optional[MappingKey]:
        if not original:
            return None
        if (original, entity_type) in self._mappings:
            return (original, entity_type)
        key = self._folded.get((original.strip().casefold(), entity_type))
        return key if key in self._mappings else None

    @staticmethod
    def _merge_into(existing: TranslationMapping, incoming: TranslationMapping) -> bool:
        changed = False
        for lang, value in incoming.translations.items():
            if not isinstance(value, str) or is_sentinel(value):
                continue
            current = existing.translations.get(lang)
            if current == value:
                continue
            if current is None or current == existing.original:
                existing.translations[lang] = value
                changed = True
        return changed

    def _put(self, mapping: TranslationMapping):
        self._mappings[mapping.key] = mapping
        self._folded.setdefault((mapping.original.strip().casefold(), mapping.type), mapping.key)

    def _reindex(self):
        self._folded = {}
        for key, m in self._mappings.items():
            self._folded.setdefault((m.original.strip().casefold(), m.type), key)

    # --- Eviction ---

    def score(self, mapping: TranslationMapping, now: Optional[datetime] = None) -> float:
        now = now or self.clock.now()
        boost = self.recency_boost if now - mapping.last_used <= self.recency_window else 1.0
        return mapping.frequency * boost

    def _evict_locked(self, now: datetime) -> List[TranslationMapping]:
        ranked = sorted(
            self._mappings.values(),
            key=lambda m: (self.score(m, now), m.last_used, m.original),
            reverse=True,
        )
        keep, drop = ranked[:self.retain_mappings], ranked[self.retain_mappings:]
        if not drop:
            return []
        self._mappings = {m.key: m for m in keep}
        self._reindex()
        self._counters["evicted"] += len(drop)
        self._counters["eviction_passes"] += 1
        logger.info(f"[STORE] Evicted {len(drop)} mappings, {len(keep)} remain")
        return drop

    def _emit_evicted(self, evicted: List[TranslationMapping]):
        if evicted and self.events is not None:
            self.events.emit(
                EVICTED,
                evicted=[m.key for m in evicted],
                count=len(evicted),
                remaining=self.size(),
            )

    # --- Persistence ---

    @contextmanager
    def deferred_save(self):
        """Coalesce saves inside the block into one save on exit."""
        with self._lock:
            self._defer_depth += 1
        try:
            yield self
        finally:
            with self._lock:
                self._defer_depth -= 1
                run = self._defer_depth == 0 and self._save_pending
            if run:
                self._maybe_save()

    def _maybe_save(self) -> bool:
        with self._lock:
            if self._defer_depth > 0 or not self._save_pending:
                return False
        return self._save()

    def _save(self) -> bool:
        if self.adapter is None:
            with self._lock:
                self._save_pending = False
            return False
        with self._save_lock:
            with self._lock:
                snapshot = self.all_mappings()
                self._save_pending = False
                self._dirty = False
            ok = self.adapter.save(snapshot)
            if not ok:
                with self._lock:
                    self._dirty = True
            return ok

    def flush(self) -> bool:
        """Persist the current state if anything changed since the last save."""
        with self._lock:
            if not self._dirty and not self._save_pending:
                return False
        return self._save()

    def load(self, adapter=None) -> int:
        """
        Replace in-memory state with the adapter's snapshot.

        Entries without a real translation are skipped; duplicate keys are
        merged. Returns the number of mappings held afterwards.
        """
        if adapter is not None:
            self.adapter = adapter
        if self.adapter is None:
            return 0
        snapshot = self.adapter.load()
        evicted: List[TranslationMapping] = []
        with self._lock:
            self._mappings = {}
            self._folded = {}
            if snapshot is not None:
                for mapping in snapshot.mappings:
                    if not mapping.has_useful_translation():
                        continue
                    existing = self._mappings.get(mapping.key)
                    if existing is None:
                        self._put(mapping)
                    else:
                        self._merge_into(existing, mapping)
                        existing.frequency = max(existing.frequency, mapping.frequency)
                        existing.last_used = max(existing.last_used, mapping.last_used)
                        existing.confidence = max(existing.confidence, mapping.confidence)
            if len(self._mappings) > self.cleanup_threshold:
                evicted = self._evict_locked(self.clock.now())
                self._save_pending = True
            self._dirty = False
            size = len(self._mappings)
        self._emit_evicted(evicted)
        self._maybe_save()
        return size

    def clear(self) -> int:
        """Drop every mapping and wipe the persisted copy. Returns the number removed."""
        with self._lock:
            removed = len(self._mappings)
            self._mappings = {}
            self._folded = {}
            self._save_pending = False
            self._dirty = False
        if self.adapter is not None:
            self.adapter.clear()
        logger.info(f"[STORE] Cleared {removed} mappings")
        return removed
