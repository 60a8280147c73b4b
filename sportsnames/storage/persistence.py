"""
Persistence adapter: learned mappings <-> key-value backend.

Layout under ``key_prefix`` (default ``sportsnames:``):

    <prefix>m:<type>:<original>   one JSON-encoded mapping per key
    <prefix>meta                  {"version", "saved_at", "count"}

One key per mapping means one corrupted value costs one mapping, never the
whole cache. Saves are best-effort and write only what changed; the
in-memory store stays authoritative whatever the backend does.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from sportsnames.errors import BackendUnavailable, CorruptPersistedEntry, PersistenceWriteFailure
from sportsnames.models import TranslationMapping
from sportsnames.schemas import MappingRecord, is_sentinel
from sportsnames.storage.backends import KeyValueBackend
from sportsnames.utils.date_utils import Clock, SystemClock, parse_timestamp, to_iso

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


@dataclass
class Snapshot:
    """Point-in-time view of the learned mappings."""
    mappings: List[TranslationMapping] = field(default_factory=list)
    saved_at: Optional[datetime] = None
    dropped: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.mappings)


class PersistenceAdapter:
    """
    Serialize/deserialize snapshots through a ``KeyValueBackend``.

    When the backend is entirely unavailable the adapter switches to
    degraded (memory-only) mode and skips every later save.
    """

    def __init__(self, backend: KeyValueBackend, key_prefix: str = "sportsnames:",
                 clock: Optional[Clock] = None):
        self.backend = backend
        self.key_prefix = key_prefix
        self.clock = clock or SystemClock()
        self._degraded = False
        self._degraded_reason: Optional[str] = None
        # key -> last serialized value known to be in the backend; None = unknown
        self._known: Optional[Dict[str, str]] = None
        self.save_count = 0
        self.failed_saves = 0

    # --- Keys ---

    @property
    def mapping_prefix(self) -> str:
        return f"{self.key_prefix}m:"

    @property
    def meta_key(self) -> str:
        return f"{self.key_prefix}meta"

    def key_for(self, mapping: TranslationMapping) -> str:
        return f"{self.mapping_prefix}{mapping.type.value}:{mapping.original}"

    # --- State ---

    @property
    def degraded(self) -> bool:
        return self._degraded

    def _degrade(self, reason: str):
        if not self._degraded:
            logger.warning(f"[PERSIST] Backend {self.backend.describe()} unavailable, "
                           f"continuing memory-only: {reason}")
        self._degraded = True
        self._degraded_reason = reason

    def status(self) -> Dict[str, object]:
        return {
            "backend": self.backend.describe(),
            "degraded": self._degraded,
            "degraded_reason": self._degraded_reason,
            "saves": self.save_count,
            "failed_saves": self.failed_saves,
        }

    # --- Encoding ---

    @staticmethod
    def encode(mapping: TranslationMapping) -> str:
        return json.dumps(mapping.to_dict(), ensure_ascii=False, sort_keys=True)

    def decode(self, key: str, raw: Optional[str]) -> TranslationMapping:
        """
        Decode one persisted value.

        Raises:
            CorruptPersistedEntry: sentinel or empty value, invalid JSON, or a
                payload that fails ``MappingRecord`` validation.
        """
        if not isinstance(raw, str) or is_sentinel(raw):
            raise CorruptPersistedEntry(key, f"sentinel or non-string value {raw!r}")
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise CorruptPersistedEntry(key, f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise CorruptPersistedEntry(key, f"expected object, got {type(data).__name__}")
        try:
            record = MappingRecord.model_validate(data)
        except ValidationError as e:
            raise CorruptPersistedEntry(key, f"{e.error_count()} validation error(s)") from e
        return record.to_mapping(default_time=self.clock.now())

    # --- Operations ---

    def load(self) -> Optional[Snapshot]:
        """
        Read every mapping under the prefix.

        Corrupt entries are logged, dropped, and removed from the backend
        best-effort. Returns None when nothing was persisted or the backend
        is unavailable.
        """
        try:
            self.backend.ping()
            keys = self.backend.keys(self.mapping_prefix)
            meta_raw = self.backend.get(self.meta_key)
        except BackendUnavailable as e:
            self._degrade(str(e))
            return None
        except Exception as e:
            self._degrade(f"{type(e).__name__}: {e}")
            return None

        if not keys and meta_raw is None:
            self._known = {}
            return None

        snapshot = Snapshot(saved_at=self._parse_meta(meta_raw))
        known: Dict[str, str] = {}
        for key in sorted(keys):
            try:
                raw = self.backend.get(key)
                mapping = self.decode(key, raw)
            except CorruptPersistedEntry as e:
                logger.warning(f"[PERSIST] Dropping {e}")
                snapshot.dropped.append(key)
                continue
            except Exception as e:
                logger.warning(f"[PERSIST] Dropping '{key}': read failed: {e}")
                snapshot.dropped.append(key)
                continue
            snapshot.mappings.append(mapping)
            known[key] = raw

        for key in snapshot.dropped:
            try:
                self.backend.remove(key)
            except Exception as e:
                logger.debug(f"[PERSIST] Could not remove corrupt key '{key}': {e}")

        self._known = known
        logger.info(f"[PERSIST] Loaded {len(snapshot.mappings)} mappings from {self.backend.describe()}"
                    + (f" ({len(snapshot.dropped)} corrupt dropped)" if snapshot.dropped else ""))
        return snapshot

    def _parse_meta(self, meta_raw: Optional[str]) -> Optional[datetime]:
        if not meta_raw:
            return None
        try:
            return parse_timestamp(json.loads(meta_raw).get("saved_at"))
        except (ValueError, AttributeError):
            logger.debug(f"[PERSIST] Ignoring unreadable meta key: {meta_raw!r}")
            return None

    def save(self, mappings: Iterable[TranslationMapping]) -> bool:
        """
        Persist ``mappings`` (a Snapshot or any iterable of mappings).

        Writes changed entries, removes entries no longer present, updates
        the meta key, then flushes the backend. Failures are logged and
        swallowed.

        Returns:
            True when the backend accepted the snapshot.
        """
        if self._degraded:
            return False
        if isinstance(mappings, Snapshot):
            mappings = mappings.mappings

        encoded = {self.key_for(m): self.encode(m) for m in mappings}
        try:
            known = self._known
            if known is None:
                known = {k: None for k in self.backend.keys(self.mapping_prefix)}

            changed = 0
            for key, value in encoded.items():
                if known.get(key) != value:
                    self.backend.set(key, value)
                    changed += 1
            stale = [k for k in known if k not in encoded]
            for key in stale:
                self.backend.remove(key)

            if changed or stale or self._known is None:
                meta = {"version": SNAPSHOT_VERSION, "saved_at": to_iso(self.clock.now()), "count": len(encoded)}
                self.backend.set(self.meta_key, json.dumps(meta))
            self.backend.flush()
        except BackendUnavailable as e:
            self.failed_saves += 1
            self._known = None
            self._degrade(str(e))
            return False
        except Exception as e:
            self.failed_saves += 1
            self._known = None
            failure = PersistenceWriteFailure(f"save to {self.backend.describe()} failed: {e}")
            logger.warning(f"[PERSIST] {failure}")
            return False

        self._known = encoded
        self.save_count += 1
        logger.debug(f"[PERSIST] Saved {len(encoded)} mappings ({changed} written, {len(stale)} removed)")
        return True

    def clear(self) -> bool:
        """Remove every key under the prefix."""
        if self._degraded:
            self._known = {}
            return False
        try:
            for key in self.backend.keys(self.key_prefix):
                self.backend.remove(key)
            self.backend.flush()
        except Exception as e:
            self._known = None
            logger.warning(f"[PERSIST] clear on {self.backend.describe()} failed: {e}")
            return False
        self._known = {}
        return True
