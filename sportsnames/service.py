"""
Translation service: one object per process wiring every component.

Usage:
    from sportsnames import create_service, EntityType

    service = create_service()               # config -> backend -> adapter -> store
    service.start()                          # periodic learning on a daemon thread
    service.ingest_fixtures(fixtures)        # queue names seen in the feed
    service.ingest_standings(tables)         # ...and in league tables
    service.translate("Premier League", "zh-hk", EntityType.LEAGUE, context_country="Brazil")
    service.shutdown()                       # stop the learner, flush the store
"""

import json
import logging
from typing import Any, Dict, Iterable, Optional, Union

from pydantic import ValidationError

from sportsnames.cache_config import TranslationCacheConfig, load_cache_config
from sportsnames.dictionary import StaticDictionary
from sportsnames.errors import MalformedSourceRecord
from sportsnames.events import TranslationEvents
from sportsnames.learning import BatchLearner, DrainResult, LearningQueue
from sportsnames.memo import EphemeralMemo
from sportsnames.models import EntityType, TranslationMapping
from sportsnames.resolver import TranslationResolver
from sportsnames.schemas import ImportBlob, MappingRecord
from sportsnames.storage import InMemoryBackend, PersistenceAdapter, build_backend
from sportsnames.store import LearnedMappingStore, UpsertOutcome
from sportsnames.utils.date_utils import Clock, SystemClock, to_iso

logger = logging.getLogger(__name__)


class TranslationService:
    """
    Self-learning name translation for countries, leagues and teams.

    ``translate`` never raises and never performs I/O. Learning runs through
    the queue: either on the background thread started by ``start`` or on
    explicit ``drain`` calls.
    """

    def __init__(
        self,
        adapter: Optional[PersistenceAdapter] = None,
        clock: Optional[Clock] = None,
        cache_config: Optional[TranslationCacheConfig] = None,
        events: Optional[TranslationEvents] = None,
        dictionary: Optional[StaticDictionary] = None,
        load: bool = True,
    ):
        self.cache_config = cache_config or load_cache_config()
        self.clock = clock or SystemClock()
        self.events = events or TranslationEvents()
        self.dictionary = dictionary or StaticDictionary.default()
        self.adapter = adapter or PersistenceAdapter(
            InMemoryBackend(), key_prefix=self.cache_config.key_prefix, clock=self.clock,
        )

        self.store = LearnedMappingStore(self.cache_config, clock=self.clock,
                                         adapter=self.adapter, events=self.events)
        self.memo = EphemeralMemo(
            ttl_seconds=self.cache_config.memo_ttl_seconds,
            max_entries=self.cache_config.memo_max_entries,
            clock=self.clock,
        )
        self.queue = LearningQueue(high_water_mark=self.cache_config.high_water_mark)
        self.resolver = TranslationResolver(self.dictionary, self.store, self.memo,
                                            queue=self.queue, events=self.events)
        self.learner = BatchLearner(self.queue, self.store, self.dictionary, self.cache_config,
                                    events=self.events, countries=self.resolver.countries)
        self.queue.on_high_water = self.learner.request_drain
        self.events.on_learned(self._on_learned)
        self.events.on_evicted(self._on_evicted)

        self.malformed_fixtures = 0
        self.malformed_standings = 0
        if load:
            self.store.load()

    def _on_learned(self, mapping, **_):
        self.memo.invalidate(mapping.original, mapping.type)

    def _on_evicted(self, evicted, **_):
        self.memo.invalidate_many(evicted)

    # --- Translation ---

    def translate(self, name: str, lang: str, entity_type, context_country: Optional[str] = None) -> str:
        return self.resolver.translate(name, lang, entity_type, context_country)

    def translate_country(self, name: str, lang: str) -> str:
        return self.resolver.translate(name, lang, EntityType.COUNTRY)

    def translate_league(self, name: str, lang: str, country: Optional[str] = None) -> str:
        return self.resolver.translate(name, lang, EntityType.LEAGUE, country)

    def translate_team(self, name: str, lang: str, country: Optional[str] = None) -> str:
        return self.resolver.translate(name, lang, EntityType.TEAM, country)

    def source_of(self, name: str, lang: str, entity_type, context_country: Optional[str] = None) -> str:
        return self.resolver.source_of(name, lang, entity_type, context_country)

    def begin_render_pass(self):
        self.memo.begin_pass()

    # --- Learning ---

    def ingest_fixtures(self, fixtures: Iterable[Any]) -> Dict[str, int]:
        """
        Queue every name carried by ``fixtures`` (any iterable, consumed lazily).

        Malformed fixtures are skipped and counted.
        """
        seen, queued, malformed = self._ingest(fixtures, self.queue.enqueue_fixture, "fixture")
        self.malformed_fixtures += malformed
        return {"fixtures": seen, "queued": queued, "malformed": malformed}

    def ingest_standings(self, tables: Iterable[Any]) -> Dict[str, int]:
        """
        Queue the country, league and team names of each standings table.

        Accepts one payload per league, flat or grouped. Malformed payloads
        are skipped and counted.
        """
        seen, queued, malformed = self._ingest(tables, self.queue.enqueue_standings, "standings table")
        self.malformed_standings += malformed
        return {"tables": seen, "queued": queued, "malformed": malformed}

    def _ingest(self, items: Iterable[Any], enqueue, label: str):
        seen = queued = malformed = 0
        for raw in items:
            seen += 1
            try:
                queued += enqueue(raw)
            except MalformedSourceRecord as e:
                malformed += 1
                logger.debug(f"[SERVICE] Skipping {label} #{seen}: {e}")
        if malformed:
            logger.info(f"[SERVICE] Skipped {malformed} malformed {label}s of {seen}")
        return seen, queued, malformed

    def drain(self) -> DrainResult:
        return self.learner.drain()

    def drain_all(self) -> DrainResult:
        return self.learner.drain_all()

    def start(self):
        self.learner.start()

    def shutdown(self) -> bool:
        """Stop the learner and flush the store. Returns whether the flush was written."""
        self.learner.stop()
        return self.store.flush()

    # --- Export / import ---

    def export_all_mappings(self) -> Dict[str, Any]:
        mappings = sorted(self.store.all_mappings(), key=lambda m: (m.type.value, m.original))
        return {
            "mappings": [m.to_dict() for m in mappings],
            "stats": {
                "total_mappings": len(mappings),
                "by_type": self.store.counts_by_type(),
            },
            "exported_at": to_iso(self.clock.now()),
        }

    def import_mappings(self, blob: Union[str, bytes, Dict[str, Any], list]) -> Dict[str, int]:
        """
        Merge an exported blob using the ``upsert`` rule.

        Accepts the ``export_all_mappings`` shape (dict or JSON string) or a
        bare list of mappings. Invalid entries are dropped and counted.

        Raises:
            ValueError: if ``blob`` is not JSON or has no usable envelope
        """
        if isinstance(blob, (str, bytes)):
            blob = json.loads(blob)
        if isinstance(blob, list):
            blob = {"mappings": blob}
        if not isinstance(blob, dict):
            raise ValueError(f"Import blob must be a mapping, got {type(blob).__name__}")
        try:
            envelope = ImportBlob.model_validate(blob)
        except ValidationError as e:
            raise ValueError(f"Invalid import blob: {e}") from e

        counts = {"inserted": 0, "merged": 0, "rejected": 0, "invalid": 0}
        now = self.clock.now()
        with self.store.deferred_save():
            for entry in envelope.mappings:
                try:
                    record = MappingRecord.model_validate(entry)
                except ValidationError as e:
                    counts["invalid"] += 1
                    logger.debug(f"[SERVICE] Dropping invalid import entry: {e.error_count()} error(s)")
                    continue
                outcome = self.store.upsert(record.to_mapping(default_time=now))
                counts[outcome.value] += 1
                if outcome != UpsertOutcome.REJECTED:
                    self.memo.invalidate(record.original, record.type)
        logger.info(f"[SERVICE] Imported {counts['inserted']} new, {counts['merged']} merged, "
                    f"{counts['rejected'] + counts['invalid']} dropped")
        return counts

    # --- Maintenance ---

    def correct_mapping(self, original: str, entity_type,
                        translations: Dict[str, str]) -> Optional[TranslationMapping]:
        """
        Replace wrong learned values for one name.

        Given languages are overwritten, real values included, and saved at
        once. Returns the corrected mapping, or None when every real value
        was reset and the mapping was removed.

        Raises:
            ValueError: on an unknown type or no usable translation
        """
        entity_type = EntityType.parse(entity_type)
        mapping = self.store.correct(original, entity_type, translations)
        self.memo.invalidate(original, entity_type)
        return mapping

    def remove_mapping(self, original: str, entity_type) -> bool:
        """Forget one learned mapping. False when nothing was stored under that name."""
        entity_type = EntityType.parse(entity_type)
        removed = self.store.remove(original, entity_type)
        self.memo.invalidate(original, entity_type)
        return removed is not None

    def get_stats(self) -> Dict[str, Any]:
        return {
            "store": self.store.stats(),
            "queue": self.queue.stats(),
            "learner": self.learner.stats(),
            "memo": self.memo.stats(),
            "persistence": self.adapter.status(),
            "dictionary": self.dictionary.counts(),
            "events": self.events.counts(),
            "malformed_fixtures": self.malformed_fixtures,
            "malformed_standings": self.malformed_standings,
        }

    def clear_all(self) -> Dict[str, int]:
        """Forget every learned mapping, pending record and memoized result."""
        removed = self.store.clear()
        dropped = self.queue.clear()
        self.memo.clear()
        return {"mappings": removed, "queued": dropped}


def create_service(
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
    backend: Optional[str] = None,
    store_path: Optional[str] = None,
    clock: Optional[Clock] = None,
    events: Optional[TranslationEvents] = None,
) -> TranslationService:
    """
    Build a service from configuration.

    Args:
        config_path: Cache config YAML (defaults to SPORTSNAMES_CONFIG, then packaged default)
        overrides: Nested dict merged over the loaded config
        backend: Persistence backend override (memory | json | mongo);
                 falls back to SPORTSNAMES_BACKEND
        store_path: JSON store path override; falls back to SPORTSNAMES_STORE_PATH
        clock: Clock to use (system clock by default)
        events: Event registry to publish on
    """
    from sportsnames.config import config

    cache_config = load_cache_config(config_path, overrides)
    clock = clock or SystemClock()
    kv = build_backend(
        cache_config,
        backend=backend or config.get("backend") or None,
        path=store_path or config.get("store_path") or None,
    )
    adapter = PersistenceAdapter(kv, key_prefix=cache_config.key_prefix, clock=clock)
    service = TranslationService(adapter=adapter, clock=clock, cache_config=cache_config, events=events)
    logger.info(f"[SERVICE] Ready: {service.store.size()} learned mappings from {kv.describe()}")
    return service
