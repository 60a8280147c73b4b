"""
Tiered translation resolver.

``translate`` is total: whatever happens it returns a string, and the worst
case is the input unchanged. Tiers, first hit wins:

1. ephemeral memo
2. static dictionary (exact, then case-insensitive)
3. learned store (exact, then case-insensitive; echo placeholders are not hits)
4. heuristic generators

A league looked up with a country runs 4 before 3: the learned store is
keyed by name alone and must not answer for another country.
5. miss: enqueue for learning, emit ``miss``, return the input
"""

import logging
from typing import Optional, Tuple

from sportsnames import heuristics
from sportsnames.dictionary import StaticDictionary
from sportsnames.events import MISS, TranslationEvents
from sportsnames.memo import EphemeralMemo, memo_key
from sportsnames.models import EncounterRecord, EntityType
from sportsnames.store import LearnedMappingStore

logger = logging.getLogger(__name__)

SOURCE_MEMO = "memo"
SOURCE_STATIC = "static"
SOURCE_LEARNED = "learned"
SOURCE_HEURISTIC = "heuristic"
SOURCE_PASSTHROUGH = "passthrough"


class CountrySource:
    """Country translations from the static table, then the learned store."""

    def __init__(self, dictionary: StaticDictionary, store: LearnedMappingStore):
        self.dictionary = dictionary
        self.store = store

    def lookup(self, name: str, lang: str, entity_type: EntityType) -> Optional[str]:
        return self.dictionary.lookup(name, lang, entity_type)

    def translate_country(self, name: str, lang: str) -> Optional[str]:
        value = self.dictionary.translate_country(name, lang)
        if value:
            return value
        learned = self.store.find(name, EntityType.COUNTRY)
        if learned is not None and not learned.is_placeholder(lang):
            return learned.translations[lang]
        return None


class TranslationResolver:
    def __init__(self, dictionary: StaticDictionary, store: LearnedMappingStore,
                 memo: EphemeralMemo, queue=None, events: Optional[TranslationEvents] = None):
        self.dictionary = dictionary
        self.store = store
        self.memo = memo
        self.queue = queue
        self.events = events
        self.countries = CountrySource(dictionary, store)

    def translate(self, name: str, lang: str, entity_type, context_country: Optional[str] = None) -> str:
        """Translate ``name`` into ``lang``. Never raises; returns ``name`` on a miss."""
        try:
            value, _ = self._resolve(name, lang, entity_type, context_country)
            return value
        except Exception as e:
            logger.warning(f"[RESOLVER] translate({name!r}, {lang!r}) failed, passing through: {e}")
            return name

    def source_of(self, name: str, lang: str, entity_type, context_country: Optional[str] = None) -> str:
        """Which tier answers ``name`` right now (memo, static, learned, heuristic, passthrough)."""
        _, source = self._resolve(name, lang, entity_type, context_country, observe=False)
        return source

    def _resolve(self, name: str, lang: str, entity_type, context_country: Optional[str],
                 observe: bool = True) -> Tuple[str, str]:
        """Resolve through the tiers. ``observe=False`` skips memo writes, usage bumps and miss recording."""
        if not name or not lang or not isinstance(name, str):
            return name, SOURCE_PASSTHROUGH
        entity_type = EntityType.parse(entity_type)
        lang = lang.strip().lower()
        context_country = context_country or None

        key = memo_key(name, lang, entity_type, context_country)
        cached = self.memo.get(key)
        if cached is not None:
            return cached, SOURCE_MEMO

        value = self.dictionary.lookup(name, lang, entity_type, context_country)
        if value:
            if observe:
                self.memo.put(key, value)
            return value, SOURCE_STATIC

        if entity_type == EntityType.LEAGUE and context_country:
            tiers = (self._heuristic, self._learned)
        else:
            tiers = (self._learned, self._heuristic)
        for tier in tiers:
            value, source = tier(name, lang, entity_type, context_country, observe)
            if value:
                if observe:
                    self.memo.put(key, value)
                return value, source

        if observe:
            self._record_miss(name, lang, entity_type, context_country)
        return name, SOURCE_PASSTHROUGH

    def _learned(self, name, lang, entity_type, context_country, observe):
        learned = self.store.find(name, entity_type)
        if learned is None or learned.is_placeholder(lang):
            return None, SOURCE_LEARNED
        if observe:
            self.store.record_use(learned.original, entity_type)
        return learned.translations[lang], SOURCE_LEARNED

    def _heuristic(self, name, lang, entity_type, context_country, observe):
        return heuristics.generate(name, lang, entity_type, self.countries, context_country), SOURCE_HEURISTIC

    def _record_miss(self, name: str, lang: str, entity_type: EntityType, context_country: Optional[str]):
        logger.debug(f"[RESOLVER] miss {entity_type.value} '{name}' ({lang})")
        if self.queue is not None:
            self.queue.enqueue(
                EncounterRecord(name=name, type=entity_type, context_country=context_country),
                notify=False,
            )
        if self.events is not None:
            self.events.emit(MISS, name=name, lang=lang, type=entity_type, context_country=context_country)
