"""Shared fixtures for the test suite."""

from datetime import datetime

from pytz import utc

from sportsnames.cache_config import TranslationCacheConfig
from sportsnames.events import TranslationEvents
from sportsnames.models import EntityType, TranslationMapping
from sportsnames.service import TranslationService
from sportsnames.storage import InMemoryBackend, PersistenceAdapter
from sportsnames.utils.date_utils import FixedClock

START = datetime(2025, 8, 1, 12, 0, tzinfo=utc)


def make_config(**sections) -> TranslationCacheConfig:
    """Small caps, in-memory persistence; ``sections`` deep-merge on top."""
    raw = {
        "store": {"max_mappings": 20, "cleanup_threshold": 10, "retain_mappings": 5},
        "learning": {"batch_size": 50, "high_water_mark": 1000, "drain_interval_seconds": 0.05},
        "persistence": {"backend": "memory"},
    }
    for key, value in sections.items():
        raw[key] = dict(raw.get(key, {}), **value)
    return TranslationCacheConfig.from_dict(raw, config_path="<test>")


def make_mapping(original, entity_type=EntityType.TEAM, translations=None, **kwargs) -> TranslationMapping:
    if translations is None:
        translations = {"zh": f"{original}-zh"}
    kwargs.setdefault("last_used", START)
    return TranslationMapping(original=original, type=entity_type, translations=translations, **kwargs)


def make_service(backend=None, clock=None, events=None, **sections):
    clock = clock or FixedClock(START)
    cache_config = make_config(**sections)
    adapter = PersistenceAdapter(backend or InMemoryBackend(), key_prefix=cache_config.key_prefix, clock=clock)
    return TranslationService(adapter=adapter, clock=clock, cache_config=cache_config,
                              events=events or TranslationEvents())


def fixture(home=None, away=None, league=None, country=None, league_id=None) -> dict:
    raw = {}
    if home or away:
        raw["teams"] = {"home": {"name": home}, "away": {"name": away}}
    if league or country:
        raw["league"] = {"name": league, "country": country, "id": league_id}
    return raw
