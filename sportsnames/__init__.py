"""
Sportsnames - Self-learning multilingual name translation for sports data.

This package maps raw entity names (countries, leagues, teams) arriving
from upstream fixture feeds into per-language display strings:
- Static hand-curated dictionaries (``dictionary``)
- Heuristic pattern generators per entity type (``heuristics``)
- Bounded learned-mapping store with frequency/recency eviction
- Background batch learning from fixture and standings streams (``learning``)
- Corruption-tolerant persistence over key-value backends (``storage``)
- A per-process ``TranslationService`` wiring it all together
"""

from sportsnames.models import EncounterRecord, EntityType, FixtureRecord, StandingsRecord, TranslationMapping
from sportsnames.service import TranslationService, create_service

__version__ = "0.1.0"

__all__ = [
    "EncounterRecord",
    "EntityType",
    "FixtureRecord",
    "StandingsRecord",
    "TranslationMapping",
    "TranslationService",
    "create_service",
]
