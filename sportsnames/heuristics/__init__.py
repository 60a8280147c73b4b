"""
Heuristic translation generators, one pure module per entity type.

- ``country``: spelling normalisation and feed aliases
- ``league``: ``<country><league type>`` synthesis for Chinese variants
- ``team``: whole-word structural token substitution

Usage:
    from sportsnames.heuristics import generate, generate_candidate

    generate("Premier League", "zh-hk", EntityType.LEAGUE, dictionary, "Brazil")
    # '巴西超級聯賽'
"""

from typing import Dict, Iterable, Optional

from sportsnames.heuristics import country, league, team
from sportsnames.models import EncounterRecord, EntityType


def generate(name: str, lang: str, entity_type: EntityType, dictionary,
             context_country: Optional[str] = None) -> Optional[str]:
    """Dispatch to the generator for ``entity_type``. None when no rule applies."""
    if entity_type == EntityType.COUNTRY:
        return country.generate(name, lang, dictionary)
    if entity_type == EntityType.LEAGUE:
        return league.generate(name, lang, dictionary, context_country)
    if entity_type == EntityType.TEAM:
        return team.generate(name, lang, dictionary)
    return None


def generate_candidate(record: EncounterRecord, languages: Iterable[str], dictionary) -> Dict[str, str]:
    """
    Build a full language -> value map for ``record``.

    Languages with no derivation are echo-filled with the original name so
    a later real value can overwrite them.
    """
    candidate: Dict[str, str] = {}
    for lang in languages:
        value = generate(record.name, lang, record.type, dictionary, record.context_country)
        candidate[lang] = value or record.name
    return candidate


__all__ = ["country", "league", "team", "generate", "generate_candidate"]
