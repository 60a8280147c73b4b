"""
Static translation dictionary.

Hand-curated tables for well-known countries, leagues and teams, shipped as
YAML package data in ``sportsnames/dictionary/data``. Lookups are pure: the
tables are loaded once and never mutated.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from sportsnames.errors import CacheConfigError
from sportsnames.models import EntityType

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")

_TABLE_FILES = {
    EntityType.COUNTRY: "countries.yaml",
    EntityType.LEAGUE: "leagues.yaml",
    EntityType.TEAM: "teams.yaml",
}


@dataclass(frozen=True)
class StaticEntry:
    name: str
    translations: Dict[str, str]
    country: Optional[str] = None

    def matches_context(self, context_country: Optional[str]) -> bool:
        if not self.country or not context_country:
            return True
        return self.country.casefold() == context_country.strip().casefold()


def _load_table(path: str, entity_type: EntityType) -> Dict[str, StaticEntry]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise CacheConfigError(f"Dictionary table not found: {path}") from e
    except yaml.YAMLError as e:
        raise CacheConfigError(f"Failed to parse YAML: {path}: {e}") from e

    if not isinstance(data, dict):
        raise CacheConfigError(f"Dictionary table must be a mapping at top-level: {path}")

    entries: Dict[str, StaticEntry] = {}
    for name, value in data.items():
        ctx = f"{path}: {entity_type.value} '{name}'"
        if not isinstance(value, dict):
            raise CacheConfigError(f"Expected mapping for {ctx}")
        # Scoped form: {country: ..., translations: {...}}
        if "translations" in value:
            translations = value["translations"]
            country = value.get("country")
        else:
            translations = value
            country = None
        if not isinstance(translations, dict) or not translations:
            raise CacheConfigError(f"Expected non-empty translations for {ctx}")
        entries[str(name)] = StaticEntry(
            name=str(name),
            translations={str(lang).lower(): str(v) for lang, v in translations.items()},
            country=str(country) if country else None,
        )
    return entries


class StaticDictionary:
    """
    Read-only lookup over the curated tables.

    Usage:
        dictionary = StaticDictionary.default()
        dictionary.lookup("Premier League", "zh-hk", EntityType.LEAGUE)  # '英格蘭超級聯賽'
        dictionary.lookup("Premier League", "zh-hk", EntityType.LEAGUE, context_country="Brazil")  # None
    """

    def __init__(self, tables: Dict[EntityType, Dict[str, StaticEntry]]):
        self._tables = {t: dict(tables.get(t, {})) for t in EntityType}
        # casefolded name -> entry, first definition wins
        self._folded: Dict[EntityType, Dict[str, StaticEntry]] = {}
        for t, entries in self._tables.items():
            folded: Dict[str, StaticEntry] = {}
            for name, entry in entries.items():
                folded.setdefault(name.casefold(), entry)
            self._folded[t] = folded

    @classmethod
    def from_directory(cls, data_dir: str) -> "StaticDictionary":
        tables = {
            t: _load_table(os.path.join(data_dir, filename), t)
            for t, filename in _TABLE_FILES.items()
        }
        return cls(tables)

    @classmethod
    def from_dict(cls, raw: Dict[Any, Dict[str, Any]]) -> "StaticDictionary":
        """Build from ``{type: {name: {lang: value} | {country, translations}}}`` (tests, tooling)."""
        tables: Dict[EntityType, Dict[str, StaticEntry]] = {}
        for t, entries in raw.items():
            entity_type = EntityType.parse(t)
            table = {}
            for name, value in entries.items():
                if "translations" in value:
                    table[name] = StaticEntry(name, dict(value["translations"]), value.get("country"))
                else:
                    table[name] = StaticEntry(name, dict(value))
            tables[entity_type] = table
        return cls(tables)

    @classmethod
    def default(cls) -> "StaticDictionary":
        global _DEFAULT
        if _DEFAULT is None:
            _DEFAULT = cls.from_directory(DATA_DIR)
        return _DEFAULT

    def _entry(self, name: str, entity_type: EntityType,
               context_country: Optional[str]) -> Optional[StaticEntry]:
        """Exact name first, then casefolded, honouring league country scopes."""
        if not name:
            return None
        entry = self._tables[entity_type].get(name)
        if entry is not None and entry.matches_context(context_country):
            return entry
        folded = self._folded[entity_type].get(name.strip().casefold())
        if folded is not None and folded.matches_context(context_country):
            return folded
        return None

    def lookup(self, name: str, lang: str, entity_type: EntityType,
               context_country: Optional[str] = None) -> Optional[str]:
        """Exact match first, then case-insensitive. None when absent or not in ``lang``."""
        entry = self._entry(name, entity_type, context_country)
        if entry is None:
            return None
        return entry.translations.get(lang)

    def has_entry(self, name: str, entity_type: EntityType,
                  context_country: Optional[str] = None) -> bool:
        entry = self._entry(name, entity_type, context_country)
        return entry is not None

    def translate_country(self, name: str, lang: str) -> Optional[str]:
        return self.lookup(name, lang, EntityType.COUNTRY)

    def counts(self) -> Dict[str, int]:
        return {t.value: len(entries) for t, entries in self._tables.items()}


_DEFAULT: Optional[StaticDictionary] = None
