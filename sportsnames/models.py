"""
Core data model for the translation cache.

- ``EntityType``: partition of the translation namespace
- ``TranslationMapping``: a learned original -> per-language display strings entry
- ``EncounterRecord``: an observed name waiting in the learning queue
- ``FixtureRecord``: tagged optional-field view over a raw upstream fixture
- ``StandingsRecord``: the same view over a raw league table
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from sportsnames.errors import MalformedSourceRecord
from sportsnames.utils.date_utils import to_iso


class EntityType(str, Enum):
    COUNTRY = "country"
    LEAGUE = "league"
    TEAM = "team"

    @classmethod
    def parse(cls, value: Any) -> "EntityType":
        """Accept an EntityType or a case-insensitive name/value string."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            v = value.strip().lower()
            for member in cls:
                if member.value == v:
                    return member
        raise ValueError(f"Unknown entity type: {value!r}")


MappingKey = Tuple[str, EntityType]


@dataclass
class TranslationMapping:
    """
    A learned translation entry.

    A language whose value equals ``original`` is an echo placeholder: it
    renders the same as a miss and may be overwritten by any real value.
    """
    original: str
    type: EntityType
    translations: Dict[str, str] = field(default_factory=dict)
    frequency: int = 1
    # None until the store stamps it from its clock
    last_used: Optional[datetime] = None
    confidence: float = 0.0

    @property
    def key(self) -> MappingKey:
        return (self.original, self.type)

    def is_placeholder(self, lang: str) -> bool:
        value = self.translations.get(lang)
        return value is None or value == self.original

    def useful_languages(self) -> List[str]:
        """Languages carrying a real (non-echo) translation."""
        return [lang for lang, v in self.translations.items() if v and v != self.original]

    def has_useful_translation(self) -> bool:
        return bool(self.useful_languages())

    def copy(self) -> "TranslationMapping":
        return TranslationMapping(
            original=self.original,
            type=self.type,
            translations=dict(self.translations),
            frequency=self.frequency,
            last_used=self.last_used,
            confidence=self.confidence,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original": self.original,
            "type": self.type.value,
            "translations": dict(self.translations),
            "frequency": self.frequency,
            "last_used": to_iso(self.last_used) if self.last_used is not None else None,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class EncounterRecord:
    """A name observed in a fixture (or a resolver miss) awaiting learning."""
    name: str
    type: EntityType
    context_country: Optional[str] = None
    context_league_id: Optional[int] = None

    @property
    def natural_key(self) -> Tuple[EntityType, str, Optional[str]]:
        return (self.type, self.name, self.context_country)


# --- Fixture feed records ---

def _str_field(d: Any, key: str) -> Optional[str]:
    if not isinstance(d, dict):
        return None
    v = d.get(key)
    if isinstance(v, str) and v.strip():
        return v.strip()
    return None


def _int_field(d: Any, key: str) -> Optional[int]:
    if not isinstance(d, dict):
        return None
    v = d.get(key)
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, str) and v.strip().isdigit():
        return int(v.strip())
    return None


@dataclass(frozen=True)
class LeagueInfo:
    name: Optional[str] = None
    country: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class TeamsInfo:
    home: Optional[str] = None
    away: Optional[str] = None


@dataclass(frozen=True)
class FixtureRecord:
    """
    Presence-checked view of an upstream fixture.

    Upstream shape (every field optional):
        {"teams": {"home": {"name": ...}, "away": {"name": ...}},
         "league": {"name": ..., "country": ..., "id": ...}}
    """
    teams: Optional[TeamsInfo] = None
    league: Optional[LeagueInfo] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "FixtureRecord":
        """
        Parse a raw fixture mapping.

        Raises:
            MalformedSourceRecord: if ``raw`` is not a mapping or carries
                neither a ``teams`` nor a ``league`` section.
        """
        if not isinstance(raw, dict):
            raise MalformedSourceRecord(f"Fixture must be a mapping, got {type(raw).__name__}")

        raw_teams = raw.get("teams")
        raw_league = raw.get("league")
        if not isinstance(raw_teams, dict) and not isinstance(raw_league, dict):
            raise MalformedSourceRecord("Fixture has neither 'teams' nor 'league'")

        teams = None
        if isinstance(raw_teams, dict):
            teams = TeamsInfo(
                home=_str_field(raw_teams.get("home"), "name"),
                away=_str_field(raw_teams.get("away"), "name"),
            )

        league = None
        if isinstance(raw_league, dict):
            league = LeagueInfo(
                name=_str_field(raw_league, "name"),
                country=_str_field(raw_league, "country"),
                id=_int_field(raw_league, "id"),
            )

        return cls(teams=teams, league=league)

    def encounters(self) -> Iterator[EncounterRecord]:
        """Yield every country, league and team name this fixture carries."""
        teams = (self.teams.home, self.teams.away) if self.teams else ()
        return _feed_encounters(self.league, teams)


@dataclass(frozen=True)
class StandingsRecord:
    """
    Presence-checked view of an upstream league table.

    Upstream shape (every field optional besides ``league``):
        {"league": {"name": ..., "country": ..., "id": ...,
                    "standings": [[{"team": {"name": ...}}, ...], ...]}}

    ``standings`` is either one flat list of rows or a list of groups
    (cup and qualifier tables); both forms may be mixed.
    """
    league: LeagueInfo
    teams: Tuple[str, ...] = ()

    @classmethod
    def from_raw(cls, raw: Any) -> "StandingsRecord":
        """
        Parse a raw standings payload.

        Raises:
            MalformedSourceRecord: if ``raw`` is not a mapping or has no
                ``league`` section.
        """
        if not isinstance(raw, dict):
            raise MalformedSourceRecord(f"Standings must be a mapping, got {type(raw).__name__}")
        raw_league = raw.get("league")
        if not isinstance(raw_league, dict):
            raise MalformedSourceRecord("Standings have no 'league'")

        rows = []
        table = raw_league.get("standings")
        if isinstance(table, list):
            for item in table:
                if isinstance(item, list):
                    rows.extend(item)
                else:
                    rows.append(item)

        teams = []
        for row in rows:
            name = _str_field(row.get("team") if isinstance(row, dict) else None, "name")
            if name and name not in teams:
                teams.append(name)

        league = LeagueInfo(
            name=_str_field(raw_league, "name"),
            country=_str_field(raw_league, "country"),
            id=_int_field(raw_league, "id"),
        )
        return cls(league=league, teams=tuple(teams))

    def encounters(self) -> Iterator[EncounterRecord]:
        """Yield the table's country and league, then every team in it."""
        return _feed_encounters(self.league, self.teams)


def _feed_encounters(league: Optional[LeagueInfo], team_names) -> Iterator[EncounterRecord]:
    country = league.country if league else None
    league_id = league.id if league else None

    if country:
        yield EncounterRecord(name=country, type=EntityType.COUNTRY)

    if league and league.name:
        yield EncounterRecord(
            name=league.name,
            type=EntityType.LEAGUE,
            context_country=country,
            context_league_id=league_id,
        )

    for team_name in team_names:
        if team_name:
            yield EncounterRecord(
                name=team_name,
                type=EntityType.TEAM,
                context_country=country,
                context_league_id=league_id,
            )
