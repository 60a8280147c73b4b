"""
Validation schemas for untrusted mapping payloads.

Persisted snapshot entries and externally supplied import blobs both pass
through ``MappingRecord`` before they reach the store. An entry that fails
validation is dropped on its own; it never takes its neighbours down.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from sportsnames.models import EntityType, TranslationMapping
from sportsnames.utils.date_utils import parse_timestamp

# Values a JS-side writer leaves behind when it stringifies a missing value.
SENTINEL_VALUES = frozenset({"undefined", "null", "none", ""})


def is_sentinel(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip().lower() in SENTINEL_VALUES)


class MappingRecord(BaseModel):
    """A single learned mapping as stored or exchanged."""
    original: str = Field(..., min_length=1)
    type: EntityType
    translations: Dict[str, str]
    frequency: int = Field(1, ge=1)
    last_used: Optional[datetime] = None
    confidence: float = Field(0.0, ge=0.0, le=1.0)

    @field_validator('original')
    @classmethod
    def validate_original(cls, v):
        if is_sentinel(v):
            raise ValueError("original is empty or a sentinel value")
        return v

    @field_validator('type', mode='before')
    @classmethod
    def validate_type(cls, v):
        return EntityType.parse(v)

    @field_validator('translations', mode='before')
    @classmethod
    def validate_translations(cls, v):
        if not isinstance(v, dict):
            raise ValueError("translations must be a mapping")
        cleaned = {}
        for lang, value in v.items():
            if not isinstance(lang, str) or not lang.strip():
                continue
            if not isinstance(value, str) or is_sentinel(value):
                continue
            cleaned[lang.strip().lower()] = value
        if not cleaned:
            raise ValueError("translations is empty after dropping sentinel values")
        return cleaned

    @field_validator('last_used', mode='before')
    @classmethod
    def validate_last_used(cls, v):
        if v is None:
            return None
        parsed = parse_timestamp(v)
        if parsed is None:
            raise ValueError(f"unparseable last_used: {v!r}")
        return parsed

    def to_mapping(self, default_time: datetime) -> TranslationMapping:
        return TranslationMapping(
            original=self.original,
            type=self.type,
            translations=dict(self.translations),
            frequency=self.frequency,
            last_used=self.last_used or default_time,
            confidence=self.confidence,
        )


class ImportBlob(BaseModel):
    """
    Envelope accepted by ``TranslationService.import_mappings``.

    Entries are kept raw here and validated one at a time so a single bad
    entry does not reject the whole blob.
    """
    mappings: List[Any] = Field(default_factory=list)

    @field_validator('mappings', mode='before')
    @classmethod
    def validate_mappings(cls, v):
        if v is None:
            return []
        if isinstance(v, dict):
            # {"<original>": {...}} keyed form
            return [dict(entry, original=entry.get("original", key)) if isinstance(entry, dict) else entry
                    for key, entry in v.items()]
        if not isinstance(v, list):
            raise ValueError("mappings must be a list or mapping")
        out = []
        for entry in v:
            # [key, mapping] pair form produced by Map-entry exports
            if isinstance(entry, (list, tuple)) and len(entry) == 2 and isinstance(entry[1], dict):
                entry = entry[1]
            out.append(entry)
        return out
