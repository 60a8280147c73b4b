"""
Country name heuristics.

Feeds spell countries inconsistently ("Saudi-Arabia", "USA", "Korea Republic").
The generator normalises the spelling and re-resolves it against the country
table.
"""

from typing import Optional

from sportsnames.heuristics.common import changed, collapse_whitespace

# Feed spelling (casefolded) -> dictionary spelling
COUNTRY_ALIASES = {
    "usa": "United States",
    "us": "United States",
    "united states of america": "United States",
    "korea republic": "South Korea",
    "republic of korea": "South Korea",
    "korea": "South Korea",
    "czechia": "Czech Republic",
    "türkiye": "Turkey",
    "turkiye": "Turkey",
    "holland": "Netherlands",
    "the netherlands": "Netherlands",
    "ksa": "Saudi Arabia",
    "china pr": "China",
}


def normalize_country(name: str) -> str:
    """'Saudi-Arabia' -> 'Saudi Arabia', 'Korea Republic' -> 'South Korea'."""
    spaced = collapse_whitespace(name.replace("-", " ").replace("_", " "))
    return COUNTRY_ALIASES.get(spaced.casefold(), spaced)


def generate(name: str, lang: str, dictionary) -> Optional[str]:
    """
    Derive a country translation from a normalised spelling.

    Args:
        name: Country name as the feed spells it
        lang: Target language
        dictionary: Anything with ``translate_country(name, lang)``

    Returns:
        The translation, or None when normalisation does not change the name
        or the normalised name is unknown.
    """
    if not name or not lang:
        return None
    normalized = normalize_country(name)
    if normalized == name:
        return None
    return changed(dictionary.translate_country(normalized, lang), name)


def resolve_country(name: Optional[str], lang: str, dictionary) -> Optional[str]:
    """Country translation by exact name, falling back to the normalised spelling."""
    if not name:
        return None
    value = dictionary.translate_country(name, lang)
    if value:
        return value
    normalized = normalize_country(name)
    if normalized != name:
        return dictionary.translate_country(normalized, lang)
    return None
