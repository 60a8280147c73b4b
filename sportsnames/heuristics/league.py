"""
League name heuristics.

A league called "Premier League" in a Brazil fixture is not England's Premier
League. When the fixture's country has a known translation, the generic
league type is synthesised as ``<country><suffix>`` (Chinese variants only).
"""

import re
from typing import List, Optional, Pattern, Tuple

from sportsnames.heuristics.common import changed, is_chinese, pick_script
from sportsnames.heuristics.country import resolve_country

# Checked in order; first match wins. 's' simplified, 't' traditional.
LEAGUE_RULES: List[Tuple[Pattern, dict]] = [
    (re.compile(r"\bpremier league\b", re.I), {"s": "超级联赛", "t": "超級聯賽"}),
    (re.compile(r"\bsuper league\b", re.I), {"s": "超级联赛", "t": "超級聯賽"}),
    (re.compile(r"\bchampionship\b", re.I), {"s": "冠军联赛", "t": "冠軍聯賽"}),
    (re.compile(r"\bprimera divisi[oó]n\b", re.I), {"s": "甲级联赛", "t": "甲級聯賽"}),
    (re.compile(r"\bfirst division\b", re.I), {"s": "甲级联赛", "t": "甲級聯賽"}),
    (re.compile(r"\bsecond division\b", re.I), {"s": "乙级联赛", "t": "乙級聯賽"}),
    (re.compile(r"\bsuper ?cup\b", re.I), {"s": "超级杯", "t": "超級盃"}),
    (re.compile(r"\bcup\b", re.I), {"s": "杯", "t": "盃"}),
]


def match_suffix(name: str, lang: str) -> Optional[str]:
    for pattern, variants in LEAGUE_RULES:
        if pattern.search(name):
            return pick_script(lang, variants)
    return None


def generate(name: str, lang: str, dictionary, context_country: Optional[str] = None) -> Optional[str]:
    """
    Synthesise a localized league name from its country and league type.

    Returns None for non-Chinese languages, when no rule matches, or when the
    country has no known translation.
    """
    if not name or not is_chinese(lang) or not context_country:
        return None
    suffix = match_suffix(name, lang)
    if not suffix:
        return None
    country = resolve_country(context_country, lang, dictionary)
    if not country or country == context_country:
        return None
    return changed(f"{country}{suffix}", name)
