"""
Team name heuristics.

Only structural tokens are substituted ("FC", "United", "Real", ...), and only
as whole words: "FC Porto" matches the FC rule, "FCPorto" does not. The
remaining name is re-resolved against the team and country tables when a
dictionary is supplied.
"""

import re
from typing import List, Optional, Pattern, Tuple

from sportsnames.heuristics.common import changed, is_chinese, pick_script
from sportsnames.models import EntityType

# (pattern capturing the residue, {'s': template, 't': template}); first match wins
TEAM_RULES: List[Tuple[Pattern, dict]] = [
    (re.compile(r"^(?:FC|CF|AC|AS)\s+(.+)$"), {"s": "{}", "t": "{}"}),
    (re.compile(r"^(.+)\s+(?:FC|CF)$"), {"s": "{}", "t": "{}"}),
    (re.compile(r"^(.+)\s+United$"), {"s": "{}联", "t": "{}聯"}),
    (re.compile(r"^(.+)\s+City$"), {"s": "{}城", "t": "{}城"}),
    (re.compile(r"^Real\s+(.+)$"), {"s": "皇家{}", "t": "皇家{}"}),
    (re.compile(r"^Athletic\s+(.+)$"), {"s": "{}体育", "t": "{}體育"}),
    (re.compile(r"^SC\s+(.+)$"), {"s": "{}体育会", "t": "{}體育會"}),
    (re.compile(r"^(.+)\s+SC$"), {"s": "{}体育会", "t": "{}體育會"}),
    (re.compile(r"^(.+)\s+Internacional$"), {"s": "{}国际", "t": "{}國際"}),
    (re.compile(r"^(.+)\s+Galaxy$"), {"s": "{}银河", "t": "{}銀河"}),
    (re.compile(r"^(.+)\s+Sounders$"), {"s": "{}海湾人", "t": "{}海灣人"}),
    (re.compile(r"^(.+)\s+Fire$"), {"s": "{}火焰", "t": "{}火焰"}),
    (re.compile(r"^(.+)\s+Revolution$"), {"s": "{}革命", "t": "{}革命"}),
    (re.compile(r"^Borussia\s+(.+)$"), {"s": "{}", "t": "{}"}),
    (re.compile(r"^Inter\s+(.+)$"), {"s": "国际{}", "t": "國際{}"}),
    (re.compile(r"^Sporting\s+(.+)$"), {"s": "{}体育", "t": "{}體育"}),
]


def _resolve_residue(residue: str, lang: str, dictionary) -> str:
    if dictionary is None:
        return residue
    return (
        dictionary.lookup(residue, lang, EntityType.TEAM)
        or dictionary.translate_country(residue, lang)
        or residue
    )


def generate(name: str, lang: str, dictionary=None) -> Optional[str]:
    """
    Substitute the first matching structural token for ``lang``.

    Returns None for languages without token rules, when no rule matches,
    or when the result equals ``name``.
    """
    if not name or not is_chinese(lang):
        return None
    stripped = name.strip()
    for pattern, variants in TEAM_RULES:
        m = pattern.match(stripped)
        if m:
            template = pick_script(lang, variants)
            residue = _resolve_residue(m.group(1).strip(), lang, dictionary)
            return changed(template.format(residue), name)
    return None
