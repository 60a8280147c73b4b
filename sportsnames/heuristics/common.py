"""Language helpers shared by the per-type generators."""

import re
from typing import Dict, Optional

SIMPLIFIED_CHINESE = ("zh",)
TRADITIONAL_CHINESE = ("zh-hk", "zh-tw")
CHINESE_LANGS = SIMPLIFIED_CHINESE + TRADITIONAL_CHINESE

_WS_RE = re.compile(r"\s+")


def is_chinese(lang: str) -> bool:
    return lang in CHINESE_LANGS


def pick_script(lang: str, variants: Dict[str, str]) -> Optional[str]:
    """
    Choose the simplified ('s') or traditional ('t') variant for a Chinese language.

    Returns None for non-Chinese languages.
    """
    if lang in SIMPLIFIED_CHINESE:
        return variants.get("s")
    if lang in TRADITIONAL_CHINESE:
        return variants.get("t")
    return None


def collapse_whitespace(value: str) -> str:
    return _WS_RE.sub(" ", value).strip()


def changed(result: Optional[str], original: str) -> Optional[str]:
    """Return ``result`` unless it is empty or echoes ``original``."""
    if not result or result == original:
        return None
    return result
