"""
Translation cache configuration loader.

All tunables (languages, store caps, learning cadence, memo and
persistence settings) live in a YAML file. The packaged default is
``sportsnames/settings/default.yaml``; deployments point
``SPORTSNAMES_CONFIG`` (or the CLI ``--config`` flag) at their own copy.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import yaml

from sportsnames.errors import CacheConfigError

_SETTINGS_DIR = os.path.join(os.path.dirname(__file__), "settings")
DEFAULT_CONFIG_PATH = os.path.join(_SETTINGS_DIR, "default.yaml")

PERSISTENCE_BACKENDS = ("memory", "json", "mongo")


def _load_yaml(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise CacheConfigError(f"Cache config must be a mapping at top-level: {path}")
        return data
    except FileNotFoundError as e:
        raise CacheConfigError(f"Cache config not found: {path}") from e
    except yaml.YAMLError as e:
        raise CacheConfigError(f"Failed to parse YAML: {path}: {e}") from e


def _require(d: Dict[str, Any], key: str, ctx: str) -> Any:
    if key not in d:
        raise CacheConfigError(f"Missing required key '{key}' in {ctx}")
    return d[key]


def _as_str(x: Any, ctx: str) -> str:
    if not isinstance(x, str) or not x.strip():
        raise CacheConfigError(f"Expected non-empty string for {ctx}")
    return x


def _as_dict(x: Any, ctx: str) -> Dict[str, Any]:
    if not isinstance(x, dict):
        raise CacheConfigError(f"Expected mapping for {ctx}")
    return x


def _as_int(x: Any, ctx: str, minimum: int = 0) -> int:
    if isinstance(x, bool) or not isinstance(x, int):
        raise CacheConfigError(f"Expected integer for {ctx}")
    if x < minimum:
        raise CacheConfigError(f"Expected {ctx} >= {minimum}, got {x}")
    return x


def _as_float(x: Any, ctx: str, low: float = 0.0, high: Optional[float] = None) -> float:
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        raise CacheConfigError(f"Expected number for {ctx}")
    v = float(x)
    if v < low or (high is not None and v > high):
        raise CacheConfigError(f"Expected {ctx} in [{low}, {high}], got {v}")
    return v


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in overrides.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = copy.deepcopy(v)
    return out


@dataclass(frozen=True)
class TranslationCacheConfig:
    """
    Translation cache configuration loaded from a YAML mapping.

    Provides access to:
    - target languages
    - store caps (hard cap, soft cap, retain count) and recency scoring
    - learning cadence (batch size, timer interval, high-water mark)
    - per-type learning confidence
    - memo TTL/size
    - persistence backend settings
    """
    raw: Dict[str, Any]
    config_path: str

    # --- Meta ---

    @property
    def name(self) -> str:
        meta = self.raw.get("meta") or {}
        return _as_str(meta.get("name", "default"), "meta.name")

    @property
    def languages(self) -> List[str]:
        langs = _require(self.raw, "languages", self.config_path)
        if not isinstance(langs, list) or not langs:
            raise CacheConfigError(f"Expected non-empty list for languages in {self.config_path}")
        return [_as_str(lang, "languages[]").strip().lower() for lang in langs]

    # --- Store ---

    @property
    def _store(self) -> Dict[str, Any]:
        return _as_dict(_require(self.raw, "store", self.config_path), "store")

    @property
    def max_mappings(self) -> int:
        return _as_int(_require(self._store, "max_mappings", self.config_path), "store.max_mappings", 1)

    @property
    def cleanup_threshold(self) -> int:
        return _as_int(_require(self._store, "cleanup_threshold", self.config_path), "store.cleanup_threshold", 1)

    @property
    def retain_mappings(self) -> int:
        v = self._store.get("retain_mappings")
        if v is None:
            return self.cleanup_threshold
        return _as_int(v, "store.retain_mappings", 1)

    @property
    def recency_window_days(self) -> int:
        return _as_int(self._store.get("recency_window_days", 30), "store.recency_window_days", 0)

    @property
    def recency_boost(self) -> float:
        return _as_float(self._store.get("recency_boost", 2), "store.recency_boost", 1.0)

    # --- Learning ---

    @property
    def _learning(self) -> Dict[str, Any]:
        return _as_dict(self.raw.get("learning") or {}, "learning")

    @property
    def batch_size(self) -> int:
        return _as_int(self._learning.get("batch_size", 100), "learning.batch_size", 1)

    @property
    def drain_interval_seconds(self) -> float:
        return _as_float(self._learning.get("drain_interval_seconds", 30), "learning.drain_interval_seconds", 0.0)

    @property
    def high_water_mark(self) -> int:
        return _as_int(self._learning.get("high_water_mark", 50), "learning.high_water_mark", 1)

    def confidence_for(self, entity_type) -> float:
        """Learning confidence for an ``EntityType`` (or its string value)."""
        key = getattr(entity_type, "value", entity_type)
        defaults = {"country": 0.8, "league": 0.9, "team": 0.7}
        conf = _as_dict(self._learning.get("confidence") or {}, "learning.confidence")
        if key not in defaults:
            raise CacheConfigError(f"Unknown entity type for confidence: {key}")
        return _as_float(conf.get(key, defaults[key]), f"learning.confidence.{key}", 0.0, 1.0)

    # --- Memo ---

    @property
    def memo_ttl_seconds(self) -> float:
        memo = _as_dict(self.raw.get("memo") or {}, "memo")
        return _as_float(memo.get("ttl_seconds", 300), "memo.ttl_seconds", 0.0)

    @property
    def memo_max_entries(self) -> int:
        memo = _as_dict(self.raw.get("memo") or {}, "memo")
        return _as_int(memo.get("max_entries", 5000), "memo.max_entries", 1)

    # --- Persistence ---

    @property
    def _persistence(self) -> Dict[str, Any]:
        return _as_dict(self.raw.get("persistence") or {}, "persistence")

    @property
    def persistence_backend(self) -> str:
        backend = _as_str(self._persistence.get("backend", "memory"), "persistence.backend").strip().lower()
        if backend not in PERSISTENCE_BACKENDS:
            raise CacheConfigError(
                f"persistence.backend must be one of {', '.join(PERSISTENCE_BACKENDS)}, "
                f"got '{backend}' in {self.config_path}"
            )
        return backend

    @property
    def persistence_path(self) -> str:
        p = _as_str(self._persistence.get("path", "~/.sportsnames/translations.json"), "persistence.path")
        return os.path.expanduser(p)

    @property
    def persistence_collection(self) -> str:
        return _as_str(self._persistence.get("collection", "translation_cache"), "persistence.collection")

    @property
    def key_prefix(self) -> str:
        prefix = self._persistence.get("key_prefix", "sportsnames:")
        if not isinstance(prefix, str):
            raise CacheConfigError("Expected string for persistence.key_prefix")
        return prefix

    # --- Validation / construction ---

    def validate(self) -> "TranslationCacheConfig":
        """Touch every property so bad values fail at startup, then check cross-field caps."""
        _ = self.name
        _ = self.languages
        _ = self.recency_window_days
        _ = self.recency_boost
        _ = self.batch_size
        _ = self.drain_interval_seconds
        _ = self.high_water_mark
        for t in ("country", "league", "team"):
            _ = self.confidence_for(t)
        _ = self.memo_ttl_seconds
        _ = self.memo_max_entries
        _ = self.persistence_backend
        _ = self.key_prefix

        if not (self.retain_mappings <= self.cleanup_threshold <= self.max_mappings):
            raise CacheConfigError(
                "store caps must satisfy retain_mappings <= cleanup_threshold <= max_mappings "
                f"(got {self.retain_mappings}, {self.cleanup_threshold}, {self.max_mappings}) in {self.config_path}"
            )
        return self

    def with_overrides(self, overrides: Dict[str, Any]) -> "TranslationCacheConfig":
        """Return a new validated config with ``overrides`` deep-merged over this one."""
        return TranslationCacheConfig(
            raw=_deep_merge(self.raw, overrides),
            config_path=self.config_path,
        ).validate()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], config_path: str = "<dict>") -> "TranslationCacheConfig":
        """Build a config from the packaged defaults overlaid with ``raw``."""
        base = _load_yaml(DEFAULT_CONFIG_PATH)
        return cls(raw=_deep_merge(base, raw or {}), config_path=config_path).validate()


# --- Loader infrastructure ---

_CACHE: Dict[str, TranslationCacheConfig] = {}


def load_cache_config(
    path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
    *,
    use_cache: bool = True,
) -> TranslationCacheConfig:
    """
    Load the translation cache config from YAML.

    Args:
        path: YAML file to load. Falls back to ``SPORTSNAMES_CONFIG`` from
              ``sportsnames.config``, then to the packaged default.
        overrides: Optional nested dict deep-merged over the file contents
        use_cache: Whether to cache loaded configs (ignored when overrides are given)

    Returns:
        Validated TranslationCacheConfig
    """
    if path is None:
        from sportsnames.config import config
        path = config.get("cache_config_path") or DEFAULT_CONFIG_PATH

    path = os.path.expanduser(path)

    if not overrides and use_cache and path in _CACHE:
        return _CACHE[path]

    raw = _load_yaml(path)
    if path != DEFAULT_CONFIG_PATH:
        raw = _deep_merge(_load_yaml(DEFAULT_CONFIG_PATH), raw)
    if overrides:
        raw = _deep_merge(raw, overrides)

    cfg = TranslationCacheConfig(raw=raw, config_path=path).validate()

    if not overrides and use_cache:
        _CACHE[path] = cfg
    return cfg
