"""Tests for the YAML-backed cache configuration."""

import os
import shutil
import tempfile
import unittest

from sportsnames.cache_config import DEFAULT_CONFIG_PATH, TranslationCacheConfig, load_cache_config
from sportsnames.errors import CacheConfigError
from sportsnames.models import EntityType


class TestDefaultConfig(unittest.TestCase):

    def test_packaged_defaults(self):
        cfg = load_cache_config(DEFAULT_CONFIG_PATH, use_cache=False)
        self.assertEqual(cfg.languages, ["zh", "zh-hk", "zh-tw", "es", "de", "it", "pt"])
        self.assertEqual(cfg.max_mappings, 10000)
        self.assertEqual(cfg.cleanup_threshold, 9000)
        self.assertEqual(cfg.retain_mappings, 7500)
        self.assertEqual(cfg.batch_size, 100)
        self.assertEqual(cfg.high_water_mark, 50)
        self.assertEqual(cfg.drain_interval_seconds, 30.0)
        self.assertEqual(cfg.key_prefix, "sportsnames:")

    def test_confidence_per_type(self):
        cfg = load_cache_config(DEFAULT_CONFIG_PATH)
        self.assertEqual(cfg.confidence_for(EntityType.COUNTRY), 0.8)
        self.assertEqual(cfg.confidence_for(EntityType.LEAGUE), 0.9)
        self.assertEqual(cfg.confidence_for("team"), 0.7)
        with self.assertRaises(CacheConfigError):
            cfg.confidence_for("player")

    def test_loader_caches_by_path(self):
        a = load_cache_config(DEFAULT_CONFIG_PATH)
        b = load_cache_config(DEFAULT_CONFIG_PATH)
        self.assertIs(a, b)


class TestValidation(unittest.TestCase):

    def test_caps_must_be_ordered(self):
        with self.assertRaises(CacheConfigError):
            TranslationCacheConfig.from_dict(
                {"store": {"max_mappings": 100, "cleanup_threshold": 200, "retain_mappings": 50}}
            )
        with self.assertRaises(CacheConfigError):
            TranslationCacheConfig.from_dict(
                {"store": {"max_mappings": 100, "cleanup_threshold": 80, "retain_mappings": 90}}
            )

    def test_retain_defaults_to_cleanup_threshold(self):
        base = load_cache_config(DEFAULT_CONFIG_PATH)
        raw = dict(base.raw)
        raw["store"] = {"max_mappings": 100, "cleanup_threshold": 80}
        cfg = TranslationCacheConfig(raw=raw, config_path="<test>").validate()
        self.assertEqual(cfg.retain_mappings, 80)

    def test_bad_backend_rejected(self):
        with self.assertRaises(CacheConfigError):
            TranslationCacheConfig.from_dict({"persistence": {"backend": "redis"}})

    def test_bool_is_not_an_integer(self):
        with self.assertRaises(CacheConfigError):
            TranslationCacheConfig.from_dict({"learning": {"batch_size": True}})

    def test_with_overrides_returns_new_config(self):
        base = TranslationCacheConfig.from_dict({})
        tuned = base.with_overrides({"learning": {"batch_size": 7}})
        self.assertEqual(tuned.batch_size, 7)
        self.assertEqual(base.batch_size, 100)


class TestConfigFiles(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp)

    def _write(self, text):
        path = os.path.join(self.tmp, "cache.yaml")
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def test_partial_file_merges_over_defaults(self):
        path = self._write("languages: [zh-hk, de]\nlearning:\n  batch_size: 10\n")
        cfg = load_cache_config(path, use_cache=False)
        self.assertEqual(cfg.languages, ["zh-hk", "de"])
        self.assertEqual(cfg.batch_size, 10)
        self.assertEqual(cfg.max_mappings, 10000)

    def test_overrides_applied_last(self):
        path = self._write("learning:\n  batch_size: 10\n")
        cfg = load_cache_config(path, overrides={"learning": {"batch_size": 3}})
        self.assertEqual(cfg.batch_size, 3)

    def test_missing_file(self):
        with self.assertRaises(CacheConfigError):
            load_cache_config(os.path.join(self.tmp, "nope.yaml"), use_cache=False)

    def test_invalid_yaml(self):
        path = self._write("languages: [zh\n")
        with self.assertRaises(CacheConfigError):
            load_cache_config(path, use_cache=False)

    def test_non_mapping_top_level(self):
        path = self._write("- a\n- b\n")
        with self.assertRaises(CacheConfigError):
            load_cache_config(path, use_cache=False)


if __name__ == "__main__":
    unittest.main()
