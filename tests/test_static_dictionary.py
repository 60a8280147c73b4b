"""Tests for the curated static dictionary."""

import os
import shutil
import tempfile
import unittest

from sportsnames.dictionary import StaticDictionary
from sportsnames.errors import CacheConfigError
from sportsnames.models import EntityType


class TestPackagedTables(unittest.TestCase):

    def setUp(self):
        self.dictionary = StaticDictionary.default()

    def test_default_is_shared(self):
        self.assertIs(StaticDictionary.default(), self.dictionary)

    def test_exact_lookup(self):
        self.assertEqual(self.dictionary.lookup("Brazil", "zh-hk", EntityType.COUNTRY), "巴西")
        self.assertEqual(self.dictionary.lookup("Porto", "zh-hk", EntityType.TEAM), "波圖")
        self.assertEqual(self.dictionary.lookup("Chelsea", "zh-hk", EntityType.TEAM), "車路士")

    def test_case_insensitive_lookup(self):
        self.assertEqual(self.dictionary.lookup("premier league", "zh-hk", EntityType.LEAGUE), "英格蘭超級聯賽")
        self.assertEqual(self.dictionary.lookup("CHELSEA", "zh", EntityType.TEAM), "切尔西")
        self.assertEqual(self.dictionary.lookup(" Chelsea ", "zh", EntityType.TEAM), "切尔西")

    def test_types_are_separate_namespaces(self):
        self.assertIsNone(self.dictionary.lookup("Chelsea", "zh", EntityType.LEAGUE))
        self.assertIsNone(self.dictionary.lookup("Chelsea", "zh", EntityType.COUNTRY))

    def test_missing_language(self):
        self.assertIsNone(self.dictionary.lookup("Brazil", "fr", EntityType.COUNTRY))

    def test_unknown_name(self):
        self.assertIsNone(self.dictionary.lookup("Atlantis", "zh", EntityType.COUNTRY))
        self.assertIsNone(self.dictionary.lookup("", "zh", EntityType.COUNTRY))
        self.assertFalse(self.dictionary.has_entry("Atlantis", EntityType.COUNTRY))

    def test_scoped_league_honours_context_country(self):
        pl = "Premier League"
        self.assertEqual(self.dictionary.lookup(pl, "zh-hk", EntityType.LEAGUE), "英格蘭超級聯賽")
        self.assertEqual(self.dictionary.lookup(pl, "zh-hk", EntityType.LEAGUE, "England"), "英格蘭超級聯賽")
        self.assertEqual(self.dictionary.lookup(pl, "zh-hk", EntityType.LEAGUE, "england"), "英格蘭超級聯賽")
        self.assertIsNone(self.dictionary.lookup(pl, "zh-hk", EntityType.LEAGUE, "Brazil"))
        self.assertFalse(self.dictionary.has_entry(pl, EntityType.LEAGUE, "Brazil"))
        self.assertTrue(self.dictionary.has_entry(pl, EntityType.LEAGUE, "England"))

    def test_unscoped_league_matches_any_country(self):
        self.assertIsNotNone(
            self.dictionary.lookup("UEFA Champions League", "zh", EntityType.LEAGUE, "Brazil")
        )

    def test_translate_country(self):
        self.assertEqual(self.dictionary.translate_country("Saudi Arabia", "zh-hk"), "沙地阿拉伯")
        self.assertIsNone(self.dictionary.translate_country("Saudi-Arabia", "zh-hk"))

    def test_counts(self):
        counts = self.dictionary.counts()
        self.assertEqual(set(counts), {"country", "league", "team"})
        self.assertGreaterEqual(counts["country"], 20)
        self.assertGreaterEqual(counts["league"], 10)
        self.assertGreaterEqual(counts["team"], 40)


class TestCustomTables(unittest.TestCase):

    def test_from_dict(self):
        d = StaticDictionary.from_dict({
            "team": {"Porto": {"zh-hk": "波圖"}},
            "league": {"Serie A": {"country": "Italy", "translations": {"zh": "意甲"}}},
        })
        self.assertEqual(d.lookup("porto", "zh-hk", EntityType.TEAM), "波圖")
        self.assertEqual(d.lookup("Serie A", "zh", EntityType.LEAGUE, "Italy"), "意甲")
        self.assertIsNone(d.lookup("Serie A", "zh", EntityType.LEAGUE, "Brazil"))
        self.assertEqual(d.counts(), {"country": 0, "league": 1, "team": 1})

    def test_from_directory_errors(self):
        tmp = tempfile.mkdtemp()
        try:
            with self.assertRaises(CacheConfigError):
                StaticDictionary.from_directory(tmp)

            for name in ("countries.yaml", "leagues.yaml"):
                with open(os.path.join(tmp, name), "w", encoding="utf-8") as f:
                    f.write("Brazil: {zh: 巴西}\n")
            with open(os.path.join(tmp, "teams.yaml"), "w", encoding="utf-8") as f:
                f.write("Porto: not-a-mapping\n")
            with self.assertRaises(CacheConfigError):
                StaticDictionary.from_directory(tmp)
        finally:
            shutil.rmtree(tmp)


if __name__ == "__main__":
    unittest.main()
