"""Tests for the bounded learned mapping store."""

import unittest

from sportsnames.events import TranslationEvents
from sportsnames.models import EntityType, TranslationMapping
from sportsnames.storage import InMemoryBackend, PersistenceAdapter
from sportsnames.store import LearnedMappingStore, UpsertOutcome
from sportsnames.utils.date_utils import FixedClock
from tests.helpers import START, make_config, make_mapping


class StoreTestCase(unittest.TestCase):

    def setUp(self):
        self.clock = FixedClock(START)
        self.backend = InMemoryBackend()
        self.adapter = PersistenceAdapter(self.backend, clock=self.clock)
        self.events = TranslationEvents()
        self.store = LearnedMappingStore(make_config(), clock=self.clock, adapter=self.adapter,
                                         events=self.events)


class TestUpsert(StoreTestCase):

    def test_insert_and_get_copy(self):
        outcome = self.store.upsert(make_mapping("Porto", translations={"zh-hk": "波圖"}))
        self.assertEqual(outcome, UpsertOutcome.INSERTED)
        self.assertEqual(self.store.size(), 1)
        self.assertIn(("Porto", EntityType.TEAM), self.store)

        got = self.store.get("Porto", EntityType.TEAM)
        got.translations["zh-hk"] = "tampered"
        self.assertEqual(self.store.get("Porto", EntityType.TEAM).translations["zh-hk"], "波圖")

    def test_insert_requires_a_real_translation(self):
        self.assertEqual(self.store.upsert(make_mapping("Porto", translations={"de": "Porto"})),
                         UpsertOutcome.REJECTED)
        self.assertEqual(self.store.upsert(make_mapping("Porto", translations={"zh": "undefined"})),
                         UpsertOutcome.REJECTED)
        self.assertEqual(self.store.upsert(make_mapping("Porto", translations={})), UpsertOutcome.REJECTED)
        self.assertEqual(self.store.size(), 0)
        self.assertEqual(self.store.stats()["rejected"], 3)

    def test_sentinel_values_dropped_on_insert(self):
        self.store.upsert(make_mapping("Porto", translations={"zh-hk": "波圖", "zh": "null"}))
        self.assertEqual(self.store.get("Porto", EntityType.TEAM).translations, {"zh-hk": "波圖"})

    def test_merge_never_downgrades(self):
        self.store.upsert(make_mapping("FC Porto", translations={"zh-hk": "波圖", "de": "FC Porto"},
                                       confidence=0.9))
        self.clock.advance(days=1)
        outcome = self.store.upsert(make_mapping("FC Porto", translations={"zh-hk": "其他", "de": "FC Porto e.V.",
                                                                           "es": "Oporto"},
                                                 confidence=0.5))
        self.assertEqual(outcome, UpsertOutcome.MERGED)
        m = self.store.get("FC Porto", EntityType.TEAM)
        self.assertEqual(m.translations, {"zh-hk": "波圖", "de": "FC Porto e.V.", "es": "Oporto"})
        self.assertEqual(m.frequency, 2)
        self.assertEqual(m.confidence, 0.9)
        self.assertEqual(m.last_used, self.clock.now())

    def test_merge_raises_confidence(self):
        self.store.upsert(make_mapping("Porto", confidence=0.5))
        self.store.upsert(make_mapping("Porto", confidence=0.8))
        self.assertEqual(self.store.get("Porto", EntityType.TEAM).confidence, 0.8)

    def test_merge_of_echo_only_candidate_bumps_frequency(self):
        self.store.upsert(make_mapping("Porto", translations={"zh-hk": "波圖"}))
        outcome = self.store.upsert(make_mapping("Porto", translations={"de": "Porto"}))
        self.assertEqual(outcome, UpsertOutcome.MERGED)
        m = self.store.get("Porto", EntityType.TEAM)
        self.assertEqual(m.frequency, 2)
        self.assertEqual(m.translations, {"zh-hk": "波圖", "de": "Porto"})

    def test_types_do_not_collide(self):
        self.store.upsert(make_mapping("Brazil", EntityType.COUNTRY, {"zh": "巴西"}))
        self.store.upsert(make_mapping("Brazil", EntityType.TEAM, {"zh": "巴西队"}))
        self.assertEqual(self.store.size(), 2)
        self.assertEqual(self.store.counts_by_type(), {"country": 1, "league": 0, "team": 1})

    def test_find_is_case_insensitive(self):
        self.store.upsert(make_mapping("Porto", translations={"zh-hk": "波圖"}))
        self.assertEqual(self.store.find("porto", EntityType.TEAM).original, "Porto")
        self.assertEqual(self.store.find(" PORTO ", EntityType.TEAM).original, "Porto")
        self.assertIsNone(self.store.find("porto", EntityType.LEAGUE))
        self.assertIsNone(self.store.find("", EntityType.TEAM))


class TestRecordUse(StoreTestCase):

    def test_unknown_key(self):
        self.assertFalse(self.store.record_use("Porto", EntityType.TEAM))
        self.assertEqual(self.store.size(), 0)

    def test_bumps_usage_only(self):
        self.store.upsert(make_mapping("Porto", translations={"zh-hk": "波圖"}))
        self.clock.advance(hours=2)
        self.assertTrue(self.store.record_use("Porto", EntityType.TEAM))
        m = self.store.get("Porto", EntityType.TEAM)
        self.assertEqual(m.frequency, 2)
        self.assertEqual(m.last_used, self.clock.now())
        self.assertEqual(m.translations, {"zh-hk": "波圖"})


    def test_last_used_comes_from_store_clock(self):
        self.clock.advance(days=3)
        self.store.upsert(TranslationMapping("Porto", EntityType.TEAM, {"zh-hk": "波圖"}))
        self.assertEqual(self.store.get("Porto", EntityType.TEAM).last_used, self.clock.now())
        self.assertIsNone(TranslationMapping("Braga", EntityType.TEAM).last_used)


class TestCorrectAndRemove(StoreTestCase):

    def test_correct_replaces_real_value(self):
        self.store.upsert(make_mapping("FC Foo", translations={"zh": "Foo", "zh-hk": "富", "de": "FC Foo"}))
        self.clock.advance(hours=1)
        corrected = self.store.correct("fc foo", EntityType.TEAM, {"zh": "富足球会", "DE": "FC Foo Berlin"})
        self.assertEqual(corrected.translations, {"zh": "富足球会", "zh-hk": "富", "de": "FC Foo Berlin"})
        self.assertEqual(corrected.confidence, 1.0)
        self.assertEqual(corrected.last_used, self.clock.now())
        self.assertEqual(self.store.get("FC Foo", EntityType.TEAM).translations["zh"], "富足球会")
        self.assertEqual(self.store.stats()["corrected"], 1)
        self.assertEqual(self.adapter.save_count, 2)

    def test_correct_inserts_missing_mapping(self):
        corrected = self.store.correct("Porto", EntityType.TEAM, {"zh-hk": "波圖"})
        self.assertEqual(corrected.frequency, 1)
        self.assertEqual(self.store.size(), 1)

    def test_correct_to_echo_only_removes(self):
        self.store.upsert(make_mapping("FC Foo", translations={"zh": "Foo"}))
        self.assertIsNone(self.store.correct("FC Foo", EntityType.TEAM, {"zh": "FC Foo"}))
        self.assertEqual(self.store.size(), 0)

    def test_correct_rejects_unusable_input(self):
        for translations in ({}, {"zh": "undefined"}, {"zh": 3}):
            with self.assertRaises(ValueError, msg=repr(translations)):
                self.store.correct("Porto", EntityType.TEAM, translations)
        with self.assertRaises(ValueError):
            self.store.correct("Porto", EntityType.TEAM, {"zh": "Porto"})
        self.assertEqual(self.store.size(), 0)

    def test_remove(self):
        self.store.upsert(make_mapping("Porto", translations={"zh-hk": "波圖"}))
        self.store.upsert(make_mapping("Braga"))
        removed = self.store.remove("PORTO", EntityType.TEAM)
        self.assertEqual(removed.original, "Porto")
        self.assertIsNone(self.store.find("porto", EntityType.TEAM))
        self.assertIsNone(self.backend.get("sportsnames:m:team:Porto"))
        self.assertIsNotNone(self.backend.get("sportsnames:m:team:Braga"))
        self.assertIsNone(self.store.remove("Porto", EntityType.TEAM))
        self.assertEqual(self.store.stats()["removed"], 1)


class TestEviction(StoreTestCase):

    def test_size_stays_bounded(self):
        evicted = []
        self.events.on_evicted(lambda **kw: evicted.append(kw))
        for i in range(11):
            self.store.upsert(make_mapping(f"T{i}", frequency=i + 1))
            self.assertLessEqual(self.store.size(), 10)

        self.assertEqual(self.store.size(), 5)
        kept = sorted(m.original for m in self.store)
        self.assertEqual(kept, ["T10", "T6", "T7", "T8", "T9"])
        self.assertEqual(len(evicted), 1)
        self.assertEqual(evicted[0]["count"], 6)
        self.assertEqual(evicted[0]["remaining"], 5)
        self.assertIn(("T0", EntityType.TEAM), evicted[0]["evicted"])
        stats = self.store.stats()
        self.assertEqual(stats["evicted"], 6)
        self.assertEqual(stats["eviction_passes"], 1)

    def test_recency_boost(self):
        stale = make_mapping("Stale", frequency=3, last_used=START)
        fresh = make_mapping("Fresh", frequency=2, last_used=START)
        self.clock.advance(days=45)
        fresh.last_used = self.clock.now()
        self.assertEqual(self.store.score(stale), 3)
        self.assertEqual(self.store.score(fresh), 4)

    def test_recent_entries_survive(self):
        for i in range(5):
            self.store.upsert(make_mapping(f"Old{i}", frequency=3))
        self.clock.advance(days=60)
        for i in range(6):
            self.store.upsert(make_mapping(f"New{i}", frequency=2, last_used=self.clock.now()))
        kept = {m.original for m in self.store}
        self.assertEqual(len(kept), 5)
        self.assertTrue(all(name.startswith("New") for name in kept))


class TestPersistenceHooks(StoreTestCase):

    def test_each_insert_saves(self):
        self.store.upsert(make_mapping("A"))
        self.store.upsert(make_mapping("B"))
        self.assertEqual(self.adapter.save_count, 2)
        self.assertEqual(len(self.backend.keys("sportsnames:m:")), 2)

    def test_deferred_save_coalesces(self):
        with self.store.deferred_save():
            for name in ("A", "B", "C"):
                self.store.upsert(make_mapping(name))
            self.assertEqual(self.adapter.save_count, 0)
        self.assertEqual(self.adapter.save_count, 1)
        self.assertEqual(len(self.backend.keys("sportsnames:m:")), 3)

    def test_usage_bumps_wait_for_flush(self):
        self.store.upsert(make_mapping("A"))
        self.store.record_use("A", EntityType.TEAM)
        self.assertEqual(self.adapter.save_count, 1)
        self.assertTrue(self.store.flush())
        self.assertEqual(self.adapter.save_count, 2)
        self.assertFalse(self.store.flush())

    def test_load_replaces_state(self):
        self.store.upsert(make_mapping("A", translations={"zh": "甲"}))
        other = LearnedMappingStore(make_config(), clock=self.clock, adapter=self.adapter)
        self.assertEqual(other.load(), 1)
        self.assertEqual(other.get("A", EntityType.TEAM).translations, {"zh": "甲"})

    def test_load_skips_placeholder_only_entries(self):
        self.adapter.save([make_mapping("A"), make_mapping("Echo", translations={"zh": "Echo"})])
        other = LearnedMappingStore(make_config(), clock=self.clock, adapter=self.adapter)
        self.assertEqual(other.load(), 1)

    def test_load_over_threshold_evicts_and_saves(self):
        self.adapter.save([make_mapping(f"T{i}", frequency=i + 1) for i in range(12)])
        other = LearnedMappingStore(make_config(), clock=self.clock, adapter=self.adapter)
        self.assertEqual(other.load(), 5)
        self.assertEqual(len(self.backend.keys("sportsnames:m:")), 5)

    def test_without_adapter(self):
        store = LearnedMappingStore(make_config(), clock=self.clock)
        self.assertEqual(store.upsert(make_mapping("A")), UpsertOutcome.INSERTED)
        self.assertEqual(store.load(), 0)
        self.assertFalse(store.flush())

    def test_clear(self):
        self.store.upsert(make_mapping("A"))
        self.store.upsert(make_mapping("B"))
        self.assertEqual(self.store.clear(), 2)
        self.assertEqual(self.store.size(), 0)
        self.assertEqual(self.backend.keys("sportsnames:"), [])


if __name__ == "__main__":
    unittest.main()
