"""Tests for the event registry."""

import unittest

from sportsnames.events import EVICTED, LEARNED, MISS, TranslationEvents


class TestEvents(unittest.TestCase):

    def setUp(self):
        self.events = TranslationEvents()

    def test_subscribe_and_emit(self):
        received = []
        self.events.on_miss(lambda **kw: received.append(kw))
        delivered = self.events.emit(MISS, name="Porto", lang="zh")
        self.assertEqual(delivered, 1)
        self.assertEqual(received, [{"name": "Porto", "lang": "zh"}])
        self.assertEqual(self.events.counts(), {LEARNED: 0, EVICTED: 0, MISS: 1})

    def test_decorator_form(self):
        seen = []

        @self.events.on_learned
        def handler(**kw):
            seen.append(kw["mapping"])

        self.events.emit(LEARNED, mapping="m")
        self.assertEqual(seen, ["m"])
        self.assertTrue(callable(handler))

    def test_unknown_event(self):
        with self.assertRaises(ValueError):
            self.events.subscribe("flushed", lambda **kw: None)

    def test_subscriber_errors_are_contained(self):
        received = []

        def broken(**kw):
            raise RuntimeError("subscriber bug")

        self.events.on_evicted(broken)
        self.events.on_evicted(lambda **kw: received.append(kw["count"]))
        with self.assertLogs("sportsnames.events", level="WARNING"):
            delivered = self.events.emit(EVICTED, count=3)
        self.assertEqual(delivered, 1)
        self.assertEqual(received, [3])

    def test_unsubscribe(self):
        def callback(**kw):
            pass

        self.events.on_miss(callback)
        self.assertTrue(self.events.unsubscribe(MISS, callback))
        self.assertFalse(self.events.unsubscribe(MISS, callback))
        self.assertEqual(self.events.emit(MISS, name="x"), 0)


if __name__ == "__main__":
    unittest.main()
