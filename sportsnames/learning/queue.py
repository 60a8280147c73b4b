"""
Learning queue: intake buffer for observed names.

Fixtures, standings tables and resolver misses append ``EncounterRecord`` items; the batch
learner takes them from the head. A record whose natural key is already
pending is dropped, so a burst of fixtures for the same league queues one
item, not hundreds.
"""

import logging
import threading
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Set

from sportsnames.models import EncounterRecord, FixtureRecord, StandingsRecord

logger = logging.getLogger(__name__)


class LearningQueue:
    """
    Thread-safe FIFO with pending-key dedupe.

    Usage:
        queue = LearningQueue(high_water_mark=50, on_high_water=learner.request_drain)
        queue.enqueue_fixture({"league": {"name": "Serie A", "country": "Brazil", "id": 71}})
        batch = queue.take(100)
    """

    def __init__(self, high_water_mark: int = 50, on_high_water: Optional[Callable[[], object]] = None):
        self.high_water_mark = high_water_mark
        self.on_high_water = on_high_water
        self._items: Deque[EncounterRecord] = deque()
        self._pending: Set[tuple] = set()
        self._lock = threading.Lock()
        self._counters = {"enqueued": 0, "duplicates": 0, "taken": 0, "high_water_triggers": 0}

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def enqueue(self, record: EncounterRecord, notify: bool = True) -> bool:
        """
        Append ``record`` unless an equal record is already pending.

        Args:
            record: Observed name
            notify: Fire the high-water callback when the mark is reached.
                The resolver passes False so ``translate`` never drains inline.

        Returns:
            True if the record was queued.
        """
        with self._lock:
            key = record.natural_key
            if key in self._pending:
                self._counters["duplicates"] += 1
                return False
            self._items.append(record)
            self._pending.add(key)
            self._counters["enqueued"] += 1
        if notify:
            self._check_high_water()
        return True

    def enqueue_fixture(self, raw) -> int:
        """
        Queue every name a raw fixture carries.

        Raises:
            MalformedSourceRecord: if the fixture is unusable
        Returns:
            Number of newly queued records.
        """
        return self._enqueue_all(FixtureRecord.from_raw(raw).encounters())

    def enqueue_standings(self, raw) -> int:
        """
        Queue the country, league and every team of a raw standings table.

        Raises:
            MalformedSourceRecord: if the payload has no league section
        Returns:
            Number of newly queued records.
        """
        return self._enqueue_all(StandingsRecord.from_raw(raw).encounters())

    def _enqueue_all(self, records) -> int:
        added = sum(1 for record in records if self.enqueue(record, notify=False))
        if added:
            self._check_high_water()
        return added

    def _check_high_water(self):
        if self.on_high_water is None:
            return
        with self._lock:
            over = len(self._items) >= self.high_water_mark
            if over:
                self._counters["high_water_triggers"] += 1
        if over:
            logger.debug(f"[QUEUE] High-water mark {self.high_water_mark} reached")
            self.on_high_water()

    def take(self, n: int) -> List[EncounterRecord]:
        """Atomically remove and return up to ``n`` records from the head."""
        with self._lock:
            batch = []
            while self._items and len(batch) < n:
                record = self._items.popleft()
                self._pending.discard(record.natural_key)
                batch.append(record)
            self._counters["taken"] += len(batch)
            return batch

    def clear(self) -> int:
        with self._lock:
            dropped = len(self._items)
            self._items.clear()
            self._pending.clear()
            return dropped

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"length": len(self._items), "high_water_mark": self.high_water_mark, **self._counters}
