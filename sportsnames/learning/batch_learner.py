"""
Batch learner: drains the learning queue into the learned store.

State machine is ``IDLE -> DRAINING -> IDLE``. There is no error state:
a record that fails is logged and counted, and the batch moves on. Only one
drain runs at a time; a trigger that arrives mid-drain is ignored because
the next drain picks up whatever is left.

Triggers:
- periodic timer (``drain_interval_seconds``) on a daemon thread, see ``start``
- the queue's high-water mark, via ``request_drain``
"""

import logging
import threading
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional

from sportsnames import heuristics
from sportsnames.events import LEARNED, TranslationEvents
from sportsnames.learning.queue import LearningQueue
from sportsnames.models import EncounterRecord, EntityType, TranslationMapping
from sportsnames.store import LearnedMappingStore, UpsertOutcome

logger = logging.getLogger(__name__)


class LearnerState(str, Enum):
    IDLE = "idle"
    DRAINING = "draining"


@dataclass
class DrainResult:
    """Outcome of one drain (or several, when combined)."""
    taken: int = 0
    inserted: int = 0
    merged: int = 0
    skipped_static: int = 0
    skipped_known: int = 0
    skipped_contextual: int = 0
    rejected: int = 0
    failed: int = 0
    ignored: bool = False
    duration_seconds: float = 0.0

    @property
    def committed(self) -> int:
        return self.inserted + self.merged

    def combine(self, other: "DrainResult") -> "DrainResult":
        return DrainResult(
            taken=self.taken + other.taken,
            inserted=self.inserted + other.inserted,
            merged=self.merged + other.merged,
            skipped_static=self.skipped_static + other.skipped_static,
            skipped_known=self.skipped_known + other.skipped_known,
            skipped_contextual=self.skipped_contextual + other.skipped_contextual,
            rejected=self.rejected + other.rejected,
            failed=self.failed + other.failed,
            ignored=self.ignored and other.ignored,
            duration_seconds=self.duration_seconds + other.duration_seconds,
        )

    def to_dict(self) -> dict:
        d = asdict(self)
        d["committed"] = self.committed
        return d


class BatchLearner:
    """
    Usage:
        learner = BatchLearner(queue, store, dictionary, cache_config)
        learner.drain()            # one bounded batch
        learner.start()            # periodic drains on a daemon thread
        learner.stop()
    """

    def __init__(self, queue: LearningQueue, store: LearnedMappingStore, dictionary, cache_config,
                 events: Optional[TranslationEvents] = None, countries=None):
        self.queue = queue
        self.store = store
        self.dictionary = dictionary
        # country lookups for league synthesis; defaults to the static table
        self.countries = countries or dictionary
        self.cache_config = cache_config
        self.languages = list(cache_config.languages)
        self.batch_size = cache_config.batch_size
        self.interval = cache_config.drain_interval_seconds
        self.events = events

        self._state = LearnerState.IDLE
        self._drain_lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._wake_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.drains = 0
        self.ignored_triggers = 0
        self.last_result: Optional[DrainResult] = None

    @property
    def state(self) -> LearnerState:
        return self._state

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # --- Draining ---

    def drain(self) -> DrainResult:
        """Process up to ``batch_size`` records taken from the queue head."""
        if not self._drain_lock.acquire(blocking=False):
            self.ignored_triggers += 1
            logger.debug("[LEARNER] Drain already in progress, trigger ignored")
            return DrainResult(ignored=True)

        started = time.time()
        result = DrainResult()
        try:
            self._state = LearnerState.DRAINING
            batch = self.queue.take(self.batch_size)
            result.taken = len(batch)
            with self.store.deferred_save():
                for record in batch:
                    try:
                        self._process(record, result)
                    except Exception as e:
                        result.failed += 1
                        logger.warning(f"[LEARNER] Failed to learn {record.type.value} '{record.name}': {e}")
        finally:
            self._state = LearnerState.IDLE
            self._drain_lock.release()

        result.duration_seconds = time.time() - started
        self.drains += 1
        self.last_result = result
        if result.taken:
            skipped = result.skipped_static + result.skipped_known + result.skipped_contextual
            logger.info(f"[LEARNER] Drained {result.taken}: {result.inserted} new, {result.merged} merged, "
                        f"{skipped} skipped, {result.failed} failed, "
                        f"{len(self.queue)} left")
        return result

    def drain_all(self, max_rounds: Optional[int] = None) -> DrainResult:
        """Drain repeatedly until the queue is empty (or ``max_rounds`` drains ran)."""
        total = DrainResult()
        rounds = 0
        while len(self.queue) and (max_rounds is None or rounds < max_rounds):
            result = self.drain()
            rounds += 1
            total = total.combine(result)
            if result.ignored or not result.taken:
                break
        return total

    def _process(self, record: EncounterRecord, result: DrainResult):
        if self.dictionary.has_entry(record.name, record.type, record.context_country):
            result.skipped_static += 1
            return

        existing = self.store.get(record.name, record.type)
        if existing is not None and all(not existing.is_placeholder(lang) for lang in self.languages):
            self.store.record_use(record.name, record.type)
            result.skipped_known += 1
            return

        candidate = heuristics.generate_candidate(record, self.languages, self.countries)
        if self._country_synthesised(record, candidate):
            if existing is not None:
                self.store.record_use(record.name, record.type)
            result.skipped_contextual += 1
            return

        mapping = TranslationMapping(
            original=record.name,
            type=record.type,
            translations=candidate,
            frequency=1,
            last_used=self.store.clock.now(),
            confidence=self.cache_config.confidence_for(record.type),
        )
        if existing is None and not mapping.has_useful_translation():
            result.rejected += 1
            return

        outcome = self.store.upsert(mapping)
        if outcome == UpsertOutcome.INSERTED:
            result.inserted += 1
        elif outcome == UpsertOutcome.MERGED:
            result.merged += 1
        else:
            result.rejected += 1
            return

        if self.events is not None:
            self.events.emit(LEARNED, mapping=self.store.get(record.name, record.type) or mapping,
                             outcome=outcome, record=record)

    @staticmethod
    def _country_synthesised(record: EncounterRecord, candidate) -> bool:
        """
        League values built from the fixture country are only valid for that
        country, but the store is keyed by name alone. The resolver rebuilds
        them per lookup, so they are never stored.
        """
        if record.type != EntityType.LEAGUE or not record.context_country:
            return False
        return any(value != record.name for value in candidate.values())

    # --- Triggers ---

    def request_drain(self) -> Optional[DrainResult]:
        """
        High-water trigger: wake the timer thread, or drain inline when no
        thread is running.
        """
        if self.running:
            self._wake_event.set()
            return None
        return self.drain()

    def start(self):
        """Start periodic drains on a daemon thread. No-op when already running."""
        if self.running:
            return
        self._stop_event = threading.Event()
        self._wake_event.clear()
        stop_event = self._stop_event

        def _loop():
            while not stop_event.is_set():
                self._wake_event.wait(self.interval)
                self._wake_event.clear()
                if stop_event.is_set():
                    break
                try:
                    self.drain()
                except Exception as e:
                    logger.error(f"[LEARNER] Drain loop error: {e}")

        self._thread = threading.Thread(target=_loop, name="sportsnames-learner", daemon=True)
        self._thread.start()
        logger.info(f"[LEARNER] Started (interval={self.interval}s, batch_size={self.batch_size})")

    def stop(self, timeout: float = 5.0):
        if self._stop_event is not None:
            self._stop_event.set()
        self._wake_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.info("[LEARNER] Stopped")

    def stats(self) -> dict:
        return {
            "state": self._state.value,
            "running": self.running,
            "drains": self.drains,
            "ignored_triggers": self.ignored_triggers,
            "batch_size": self.batch_size,
            "interval_seconds": self.interval,
            "last_result": self.last_result.to_dict() if self.last_result else None,
        }
