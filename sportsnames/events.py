"""
Structured event emission for the translation cache.

Host applications subscribe to cache activity instead of scraping logs:

- ``learned``: a drain committed a mapping (payload: mapping, outcome)
- ``evicted``: an eviction pass dropped mappings (payload: evicted, remaining)
- ``miss``: the resolver fell through to pass-through (payload: name, lang, type)

Usage:
    events = TranslationEvents()
    events.on_miss(lambda name, lang, type, **_: print("miss", name, lang))
"""

import logging
import threading
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

LEARNED = "learned"
EVICTED = "evicted"
MISS = "miss"

EVENT_NAMES = (LEARNED, EVICTED, MISS)


class TranslationEvents:
    """Thread-safe subscriber registry. Subscriber errors never propagate."""

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {name: [] for name in EVENT_NAMES}
        self._counts: Dict[str, int] = {name: 0 for name in EVENT_NAMES}
        self._lock = threading.Lock()

    def subscribe(self, event: str, callback: Callable) -> Callable:
        """
        Register ``callback`` for ``event``.

        Returns:
            The callback, so it can be used as a decorator.
        """
        if event not in self._subscribers:
            raise ValueError(f"Unknown event '{event}'. Valid: {', '.join(EVENT_NAMES)}")
        with self._lock:
            self._subscribers[event].append(callback)
        return callback

    def unsubscribe(self, event: str, callback: Callable) -> bool:
        with self._lock:
            subs = self._subscribers.get(event, [])
            if callback in subs:
                subs.remove(callback)
                return True
        return False

    def emit(self, event: str, **payload) -> int:
        """Deliver ``payload`` to every subscriber of ``event``. Returns the number delivered."""
        with self._lock:
            subs = list(self._subscribers.get(event, []))
            if event in self._counts:
                self._counts[event] += 1

        delivered = 0
        for callback in subs:
            try:
                callback(**payload)
                delivered += 1
            except Exception as e:
                logger.warning(f"[EVENTS] Subscriber {callback!r} for '{event}' raised: {e}")
        return delivered

    def on_learned(self, callback: Callable) -> Callable:
        return self.subscribe(LEARNED, callback)

    def on_evicted(self, callback: Callable) -> Callable:
        return self.subscribe(EVICTED, callback)

    def on_miss(self, callback: Callable) -> Callable:
        return self.subscribe(MISS, callback)

    def counts(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)
