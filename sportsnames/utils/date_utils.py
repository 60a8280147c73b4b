"""
Clock abstraction and timestamp parsing.

Every component that needs "now" takes a ``Clock`` so tests and tooling can
pin time. Timestamps are always timezone-aware UTC datetimes.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from pytz import utc

logger = logging.getLogger(__name__)


class Clock:
    """Source of the current UTC time."""

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(utc)


class FixedClock(Clock):
    """
    Manually driven clock.

    Usage:
        clock = FixedClock(datetime(2025, 8, 1, tzinfo=utc))
        clock.advance(days=31)
    """

    def __init__(self, start: Optional[datetime] = None):
        self._now = _as_utc(start) if start is not None else datetime(2025, 1, 1, tzinfo=utc)

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime):
        self._now = _as_utc(value)

    def advance(self, **kwargs) -> datetime:
        """Move the clock forward by ``timedelta(**kwargs)`` and return the new time."""
        self._now = self._now + timedelta(**kwargs)
        return self._now


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return utc.localize(dt)
    if dt.tzinfo != utc:
        return dt.astimezone(utc)
    return dt


def to_iso(dt: datetime) -> str:
    return _as_utc(dt).isoformat()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a persisted timestamp and return it as a UTC datetime.

    Accepts datetimes, ISO-8601 strings (with or without offset / 'Z'),
    plain dates, and epoch numbers. Numbers above 1e11 are treated as
    epoch milliseconds, which is how browser-side exports store them.
    Returns None when the value cannot be parsed.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return _as_utc(value)

    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        seconds = value / 1000.0 if value > 1e11 else float(value)
        try:
            return datetime.fromtimestamp(seconds, utc)
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(value, str):
        return None

    try:
        try:
            iso_str = value.strip().replace('Z', '+00:00')
            return _as_utc(datetime.fromisoformat(iso_str))
        except (ValueError, AttributeError):
            pass

        if 'T' in value:
            date_part, time_part = value.split('T', 1)
            if time_part.endswith('Z'):
                time_part = time_part[:-1]
            elif '+' in time_part:
                time_part = time_part.split('+')[0]

            dt_str = f"{date_part}T{time_part}"
            for fmt in ('%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M:%S.%f', '%Y-%m-%dT%H:%M'):
                try:
                    return utc.localize(datetime.strptime(dt_str, fmt))
                except ValueError:
                    continue
            return None

        return utc.localize(datetime.strptime(value.strip(), '%Y-%m-%d'))

    except Exception as e:
        logger.debug(f"Could not parse timestamp '{value}': {e}")
        return None
