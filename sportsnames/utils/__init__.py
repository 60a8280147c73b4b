from sportsnames.utils.date_utils import Clock, FixedClock, SystemClock, parse_timestamp, to_iso

__all__ = ["Clock", "FixedClock", "SystemClock", "parse_timestamp", "to_iso"]
