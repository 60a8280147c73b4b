"""
Error taxonomy for the translation cache.

Only ``CacheConfigError`` ever reaches callers (at startup). Everything
else is raised and caught inside the subsystem: ``translate`` has a
total, exception-free contract.
"""


class TranslationCacheError(Exception):
    """Base class for translation cache errors."""


class CacheConfigError(ValueError):
    pass


class CorruptPersistedEntry(TranslationCacheError):
    """A persisted entry failed to parse or validate."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Corrupt persisted entry '{key}': {reason}")
        self.key = key
        self.reason = reason


class PersistenceWriteFailure(TranslationCacheError):
    """Writing a snapshot to the backend failed."""


class MalformedSourceRecord(TranslationCacheError):
    """A fixture record is unusable for learning."""


class BackendUnavailable(TranslationCacheError):
    """The durable key-value backend cannot be reached or opened at all."""
