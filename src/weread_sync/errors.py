"""Exceptions raised by weread-sync."""


class WeReadSyncError(Exception):
    """Base class for weread-sync errors."""


class ConfigurationError(WeReadSyncError):
    """A required setting is missing or invalid."""


class MissingDestinationError(ConfigurationError):
    """No readnote database is configured; the book's sync cannot proceed."""
