from __future__ import annotations


class WillardError(Exception):
    """Base for all errors raised by the persistence core."""


class InvalidArgumentError(WillardError, ValueError):
    """Input rejected before any write; stored state is unchanged."""


class NotFoundError(WillardError, LookupError):
    pass


class StorageError(WillardError):
    pass


class StorageInitError(StorageError):
    """Store could not be opened: unwritable location or incompatible schema."""
