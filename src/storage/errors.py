class StoreError(Exception):
    """Base exception for state store reads and writes."""


class StoreWriteError(StoreError):
    """Raised when a write could not be committed; prior values stay in effect."""


class StoreDecodeError(StoreError):
    """Raised when a persisted value cannot be decoded into its record type."""
