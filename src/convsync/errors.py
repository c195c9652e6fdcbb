"""Exception types for convsync.

All three failure kinds are recovered inside the package; they only escape
when a caller uses the storage backends or the HTTP client directly.
"""


class ConvsyncError(Exception):
    """Base class for convsync errors."""


class TransportError(ConvsyncError):
    """The remote service could not be reached, or the call timed out."""


class ServerError(ConvsyncError):
    """The remote service answered with a failure status or a malformed body."""


class PersistenceError(ConvsyncError):
    """The local key-value storage is unavailable, full, or corrupt."""
