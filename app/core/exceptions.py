# app/core/exceptions.py


class QuoteServiceError(Exception):
    """Base for every failure that turns a /cotacao request into a 500."""


class NetworkError(QuoteServiceError):
    """Upstream call failed: transport error, timeout, cancellation or bad status."""


class DecodeError(QuoteServiceError):
    """Upstream answered, but not with the expected USDBRL JSON shape."""


class StorageError(QuoteServiceError):
    """Insert into the rates table failed, timed out or was interrupted."""


class StorageInitError(Exception):
    """The SQLite store could not be opened or its schema created. Fatal at startup."""
