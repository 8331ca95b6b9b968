"""Error kinds raised across the retrieval pipeline."""


class CwTailError(Exception):
    """Base class for all cwtail errors."""


class BackendError(CwTailError):
    """The monitoring service rejected or failed to service a query.

    Recovered by the fetcher through request splitting.
    """

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


class TransportError(CwTailError):
    """Local or network failure not attributable to the service itself."""


class RenderError(CwTailError):
    """The terminal chart could not be drawn."""


class ConfigurationError(CwTailError):
    """Invalid process configuration (e.g. a malformed lookback)."""


__all__ = [
    "CwTailError",
    "BackendError",
    "TransportError",
    "RenderError",
    "ConfigurationError",
]
