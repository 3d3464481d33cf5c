"""Custom exceptions for API."""


class MiningInProgressError(Exception):
    """Raised when a pattern mining run is requested while one is already running."""

    pass
