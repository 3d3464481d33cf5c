"""Custom exceptions for the supplement engine."""


class SupplementEngineError(Exception):
    """Base exception for supplement engine errors."""
    pass


class StoreFetchError(SupplementEngineError):
    """Bulk read of approved supplement history failed."""
    pass


class StoreUpsertError(SupplementEngineError):
    """Writing a single pattern aggregate failed."""
    pass


class PatternLookupError(SupplementEngineError):
    """Reading candidate patterns for an estimate failed."""
    pass


class PatternNotFoundError(SupplementEngineError):
    """Raised when a pattern id does not exist in the store."""
    pass
