"""
Service-level exceptions.

Missing data is never an exception here: records, settings and predictions
that do not exist yet are returned as None.
"""

class PeriodTrackerError(Exception):
    """Base exception for period tracker errors."""
    pass

class StorageError(PeriodTrackerError):
    """Raised when the underlying record or settings store fails."""
    pass

class ValidationError(PeriodTrackerError):
    """Raised when dates or settings passed to the engine are invalid."""
    pass
