"""Exception hierarchy for simplecal recurrence handling.

Callers can catch ``SimpleCalError`` for everything raised by the package, or
one of the narrower types to tell a malformed rule apart from a missing record
or a duplicate exception.
"""

from __future__ import annotations

from datetime import date
from typing import Optional


class SimpleCalError(Exception):
    """Base exception for all simplecal errors."""


class RuleParseError(SimpleCalError, ValueError):
    """Raised when recurrence rule text is structurally invalid."""

    def __init__(self, message: str, rule_text: Optional[str] = None):
        super().__init__(message)
        self.rule_text = rule_text


class ExpansionError(SimpleCalError):
    """Raised when a series cannot be expanded into instances."""


class NotFoundError(SimpleCalError, LookupError):
    """Raised when a series or exception id does not exist."""


class SeriesNotFoundError(NotFoundError):
    """Raised when a series id does not exist in the store."""

    def __init__(self, series_id: str):
        super().__init__(f"Series not found: {series_id}")
        self.series_id = series_id


class ExceptionNotFoundError(NotFoundError):
    """Raised when an exception id does not exist in the store."""

    def __init__(self, exception_id: str):
        super().__init__(f"Exception not found: {exception_id}")
        self.exception_id = exception_id


class ExceptionConflictError(SimpleCalError):
    """Raised when an exception already exists for a (series, date) pair."""

    def __init__(self, series_id: str, original_date: date):
        super().__init__(
            f"Exception already exists for series {series_id} on {original_date.isoformat()}"
        )
        self.series_id = series_id
        self.original_date = original_date


class UnsupportedScopeError(SimpleCalError, ValueError):
    """Raised when an edit/delete scope is not offered for the target instance."""


class OccurrenceNotFoundError(NotFoundError):
    """Raised when a series' rule generates no occurrence on the given day."""

    def __init__(self, series_id: str, occurrence_date: date):
        super().__init__(
            f"Series {series_id} has no occurrence on {occurrence_date.isoformat()}"
        )
        self.series_id = series_id
        self.occurrence_date = occurrence_date


class InvalidEventError(SimpleCalError, ValueError):
    """Raised when applying an update would produce an invalid event record."""

    def __init__(self, message: str, series_id: Optional[str] = None):
        super().__init__(message)
        self.series_id = series_id
