from __future__ import annotations

from typing import Any, List, Optional


class BookingSearchError(Exception):
    """Base class for all errors raised by the booking search core."""


class MalformedRecord(BookingSearchError):
    """A snapshot record lacks a field the index needs (usable id, transaction date or amount)."""

    def __init__(self, record_id: Optional[int], missing: List[str], position: Optional[int] = None) -> None:
        self.record_id = record_id
        self.missing = list(missing)
        self.position = position
        where = f" at snapshot position {position}" if position is not None else ""
        super().__init__(f"Booking id={record_id}{where} is missing required fields: {self.missing}")


class InvalidQuerySyntax(BookingSearchError):
    def __init__(self, term: str, reason: str) -> None:
        self.term = term
        self.reason = reason
        super().__init__(f"Cannot parse query term {term!r}: {reason}")


class IndexUnavailable(BookingSearchError):
    """No index has been built yet."""


class QueryValidationError(BookingSearchError):
    def __init__(self, errors: List[dict[str, Any]]) -> None:
        self.errors = errors
        fields = ", ".join(".".join(str(p) for p in e.get("loc", ())) or "request" for e in errors)
        super().__init__(f"Invalid search request: {fields}")


class IndexInvariantError(BookingSearchError):
    """The index is internally inconsistent. Always a builder bug, never handled."""
