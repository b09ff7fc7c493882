from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from .errors import QueryValidationError


@dataclass(frozen=True)
class Booking:
    """A single transaction record as delivered by the snapshot source.

    ``id``, ``transaction_date`` and ``amount`` are optional here because
    upstream sources can deliver incomplete rows; the index builder rejects them.
    """

    id: Optional[int]
    transaction_date: Optional[date]
    amount: Optional[Decimal]
    money_account_id: str = ""
    booking_text: str = ""


@dataclass(frozen=True)
class SearchResult:
    id: int
    transaction_date: date
    amount: Decimal
    money_account_id: str
    booking_text: str
    score: float


@dataclass(frozen=True)
class SearchResponse:
    total: int
    limit: int
    results: List[SearchResult] = field(default_factory=list)

    @classmethod
    def empty(cls, limit: int) -> "SearchResponse":
        return cls(total=0, limit=limit, results=[])


class QueryRequest(BaseModel):
    text: Optional[str] = Field(default=None, description="Free text query")
    min_amount: Optional[Decimal] = Field(default=None, ge=0, description="Lower bound on |amount|")
    max_amount: Optional[Decimal] = Field(default=None, ge=0, description="Upper bound on |amount|")
    from_date: Optional[date] = Field(default=None, description="YYYY-MM-DD, inclusive")
    include_credits: bool = True
    include_debits: bool = True
    limit: int = 20

    @model_validator(mode="after")
    def _check_amount_bounds(self) -> "QueryRequest":
        if self.min_amount is not None and self.max_amount is not None and self.min_amount > self.max_amount:
            raise ValueError("min_amount must not exceed max_amount")
        return self


def build_query_request(**raw: Any) -> QueryRequest:
    """Validate raw request fields, surfacing failures as QueryValidationError."""
    try:
        return QueryRequest(**raw)
    except ValidationError as e:
        raise QueryValidationError(e.errors(include_url=False, include_context=False, include_input=False)) from e
