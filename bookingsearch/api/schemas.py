from __future__ import annotations

from datetime import date
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from ..index.models import SearchResponse, SearchResult


class BookingHit(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    transaction_date: date = Field(alias="transactionDate")
    amount: float
    money_account_id: str = Field(alias="moneyAccountId")
    booking_text: str = Field(alias="bookingText")
    score: float

    @classmethod
    def from_result(cls, r: SearchResult) -> "BookingHit":
        return cls(
            id=r.id,
            transaction_date=r.transaction_date,
            amount=float(r.amount),
            money_account_id=r.money_account_id,
            booking_text=r.booking_text,
            score=r.score,
        )


class SearchResponseOut(BaseModel):
    total: int
    limit: int
    results: List[BookingHit]

    @classmethod
    def from_response(cls, resp: SearchResponse) -> "SearchResponseOut":
        return cls(total=resp.total, limit=resp.limit, results=[BookingHit.from_result(r) for r in resp.results])


class RejectedBooking(BaseModel):
    id: Optional[int] = None
    position: Optional[int] = None
    missing: List[str] = Field(default_factory=list)


class ReindexResponse(BaseModel):
    indexed: int
    rejected: List[RejectedBooking] = Field(default_factory=list)
