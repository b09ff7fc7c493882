from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from .schemas import ReindexResponse, SearchResponseOut
from ..index.models import QueryRequest, build_query_request
from ..services import search_service
from ..services.ingestion_service import reindex
from ..settings import settings

router = APIRouter()


def query_request(
    q: Optional[str] = Query(default=None),
    min_amount: Optional[str] = Query(default=None, alias="minAmount"),
    max_amount: Optional[str] = Query(default=None, alias="maxAmount"),
    from_date: Optional[str] = Query(default=None, alias="fromDate", description="YYYY-MM-DD"),
    include_credits: Optional[str] = Query(default=None, alias="includeCredits"),
    include_debits: Optional[str] = Query(default=None, alias="includeDebits"),
    limit: Optional[str] = Query(default=None),
) -> QueryRequest:
    return build_query_request(
        text=q or None,
        min_amount=min_amount or None,
        max_amount=max_amount or None,
        from_date=from_date or None,
        include_credits=include_credits if include_credits not in (None, "") else True,
        include_debits=include_debits if include_debits not in (None, "") else True,
        limit=limit if limit not in (None, "") else settings.default_limit,
    )


@router.get("/healthz")
async def healthz():
    stats = search_service.index_stats()
    if stats is None:
        return JSONResponse({"status": "empty", "documents": 0}, status_code=503)
    return {"status": "ok", "documents": stats["documents"]}


@router.get("/bookings/search", response_model=SearchResponseOut)
def search(request: QueryRequest = Depends(query_request)):
    return SearchResponseOut.from_response(search_service.search(request))


@router.get("/bookings/searchFuzzy", response_model=SearchResponseOut)
def search_fuzzy(request: QueryRequest = Depends(query_request)):
    return SearchResponseOut.from_response(search_service.search_fuzzy(request))


@router.get("/bookings/searchWildcard", response_model=SearchResponseOut)
def search_wildcard(request: QueryRequest = Depends(query_request)):
    return SearchResponseOut.from_response(search_service.search_wildcard(request))


@router.post("/bookings/reindex", response_model=ReindexResponse)
def reindex_bookings():
    return reindex()
