from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, Iterable, List, Optional

from ..index.builder import BookingIndex, build
from ..index.errors import IndexUnavailable, MalformedRecord
from ..index.evaluator import evaluate
from ..index.models import Booking, QueryRequest, SearchResponse
from ..index.query import compile_query
from ..index.transforms import transform_fuzzy, transform_wildcard
from ..settings import settings

logger = logging.getLogger(__name__)


# The active index. Replaced wholesale on rebuild, never mutated in place.
_index: Optional[BookingIndex] = None
_rebuild_lock = threading.Lock()


def current_index() -> BookingIndex:
    index = _index
    if index is None:
        raise IndexUnavailable("No booking index has been built yet")
    return index


def rebuild(snapshot: Iterable[Booking], fail_fast: Optional[bool] = None) -> List[MalformedRecord]:
    """Build a new index from ``snapshot`` and swap it in.

    Returns the records rejected as malformed. In fail-fast mode the first
    malformed record is raised instead and the previous index stays active.
    """
    global _index
    if fail_fast is None:
        fail_fast = settings.rebuild_fail_fast
    with _rebuild_lock:
        result = build(snapshot, fail_fast=fail_fast)
        _index = result.index
    return result.rejected


def search(request: QueryRequest) -> SearchResponse:
    start = time.perf_counter()
    plan = compile_query(request)
    if plan is None:
        logger.info("Search skipped: credits and debits both excluded (q='%s')", request.text or "")
        return SearchResponse.empty(request.limit)

    try:
        # One reference per query: a concurrent rebuild cannot change what we read
        index = current_index()
    except IndexUnavailable:
        logger.info("Search before first rebuild, returning no results (q='%s')", request.text or "")
        return SearchResponse.empty(request.limit)

    total, results = evaluate(index, plan, request.limit)

    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "Booking search took %.1f ms (q='%s', minAmount=%s, maxAmount=%s, fromDate=%s, includeCredits=%s, includeDebits=%s, limit=%d, total=%d, hits=%d)",
        duration_ms,
        request.text or "",
        request.min_amount,
        request.max_amount,
        request.from_date,
        request.include_credits,
        request.include_debits,
        request.limit,
        total,
        len(results),
    )
    return SearchResponse(total=total, limit=request.limit, results=results)


def search_fuzzy(request: QueryRequest, distance: Optional[int] = None) -> SearchResponse:
    if distance is None:
        distance = settings.fuzzy_distance
    text = transform_fuzzy(request.text, distance)
    return search(request.model_copy(update={"text": text}))


def search_wildcard(request: QueryRequest) -> SearchResponse:
    text = transform_wildcard(request.text)
    return search(request.model_copy(update={"text": text}))


def index_stats() -> Optional[Dict[str, Any]]:
    index = _index
    if index is None:
        return None
    return {
        "documents": index.size,
        "built_at": index.built_at,
        "terms": {name: len(f.terms) for name, f in index.fields.items()},
    }
