from __future__ import annotations

import heapq
import math
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from .analysis import TEXT_FIELDS
from .builder import STORED_ACCOUNT, STORED_AMOUNT, STORED_DATE, STORED_ID, STORED_TEXT, BookingIndex, FieldIndex
from .models import SearchResult
from .query import MatchAll, QueryPlan, TextQuery

# BM25 parameters (same defaults as Lucene)
K1 = 1.2
B = 0.75

MATCH_ALL_SCORE = 1.0


def _idf(doc_freq: int, doc_count: int) -> float:
    return math.log(1.0 + (doc_count - doc_freq + 0.5) / (doc_freq + 0.5))


def _bm25(tf: int, doc_len: int, field: FieldIndex, idf: float) -> float:
    avg = field.avg_length or 1.0
    return idf * (tf * (K1 + 1)) / (tf + K1 * (1 - B + B * doc_len / avg))


def score_text(index: BookingIndex, query: TextQuery) -> Dict[int, float]:
    """Score every document matching at least one clause of ``query``."""
    scores: Dict[int, float] = {}
    for clause in query.clauses:
        for name in TEXT_FIELDS:
            field = index.field(name)
            for term, boost in clause.expand(field):
                if clause.constant_score:
                    for ordinal in field.postings.get(term, ()):
                        scores[ordinal] = scores.get(ordinal, 0.0) + boost
                    continue
                idf = _idf(field.doc_freq(term), index.size)
                for ordinal, tf in field.iter_postings(term):
                    gain = boost * _bm25(tf, field.lengths[ordinal], field, idf)
                    scores[ordinal] = scores.get(ordinal, 0.0) + gain
    return scores


def _to_result(index: BookingIndex, ordinal: int, score: float) -> SearchResult:
    return SearchResult(
        id=index.stored(ordinal, STORED_ID),
        transaction_date=date.fromisoformat(index.stored(ordinal, STORED_DATE)),
        amount=index.stored(ordinal, STORED_AMOUNT),
        money_account_id=index.stored(ordinal, STORED_ACCOUNT),
        booking_text=index.stored(ordinal, STORED_TEXT),
        score=score,
    )


def evaluate(index: BookingIndex, plan: QueryPlan, limit: int) -> Tuple[int, List[SearchResult]]:
    """Run ``plan`` against ``index``.

    Returns the number of documents passing every predicate and the top
    ``limit`` of them, by score descending then ordinal ascending.
    """
    scores: Optional[Dict[int, float]]
    candidates: Iterable[int]
    if isinstance(plan.text, MatchAll):
        scores = None
        candidates = range(index.size)
    else:
        scores = score_text(index, plan.text)
        candidates = scores.keys()

    passing = [o for o in candidates if plan.accepts(index, o)]
    total = len(passing)
    if limit <= 0 or not passing:
        return total, []

    if scores is None:
        # Uniform score: ordinal order is already the tie-break order
        return total, [_to_result(index, o, MATCH_ALL_SCORE) for o in passing[:limit]]

    top = heapq.nsmallest(limit, passing, key=lambda o: (-scores[o], o))
    return total, [_to_result(index, o, scores[o]) for o in top]
