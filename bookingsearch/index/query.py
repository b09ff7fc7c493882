from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .analysis import TEXT_FIELDS, analyze, analyze_pattern
from .builder import BookingIndex, FieldIndex, to_epoch_day
from .errors import InvalidQuerySyntax
from .models import QueryRequest

WILDCARD_CHARS = "*?"
FUZZY_MARKER = "~"
MAX_EDITS = 2
DEFAULT_FUZZY_EDITS = 2
MAX_FUZZY_EXPANSIONS = 50
MIN_FUZZY_BOOST = 0.1

# Zero-amount bookings never count as debits
DEBIT_THRESHOLD = Decimal("-0.0000001")


# ---------------------------------------------------------------------------
# Text clauses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MatchAll:
    """Satisfied by every document, all with the same score."""


@dataclass(frozen=True)
class ExactTerm:
    raw: str
    field_terms: Mapping[str, Tuple[str, ...]]
    constant_score = False

    def expand(self, field: FieldIndex) -> List[Tuple[str, float]]:
        return [(t, 1.0) for t in self.field_terms.get(field.name, ()) if t in field.postings]


@dataclass(frozen=True)
class FuzzyTerm:
    raw: str
    stem: str
    max_edits: int
    constant_score = False

    def _expand_token(self, field: FieldIndex, token: str) -> List[Tuple[str, float]]:
        matches: List[Tuple[int, str]] = []
        for term in field.terms:
            if abs(len(term) - len(token)) > self.max_edits:
                continue
            d = bounded_edit_distance(token, term, self.max_edits)
            if d <= self.max_edits:
                matches.append((d, term))
        matches.sort()
        out: List[Tuple[str, float]] = []
        for d, term in matches[:MAX_FUZZY_EXPANSIONS]:
            shortest = min(len(token), len(term))
            boost = 1.0 - d / shortest if shortest else 1.0
            out.append((term, max(MIN_FUZZY_BOOST, boost)))
        return out

    def expand(self, field: FieldIndex) -> List[Tuple[str, float]]:
        # Each sub-token of the stem is matched on its own; a term reached
        # from several sub-tokens keeps its best boost
        best: Dict[str, float] = {}
        for token in dict.fromkeys(analyze(field.name, self.stem)):
            for term, boost in self._expand_token(field, token):
                if boost > best.get(term, 0.0):
                    best[term] = boost
        return list(best.items())


def _pattern_prefix(pattern: str) -> Optional[str]:
    head = pattern[:-1]
    if pattern.endswith("*") and not any(c in head for c in WILDCARD_CHARS):
        return head
    return None


@dataclass(frozen=True)
class WildcardTerm:
    raw: str
    constant_score = True

    @property
    def prefix(self) -> Optional[str]:
        """The literal prefix when the pattern is ``<literal>*``, else None."""
        return _pattern_prefix(self.raw)

    def expand(self, field: FieldIndex) -> List[Tuple[str, float]]:
        terms: Dict[str, float] = {}
        for piece in dict.fromkeys(analyze_pattern(field.name, self.raw)):
            prefix = _pattern_prefix(piece)
            if prefix is not None:
                matched = field.terms_with_prefix(prefix)
            elif not any(c in piece for c in WILDCARD_CHARS):
                matched = [piece] if piece in field.postings else []
            else:
                regex = _wildcard_regex(piece)
                matched = [t for t in field.terms if regex.fullmatch(t)]
            for t in matched:
                terms[t] = 1.0
        return list(terms.items())


TermClause = Union[ExactTerm, FuzzyTerm, WildcardTerm]


@dataclass(frozen=True)
class TextQuery:
    """Disjunction of term clauses: a document matches if any clause matches."""

    clauses: Tuple[TermClause, ...]


TextPredicate = Union[MatchAll, TextQuery]


def _wildcard_regex(pattern: str) -> "re.Pattern[str]":
    parts = []
    for c in pattern:
        if c == "*":
            parts.append(".*")
        elif c == "?":
            parts.append(".")
        else:
            parts.append(re.escape(c))
    return re.compile("".join(parts), re.DOTALL)


def bounded_edit_distance(a: str, b: str, max_dist: int) -> int:
    """Edit distance counting adjacent transpositions as one edit.

    Returns max_dist + 1 as soon as the distance is known to exceed max_dist.
    """
    if a == b:
        return 0
    if abs(len(a) - len(b)) > max_dist:
        return max_dist + 1
    prev2: List[int] = []
    prev = list(range(len(b) + 1))
    prev_min = 0
    for i in range(1, len(a) + 1):
        cur = [i]
        row_min = i
        for j in range(1, len(b) + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            v = min(prev[j] + 1, cur[j - 1] + 1, prev[j - 1] + cost)
            if i > 1 and j > 1 and a[i - 1] == b[j - 2] and a[i - 2] == b[j - 1]:
                v = min(v, prev2[j - 2] + 1)
            cur.append(v)
            row_min = min(row_min, v)
        # Two rows past the limit: no later cell can come back under it
        if row_min > max_dist and prev_min > max_dist:
            return max_dist + 1
        prev2, prev, prev_min = prev, cur, row_min
    return prev[-1] if prev[-1] <= max_dist else max_dist + 1


def _parse_fuzzy(term: str) -> FuzzyTerm:
    stem, _, distance = term.rpartition(FUZZY_MARKER)
    if not stem:
        raise InvalidQuerySyntax(term, "fuzzy marker without a term")
    if FUZZY_MARKER in stem:
        raise InvalidQuerySyntax(term, "more than one fuzzy marker")
    if any(c in stem for c in WILDCARD_CHARS):
        raise InvalidQuerySyntax(term, "fuzzy and wildcard markers cannot be combined")
    if distance == "":
        edits = DEFAULT_FUZZY_EDITS
    elif distance.isdigit():
        edits = int(distance)
    else:
        raise InvalidQuerySyntax(term, f"edit distance must be an integer, got {distance!r}")
    if edits > MAX_EDITS:
        raise InvalidQuerySyntax(term, f"edit distance must be between 0 and {MAX_EDITS}")
    if not any(analyze(name, stem) for name in TEXT_FIELDS):
        raise InvalidQuerySyntax(term, "fuzzy term has no letters or digits")
    return FuzzyTerm(raw=term, stem=stem, max_edits=edits)


def _parse_term(term: str) -> Optional[TermClause]:
    if FUZZY_MARKER in term:
        return _parse_fuzzy(term)
    if any(c in term for c in WILDCARD_CHARS):
        if term[0] in WILDCARD_CHARS:
            raise InvalidQuerySyntax(term, "leading wildcards are not supported")
        if not any(analyze_pattern(name, term) for name in TEXT_FIELDS):
            raise InvalidQuerySyntax(term, "wildcard pattern has no letters or digits")
        return WildcardTerm(raw=term)
    field_terms: Dict[str, Tuple[str, ...]] = {}
    for name in TEXT_FIELDS:
        field_terms[name] = tuple(dict.fromkeys(analyze(name, term)))
    if not any(field_terms.values()):
        # Pure punctuation, nothing to look up
        return None
    return ExactTerm(raw=term, field_terms=field_terms)


def parse_query_text(text: Optional[str]) -> TextPredicate:
    """Turn a free-text query into a text predicate.

    Blank text matches everything. Otherwise the text is split on
    whitespace and each term becomes one clause; clauses are OR-ed.
    """
    if text is None or not text.strip():
        return MatchAll()
    clauses: List[TermClause] = []
    for term in text.split():
        clause = _parse_term(term)
        if clause is not None:
            clauses.append(clause)
    if not clauses:
        raise InvalidQuerySyntax(text, "query contains no searchable terms")
    return TextQuery(clauses=tuple(clauses))


# ---------------------------------------------------------------------------
# Filters (gates, never scored)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AbsAmountRange:
    lower: Decimal
    upper: Optional[Decimal]  # None means unbounded

    def matches(self, index: BookingIndex, ordinal: int) -> bool:
        value = index.abs_amounts[ordinal]
        if value < self.lower:
            return False
        return self.upper is None or value <= self.upper


@dataclass(frozen=True)
class DateFloor:
    epoch_day: int

    def matches(self, index: BookingIndex, ordinal: int) -> bool:
        return index.epoch_days[ordinal] >= self.epoch_day


@dataclass(frozen=True)
class CreditsOnly:
    def matches(self, index: BookingIndex, ordinal: int) -> bool:
        return index.amounts[ordinal] > 0


@dataclass(frozen=True)
class DebitsOnly:
    def matches(self, index: BookingIndex, ordinal: int) -> bool:
        return index.amounts[ordinal] < DEBIT_THRESHOLD


Filter = Union[AbsAmountRange, DateFloor, CreditsOnly, DebitsOnly]


@dataclass(frozen=True)
class QueryPlan:
    text: TextPredicate
    filters: Tuple[Filter, ...] = ()

    def accepts(self, index: BookingIndex, ordinal: int) -> bool:
        return all(f.matches(index, ordinal) for f in self.filters)


def compile_filters(
    min_amount: Optional[Decimal] = None,
    max_amount: Optional[Decimal] = None,
    from_date: Optional[date] = None,
    include_credits: bool = True,
    include_debits: bool = True,
) -> Tuple[Filter, ...]:
    filters: List[Filter] = []
    if min_amount is not None or max_amount is not None:
        filters.append(AbsAmountRange(lower=min_amount if min_amount is not None else Decimal(0), upper=max_amount))
    if from_date is not None:
        filters.append(DateFloor(epoch_day=to_epoch_day(from_date)))
    if include_credits and not include_debits:
        filters.append(CreditsOnly())
    elif include_debits and not include_credits:
        filters.append(DebitsOnly())
    return tuple(filters)


def compile_query(request: QueryRequest) -> Optional[QueryPlan]:
    """Compile a request into a plan; None means nothing can match."""
    if not request.include_credits and not request.include_debits:
        return None
    return QueryPlan(
        text=parse_query_text(request.text),
        filters=compile_filters(
            min_amount=request.min_amount,
            max_amount=request.max_amount,
            from_date=request.from_date,
            include_credits=request.include_credits,
            include_debits=request.include_debits,
        ),
    )
