from __future__ import annotations

import bisect
import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .analysis import FIELD_ACCOUNT, FIELD_TEXT, FIELD_TEXT_NORM, TEXT_FIELDS, analyze_account_id, analyze_booking_text
from .errors import IndexInvariantError, MalformedRecord
from .models import Booking

logger = logging.getLogger(__name__)

_EPOCH = date(1970, 1, 1).toordinal()

# Stored field names
STORED_ID = "id"
STORED_DATE = "transactionDate"
STORED_AMOUNT = "amount"
STORED_ACCOUNT = "moneyAccountId"
STORED_TEXT = "bookingText"


def to_epoch_day(d: date) -> int:
    return d.toordinal() - _EPOCH


@dataclass(frozen=True)
class FieldIndex:
    """Inverted postings for one text field.

    ``postings[term]`` holds the ascending ordinals of the documents that
    contain ``term``; ``frequencies[term]`` holds the matching term counts.
    """

    name: str
    postings: Mapping[str, Tuple[int, ...]]
    frequencies: Mapping[str, Tuple[int, ...]]
    lengths: Tuple[int, ...]
    terms: Tuple[str, ...]
    avg_length: float

    def doc_freq(self, term: str) -> int:
        return len(self.postings.get(term, ()))

    def iter_postings(self, term: str) -> Iterator[Tuple[int, int]]:
        """Yield (ordinal, term frequency) pairs for ``term``."""
        return zip(self.postings.get(term, ()), self.frequencies.get(term, ()))

    def terms_with_prefix(self, prefix: str) -> List[str]:
        start = bisect.bisect_left(self.terms, prefix)
        out: List[str] = []
        for term in self.terms[start:]:
            if not term.startswith(prefix):
                break
            out.append(term)
        return out


@dataclass(frozen=True)
class BookingIndex:
    """Immutable index over one snapshot. Documents are addressed by ordinal."""

    documents: Tuple[Mapping[str, Any], ...]
    fields: Mapping[str, FieldIndex]
    amounts: Tuple[Decimal, ...]
    abs_amounts: Tuple[Decimal, ...]
    epoch_days: Tuple[int, ...]
    built_at: float = 0.0

    @property
    def size(self) -> int:
        return len(self.documents)

    def field(self, name: str) -> FieldIndex:
        try:
            return self.fields[name]
        except KeyError:
            raise IndexInvariantError(f"Index has no text field {name!r}") from None

    def stored(self, ordinal: int, name: str) -> Any:
        try:
            doc = self.documents[ordinal]
        except IndexError:
            raise IndexInvariantError(f"No document at ordinal {ordinal}") from None
        if name not in doc:
            raise IndexInvariantError(f"Document {ordinal} is missing stored field {name!r}")
        return doc[name]


@dataclass
class BuildResult:
    index: BookingIndex
    rejected: List[MalformedRecord] = field(default_factory=list)


class _FieldAccumulator:
    def __init__(self, name: str) -> None:
        self.name = name
        self.postings: Dict[str, List[int]] = {}
        self.frequencies: Dict[str, List[int]] = {}
        self.lengths: List[int] = []

    def add(self, ordinal: int, tokens: List[str]) -> None:
        self.lengths.append(len(tokens))
        # Ordinals arrive in ascending order, so every postings list stays sorted
        for term, tf in Counter(tokens).items():
            self.postings.setdefault(term, []).append(ordinal)
            self.frequencies.setdefault(term, []).append(tf)

    def freeze(self) -> FieldIndex:
        total = sum(self.lengths)
        return FieldIndex(
            name=self.name,
            postings=MappingProxyType({t: tuple(p) for t, p in self.postings.items()}),
            frequencies=MappingProxyType({t: tuple(f) for t, f in self.frequencies.items()}),
            lengths=tuple(self.lengths),
            terms=tuple(sorted(self.postings)),
            avg_length=(total / len(self.lengths)) if self.lengths else 0.0,
        )


def _usable_id(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _check_record(record: Booking, position: int) -> int:
    """Return the record's integer id, or raise MalformedRecord."""
    record_id = _usable_id(getattr(record, "id", None))
    missing = [] if record_id is not None else ["id"]
    missing += [name for name in ("transaction_date", "amount") if getattr(record, name, None) is None]
    if missing:
        raise MalformedRecord(record_id, missing, position=position)
    return record_id


def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def build(records: Iterable[Booking], fail_fast: bool = False) -> BuildResult:
    """Build a fresh index from a complete snapshot.

    Records lacking a transaction date or amount are rejected with
    ``MalformedRecord``. With ``fail_fast`` the first rejection is raised;
    otherwise it is collected and the remaining records are indexed.
    """
    start = time.perf_counter()
    accumulators = {name: _FieldAccumulator(name) for name in TEXT_FIELDS}
    documents: List[Mapping[str, Any]] = []
    amounts: List[Decimal] = []
    abs_amounts: List[Decimal] = []
    epoch_days: List[int] = []
    rejected: List[MalformedRecord] = []

    for position, record in enumerate(records):
        try:
            record_id = _check_record(record, position)
        except MalformedRecord as e:
            if fail_fast:
                raise
            logger.warning("Skipping malformed booking: %s", e)
            rejected.append(e)
            continue

        ordinal = len(documents)
        text = record.booking_text or ""
        account = record.money_account_id or ""
        amount = _as_decimal(record.amount)

        documents.append(
            MappingProxyType(
                {
                    STORED_ID: record_id,
                    STORED_DATE: record.transaction_date.isoformat(),
                    STORED_AMOUNT: amount,
                    STORED_ACCOUNT: account,
                    STORED_TEXT: text,
                }
            )
        )

        original_tokens, normalized_tokens = analyze_booking_text(text)
        accumulators[FIELD_TEXT].add(ordinal, original_tokens)
        accumulators[FIELD_TEXT_NORM].add(ordinal, normalized_tokens)
        accumulators[FIELD_ACCOUNT].add(ordinal, analyze_account_id(account))

        amounts.append(amount)
        abs_amounts.append(abs(amount))
        epoch_days.append(to_epoch_day(record.transaction_date))

    index = BookingIndex(
        documents=tuple(documents),
        fields=MappingProxyType({name: acc.freeze() for name, acc in accumulators.items()}),
        amounts=tuple(amounts),
        abs_amounts=tuple(abs_amounts),
        epoch_days=tuple(epoch_days),
        built_at=time.time(),
    )

    duration_ms = (time.perf_counter() - start) * 1000
    logger.info("Booking index built in %.1f ms (%d bookings, %d rejected)", duration_ms, index.size, len(rejected))
    return BuildResult(index=index, rejected=rejected)
