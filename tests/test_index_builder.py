from __future__ import annotations

from datetime import date
from decimal import Decimal
from types import MappingProxyType

import pytest

from bookingsearch.index.analysis import FIELD_ACCOUNT, FIELD_TEXT, FIELD_TEXT_NORM
from bookingsearch.index.builder import BookingIndex, build, to_epoch_day
from bookingsearch.index.errors import IndexInvariantError, MalformedRecord
from bookingsearch.index.evaluator import evaluate
from bookingsearch.index.models import Booking
from bookingsearch.index.query import MatchAll, QueryPlan


def test_epoch_day():
    assert to_epoch_day(date(1970, 1, 1)) == 0
    assert to_epoch_day(date(1970, 1, 2)) == 1
    assert to_epoch_day(date(1969, 12, 31)) == -1


def test_postings_hold_ordinals(swiss_bookings):
    index = build(swiss_bookings).index
    assert index.size == len(swiss_bookings)

    norm = index.field(FIELD_TEXT_NORM)
    assert norm.postings["migros"] == (0, 1)
    assert norm.postings["netflix"] == (4, 5)

    original = index.field(FIELD_TEXT)
    assert original.postings["Migros"] == (0,)
    assert original.postings["MIGROS"] == (1,)
    assert "migros" not in original.postings

    account = index.field(FIELD_ACCOUNT)
    assert account.postings["acc"] == tuple(range(len(swiss_bookings)))


def test_term_frequencies_and_lengths(day):
    index = build([Booking(id=1, transaction_date=day, amount=Decimal("1"), booking_text="Coop coop COOP")]).index
    norm = index.field(FIELD_TEXT_NORM)
    assert list(norm.iter_postings("coop")) == [(0, 3)]
    assert norm.lengths == (3,)
    assert norm.avg_length == 3.0


def test_numeric_arrays(swiss_bookings):
    index = build(swiss_bookings).index
    assert index.amounts[0] == Decimal("-45.80")
    assert index.abs_amounts[0] == Decimal("45.80")
    assert index.epoch_days[0] == to_epoch_day(swiss_bookings[0].transaction_date)


def test_duplicate_ids_get_distinct_ordinals(day):
    records = [
        Booking(id=10, transaction_date=day, amount=Decimal("-120.00"), money_account_id="ACC-5", booking_text="SBB Ticket"),
        Booking(id=10, transaction_date=day, amount=Decimal("10005"), money_account_id="ACC-3", booking_text="Lohnzahlung"),
    ]
    index = build(records).index
    assert index.size == 2
    assert [index.stored(o, "id") for o in range(2)] == [10, 10]
    assert index.stored(1, "bookingText") == "Lohnzahlung"


def test_malformed_records_are_skipped(day):
    records = [
        Booking(id=1, transaction_date=day, amount=Decimal("1"), booking_text="ok"),
        Booking(id=2, transaction_date=None, amount=Decimal("1"), booking_text="no date"),
        Booking(id=3, transaction_date=day, amount=None, booking_text="no amount"),
        Booking(id=4, transaction_date=day, amount=Decimal("2"), booking_text="also ok"),
    ]
    result = build(records)
    assert result.index.size == 2
    assert [e.record_id for e in result.rejected] == [2, 3]
    assert result.rejected[0].missing == ["transaction_date"]
    assert result.rejected[1].missing == ["amount"]
    assert result.rejected[1].position == 2
    # Ordinals stay dense after a rejection
    assert result.index.stored(1, "id") == 4


def test_fail_fast_raises_first_malformed_record(day):
    records = [
        Booking(id=1, transaction_date=day, amount=Decimal("1")),
        Booking(id=7, transaction_date=None, amount=None),
    ]
    with pytest.raises(MalformedRecord) as exc:
        build(records, fail_fast=True)
    assert exc.value.record_id == 7
    assert exc.value.missing == ["transaction_date", "amount"]


def test_records_without_a_usable_id_are_rejected(day):
    records = [
        Booking(id=None, transaction_date=day, amount=Decimal("1"), booking_text="no id"),
        Booking(id=2, transaction_date=day, amount=Decimal("2"), booking_text="ok"),
        Booking(id="x", transaction_date=None, amount=Decimal("3")),
    ]
    result = build(records)
    assert result.index.size == 1
    assert result.index.stored(0, "id") == 2
    assert [(e.record_id, e.position, e.missing) for e in result.rejected] == [
        (None, 0, ["id"]),
        (None, 2, ["id", "transaction_date"]),
    ]

    with pytest.raises(MalformedRecord) as exc:
        build(records, fail_fast=True)
    assert exc.value.missing == ["id"]
    assert exc.value.position == 0


def test_missing_text_fields_index_as_empty(day):
    index = build([Booking(id=1, transaction_date=day, amount=Decimal("3"), money_account_id=None, booking_text=None)]).index
    assert index.stored(0, "bookingText") == ""
    assert index.field(FIELD_TEXT).lengths == (0,)


def test_terms_with_prefix(swiss_bookings):
    norm = build(swiss_bookings).index.field(FIELD_TEXT_NORM)
    assert norm.terms_with_prefix("net") == ["netflix"]
    assert norm.terms_with_prefix("zz") == []


def test_empty_snapshot():
    index = build([]).index
    assert index.size == 0
    assert index.field(FIELD_TEXT).avg_length == 0.0


def test_inconsistent_stored_fields_fail_loudly(swiss_bookings):
    good = build(swiss_bookings[:1]).index
    broken = BookingIndex(
        documents=(MappingProxyType({"id": 1}),),
        fields=good.fields,
        amounts=good.amounts,
        abs_amounts=good.abs_amounts,
        epoch_days=good.epoch_days,
    )
    with pytest.raises(IndexInvariantError):
        evaluate(broken, QueryPlan(text=MatchAll()), limit=10)
    with pytest.raises(IndexInvariantError):
        broken.field("unknown")
