from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest

from bookingsearch.datasources.demo_bookings import load_demo_bookings
from bookingsearch.datasources.json_snapshot import load_json_snapshot, normalize_booking
from bookingsearch.index.models import QueryRequest
from bookingsearch.services import ingestion_service, search_service


def test_demo_bookings():
    today = date(2025, 3, 14)
    bookings = load_demo_bookings(today=today, generated=50, seed=42)
    assert len(bookings) == 61
    assert bookings[0].booking_text == "Migros Supermarkt Zürich Löwenstrasse"
    assert bookings[0].transaction_date == date(2025, 3, 13)
    assert bookings[0].amount == Decimal("-45.80")
    # Two demo bookings share id 10
    assert [b.id for b in bookings].count(10) == 2

    generated = bookings[11:]
    assert generated[0].id == 1001
    assert all(-10000 <= b.amount <= 10000 for b in generated)
    assert all(0 <= (today - b.transaction_date).days < 30 for b in generated)
    assert {b.money_account_id for b in generated} == {f"ACC-{i}" for i in range(5)}


def test_demo_bookings_are_deterministic():
    today = date(2025, 3, 14)
    assert load_demo_bookings(today=today, generated=20, seed=7) == load_demo_bookings(today=today, generated=20, seed=7)


def test_normalize_booking_accepts_both_key_styles():
    a = normalize_booking({"id": "3", "transactionDate": "2025-03-01", "amount": -12.9, "moneyAccountId": "ACC-2", "bookingText": "Coop"})
    b = normalize_booking({"id": 3, "transaction_date": "2025-03-01T08:15:00Z", "amount": "-12.9", "money_account_id": "ACC-2", "booking_text": "Coop"})
    assert a == b
    assert a.amount == Decimal("-12.9")


def test_normalize_booking_leaves_bad_values_for_the_builder():
    b = normalize_booking({"id": 1, "transactionDate": "not a date", "amount": "1,5"}, position=4)
    assert b.transaction_date is None
    assert b.amount is None
    assert b.booking_text == ""


def test_normalize_booking_leaves_unusable_ids_to_the_builder():
    assert normalize_booking({"transactionDate": "2025-03-01", "amount": 1}, position=2).id is None
    assert normalize_booking({"id": "abc", "transactionDate": "2025-03-01", "amount": 1}).id is None
    assert normalize_booking({"bookingId": "12", "transactionDate": "2025-03-01", "amount": 1}).id == 12


def test_load_json_snapshot(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps({"bookings": [{"id": 1, "transactionDate": "2025-03-01", "amount": 5}]}), encoding="utf-8")
    (booking,) = load_json_snapshot(path)
    assert booking.amount == Decimal("5")

    path.write_text(json.dumps("nope"), encoding="utf-8")
    with pytest.raises(ValueError):
        load_json_snapshot(path)


def test_reindex_demo_source(empty_index, monkeypatch):
    monkeypatch.setattr(ingestion_service.settings, "demo_generated_count", 100)
    res = ingestion_service.reindex("demo", fail_fast=True)
    assert res == {"indexed": 111, "rejected": []}

    netflix = search_service.search(QueryRequest(text="netflix"))
    assert sorted(r.id for r in netflix.results) == [5, 6]

    salary = search_service.search(QueryRequest(text="lohnzahlung", include_debits=False, min_amount=Decimal("3000")))
    assert salary.total == 2
    assert sorted(r.id for r in salary.results) == [9, 10]
