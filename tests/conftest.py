from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

import pytest

from bookingsearch.index.models import Booking
from bookingsearch.services import search_service

D = date(2025, 3, 14)


@pytest.fixture
def day() -> date:
    return D


@pytest.fixture
def two_bookings():
    return [
        Booking(id=1, transaction_date=D, amount=Decimal("-45.80"), money_account_id="ACC-1", booking_text="Migros Zürich"),
        Booking(id=2, transaction_date=D - timedelta(days=1), amount=Decimal("-12.90"), money_account_id="ACC-2", booking_text="Coop Basel"),
    ]


@pytest.fixture
def swiss_bookings():
    rows = [
        (1, "-45.80", "ACC-1", "Migros Supermarkt Zürich Löwenstrasse"),
        (2, "-23.40", "ACC-1", "Einkauf bei MIGROS Online Shop"),
        (3, "-12.90", "ACC-2", "Coop Filiale Basel Bahnhof"),
        (4, "-8.50", "ACC-2", "COOP Pronto Tankstelle Zürich"),
        (5, "-19.90", "ACC-3", "Netflix.com Subscription"),
        (6, "-7.99", "ACC-3", "NETFLIX.COM Monthly Fee"),
        (7, "3200.00", "ACC-5", "Lohnzahlung Firma Innuvation GmbH"),
        (8, "0.00", "ACC-5", "Kontoabschluss"),
        (9, "-5", "ACC-4", "SBB Ticket Zürich - Bern"),
    ]
    return [
        Booking(
            id=id_,
            transaction_date=D - timedelta(days=i),
            amount=Decimal(amount),
            money_account_id=account,
            booking_text=text,
        )
        for i, (id_, amount, account, text) in enumerate(rows)
    ]


@pytest.fixture
def empty_index(monkeypatch):
    """Start every service-level test without an active index."""
    monkeypatch.setattr(search_service, "_index", None)


@pytest.fixture
def indexed(empty_index, swiss_bookings):
    search_service.rebuild(swiss_bookings, fail_fast=True)
    return swiss_bookings
