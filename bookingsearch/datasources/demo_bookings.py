from __future__ import annotations

import random
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from ..index.models import Booking

# (id, days ago, amount, account, text)
_DEMO_ROWS = [
    (1, 1, "-45.80", "ACC-1", "Migros Supermarkt Zürich Löwenstrasse"),
    (2, 2, "-23.40", "ACC-1", "Einkauf bei MIGROS Online Shop"),
    (3, 3, "-12.90", "ACC-2", "Coop Filiale Basel Bahnhof"),
    (4, 4, "-8.50", "ACC-2", "COOP Pronto Tankstelle Zürich"),
    (5, 5, "-19.90", "ACC-3", "Netflix.com Subscription"),
    (6, 6, "-7.99", "ACC-3", "NETFLIX.COM Monthly Fee"),
    (7, 7, "-89.00", "ACC-4", "Amazon Marketplace Order 123-4567890-1234567"),
    (8, 8, "-15.75", "ACC-4", "AMAZON EU SARL Bestellung"),
    (9, 9, "3200.00", "ACC-5", "Lohnzahlung Firma Innuvation GmbH"),
    (10, 10, "-120.00", "ACC-5", "SBB Ticket Zürich - Bern"),
    # Same id as the SBB booking on purpose: ids are not unique upstream
    (10, 10, "10005", "ACC-3", "Lohnzahlung innuvation gmbh"),
]


def load_demo_bookings(today: Optional[date] = None, generated: int = 5000, seed: int = 42) -> List[Booking]:
    """Hand-written demo bookings plus ``generated`` random ones.

    Random amounts are whole francs in [-10000, 10000]; dates cycle over
    the last 30 days.
    """
    today = today or date.today()
    out: List[Booking] = [
        Booking(
            id=id_,
            transaction_date=today - timedelta(days=days_ago),
            amount=Decimal(amount),
            money_account_id=account,
            booking_text=text,
        )
        for id_, days_ago, amount, account, text in _DEMO_ROWS
    ]

    rng = random.Random(seed)
    for i in range(1, generated + 1):
        amount = rng.randint(-10_000, 10_000)
        account = f"ACC-{i % 5}"
        out.append(
            Booking(
                id=1000 + i,
                transaction_date=today - timedelta(days=i % 30),
                amount=Decimal(amount),
                money_account_id=account,
                booking_text=f"Example-Booking {i} für Konto {account} with amount of {amount} CHF",
            )
        )
    return out
