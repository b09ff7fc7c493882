from __future__ import annotations

import logging
import os
import sys

CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from bookingsearch.index.models import build_query_request
from bookingsearch.services import search_service
from bookingsearch.services.ingestion_service import reindex
from bookingsearch.settings import settings


def main():
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(message)s")
    reindex()
    # SEARCH_MODE: plain | fuzzy | wildcard
    mode = (os.getenv("SEARCH_MODE") or "plain").lower()
    request = build_query_request(
        text=" ".join(sys.argv[1:]) or None,
        min_amount=os.getenv("MIN_AMOUNT") or None,
        max_amount=os.getenv("MAX_AMOUNT") or None,
        from_date=os.getenv("FROM_DATE") or None,
        limit=int(os.getenv("LIMIT") or settings.default_limit),
    )
    if mode == "fuzzy":
        resp = search_service.search_fuzzy(request)
    elif mode == "wildcard":
        resp = search_service.search_wildcard(request)
    else:
        resp = search_service.search(request)

    print(f"total={resp.total} limit={resp.limit}")
    for r in resp.results:
        print(f"{r.score:8.3f}  {r.id:>6}  {r.transaction_date}  {r.amount:>10}  {r.money_account_id:<6} {r.booking_text}")


if __name__ == "__main__":
    main()
