from __future__ import annotations

import logging
import os
import sys

CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from bookingsearch.services.ingestion_service import reindex
from bookingsearch.services.search_service import index_stats
from bookingsearch.settings import settings


def main():
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(message)s")
    source = os.getenv("SNAPSHOT_SOURCE") or settings.snapshot_source
    res = reindex(source)
    print(f"Indexed {res['indexed']} bookings from {source}")
    for r in res["rejected"]:
        print(f"  rejected id={r['id']} position={r['position']} missing={r['missing']}")
    stats = index_stats() or {}
    for field, count in sorted((stats.get("terms") or {}).items()):
        print(f"  {field}: {count} distinct terms")


if __name__ == "__main__":
    main()
