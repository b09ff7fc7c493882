from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..datasources.demo_bookings import load_demo_bookings
from ..datasources.json_snapshot import load_json_snapshot
from ..index.models import Booking
from ..settings import settings
from .search_service import rebuild

logger = logging.getLogger(__name__)

DEMO_SOURCE = "demo"


def load_snapshot(source: Optional[str] = None) -> List[Booking]:
    """Load a full snapshot: the demo data set or a JSON file path."""
    source = source or settings.snapshot_source
    if source == DEMO_SOURCE:
        return load_demo_bookings(generated=settings.demo_generated_count, seed=settings.demo_seed)
    return load_json_snapshot(source)


def reindex(source: Optional[str] = None, fail_fast: Optional[bool] = None) -> Dict[str, Any]:
    snapshot = load_snapshot(source)
    rejected = rebuild(snapshot, fail_fast=fail_fast)
    if rejected:
        logger.warning("%d of %d bookings rejected during rebuild", len(rejected), len(snapshot))
    return {
        "indexed": len(snapshot) - len(rejected),
        "rejected": [
            {"id": e.record_id, "position": e.position, "missing": e.missing}
            for e in rejected
        ],
    }
