from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..index.models import Booking

logger = logging.getLogger(__name__)


def _parse_id(value: Any, position: int) -> Optional[int]:
    if value is None or isinstance(value, bool):
        logger.warning("Booking without an id at snapshot position %d", position)
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Unparsable booking id %r at snapshot position %d", value, position)
        return None


def _parse_date(value: Any, position: int) -> Optional[date]:
    if value in (None, ""):
        return None
    try:
        # Accept full timestamps too, only the calendar day matters
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.warning("Unparsable transaction date %r at snapshot position %d", value, position)
        return None


def _parse_amount(value: Any, position: int) -> Optional[Decimal]:
    if value in (None, ""):
        return None
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        logger.warning("Unparsable amount %r at snapshot position %d", value, position)
        return None
    if not amount.is_finite():
        logger.warning("Non-finite amount %r at snapshot position %d", value, position)
        return None
    return amount


def normalize_booking(d: Dict[str, Any], position: int = 0) -> Booking:
    """Map one JSON object (camelCase or snake_case keys) onto a Booking.

    Unparsable ids, dates and amounts become None so the index builder
    reports the record as malformed.
    """
    id_ = d.get("id")
    if id_ is None:
        id_ = d.get("bookingId")
    booking_id = _parse_id(id_, position)

    return Booking(
        id=booking_id,
        transaction_date=_parse_date(d.get("transactionDate", d.get("transaction_date")), position),
        amount=_parse_amount(d.get("amount"), position),
        money_account_id=str(d.get("moneyAccountId") or d.get("money_account_id") or ""),
        booking_text=str(d.get("bookingText") or d.get("booking_text") or ""),
    )


def load_json_snapshot(path: Union[str, Path]) -> List[Booking]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("bookings") or []
    if not isinstance(data, list):
        raise ValueError(f"Snapshot {path} must contain a JSON array of bookings")
    return [normalize_booking(d, position=i) for i, d in enumerate(data)]
