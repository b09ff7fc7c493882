from __future__ import annotations

import re
from typing import Callable, Dict, List, Tuple

# Searchable text fields, named as in the JSON the API returns
FIELD_TEXT = "bookingText"
FIELD_TEXT_NORM = "bookingTextNorm"
FIELD_ACCOUNT = "moneyAccountId"

TEXT_FIELDS: Tuple[str, ...] = (FIELD_TEXT, FIELD_TEXT_NORM, FIELD_ACCOUNT)

# Letters and digits of any script; everything else is a word boundary
_WORD_RE = re.compile(r"[^\W_]+")


def tokenize(text: str) -> List[str]:
    """Split text into runs of letters/digits, keeping the original casing."""
    if not text:
        return []
    return _WORD_RE.findall(text)


def normalize_text(text: str) -> str:
    """Replace '.' and ',' by a space and lowercase.

    Keeps "Netflix.com" and "NETFLIX.COM" on the same token stream.
    """
    return text.replace(".", " ").replace(",", " ").lower()


def analyze_booking_text(text: str) -> Tuple[List[str], List[str]]:
    """Return (original tokens, normalized tokens) for a booking text."""
    return tokenize(text), tokenize(normalize_text(text))


def analyze_account_id(account_id: str) -> List[str]:
    return tokenize(account_id.lower())


_ANALYZERS: Dict[str, Callable[[str], List[str]]] = {
    FIELD_TEXT: tokenize,
    FIELD_TEXT_NORM: lambda text: tokenize(normalize_text(text)),
    FIELD_ACCOUNT: analyze_account_id,
}


def analyze(field: str, text: str) -> List[str]:
    """Analyze text the way ``field`` was analyzed at index time."""
    try:
        analyzer = _ANALYZERS[field]
    except KeyError:
        raise ValueError(f"Unknown text field: {field}") from None
    return analyzer(text)


# Word characters plus the wildcard markers, so patterns split like indexed text
_PATTERN_RE = re.compile(r"(?:[^\W_]|[*?])+")


def analyze_pattern(field: str, pattern: str) -> List[str]:
    """Split a wildcard pattern into per-token patterns for ``field``.

    The original field keeps its casing; the other fields are folded the
    way they were at index time. Pieces made only of wildcards are dropped.
    """
    if field == FIELD_TEXT:
        text = pattern
    elif field == FIELD_TEXT_NORM:
        text = normalize_text(pattern)
    elif field == FIELD_ACCOUNT:
        text = pattern.lower()
    else:
        raise ValueError(f"Unknown text field: {field}")
    return [p for p in _PATTERN_RE.findall(text) if p.strip("*?")]
