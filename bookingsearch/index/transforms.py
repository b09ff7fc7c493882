from __future__ import annotations

import re
from typing import List, Optional

from .query import FUZZY_MARKER, WILDCARD_CHARS

_WS = re.compile(r"\s+")


def _split(raw: Optional[str]) -> List[str]:
    return [t for t in _WS.split((raw or "").strip()) if t]


def transform_fuzzy(raw: Optional[str], distance: int = 1) -> Optional[str]:
    """Append ``~distance`` to every whitespace-separated token.

    Returns None when nothing is left, i.e. a match-all query.
    """
    out = " ".join(f"{term}{FUZZY_MARKER}{distance}" for term in _split(raw))
    return out or None


def transform_wildcard(raw: Optional[str]) -> Optional[str]:
    """Turn every token into a prefix match unless it already carries a wildcard."""
    out = " ".join(term if any(c in term for c in WILDCARD_CHARS) else term + "*" for term in _split(raw))
    return out or None
