"""
Value normalization for raw CSV cells.

Responsibilities:
- numeric coercion for Chilean-formatted counts and rates
- label folding (accents, case, padding) for category matching
- year extraction across the column spellings the sources use
- tolerant column lookup by name fragment

Every function here is total: bad input degrades to 0 / "" / None and the
caller keeps going.
"""

from __future__ import annotations

import math
import re
import unicodedata
from typing import Any, Iterable, Mapping, Optional

from .rules import YEAR_COLUMNS

_WHITESPACE = re.compile(r"\s+")


def _parse_number(text: str) -> float:
    # float() also takes "1_000", "inf" and "nan"; none of those are data here.
    if not text or "_" in text:
        return 0.0
    try:
        n = float(text)
    except ValueError:
        return 0.0
    return n if math.isfinite(n) else 0.0


def to_int(raw: Any) -> int:
    """
    Parse a population count.

    Rules:
    - all whitespace removed
    - every "." is a thousands separator and is dropped
    - "," is the decimal separator
    - rounded half-up, so "2,5" -> 3 and "-2,5" -> -2
    - anything unparseable -> 0
    """
    if raw is None:
        return 0
    text = _WHITESPACE.sub("", str(raw)).replace(".", "").replace(",", ".")
    return math.floor(_parse_number(text) + 0.5)


def to_float(raw: Any) -> float:
    """
    Parse a rate or amount.

    A comma is the decimal separator. When one is present, dots are
    thousands separators ("1.234,5" -> 1234.5); without a comma the dot is
    the decimal point ("9.1" -> 9.1). Unparseable -> 0.0.
    """
    if raw is None:
        return 0.0
    text = _WHITESPACE.sub("", str(raw))
    if "," in text:
        text = text.replace(".", "").replace(",", ".")
    return _parse_number(text)


def normalize_label(raw: Any) -> str:
    """Accent-free, trimmed, upper-cased key for category matching."""
    if raw is None:
        return ""
    decomposed = unicodedata.normalize("NFD", str(raw))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.strip().upper()


def parse_year(raw: Any) -> Optional[int]:
    if raw is None:
        return None
    n = _parse_number(str(raw).strip())
    if n == 0 or not n.is_integer():
        return None
    return int(n)


def record_year(record: Mapping[str, Any], aliases: Iterable[str] = YEAR_COLUMNS) -> Optional[int]:
    for alias in aliases:
        value = record.get(alias)
        if value is not None:
            return parse_year(value)
    return None


def find_column(columns: Iterable[str], *needles: str) -> Optional[str]:
    """First column whose folded name contains any of the folded needles."""
    folded = [normalize_label(n) for n in needles]
    for col in columns:
        key = normalize_label(col)
        if any(n and n in key for n in folded):
            return col
    return None
