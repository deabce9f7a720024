"""
Permissive scalar coercion for CSV cells.

Malformed values become ``None`` instead of raising: a bad number never
fails a row, it just leaves that column empty.
"""
import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

_LEADING_NUMBER = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)")


def clean_text(value: Any) -> Optional[str]:
    """Return a stripped string, or None for missing/blank values."""
    if value is None:
        return None
    text_val = str(value).strip()
    return text_val or None


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a numeric cell the way spreadsheet exports write them.

    Accepts thousands separators, a leading currency sign, accounting-style
    negatives ``(123.45)``, a trailing percent sign, and trailing units such
    as ``7.5 kW`` (only the leading number is kept). Anything else yields None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if isinstance(value, float) and math.isnan(value) else float(value)

    text_val = str(value).strip()
    if not text_val:
        return None

    normalized = text_val.replace(",", "").replace(" ", "")
    negative = False
    if normalized.startswith("(") and normalized.endswith(")"):
        negative = True
        normalized = normalized[1:-1]
    if normalized.startswith("-$"):
        negative = True
        normalized = normalized[2:]
    if normalized.startswith("$"):
        normalized = normalized[1:]
    normalized = normalized.rstrip("%")

    try:
        number = Decimal(normalized)
    except InvalidOperation:
        match = _LEADING_NUMBER.match(normalized)
        if not match:
            return None
        try:
            number = Decimal(match.group(0))
        except InvalidOperation:
            return None

    if not number.is_finite():
        return None
    result = float(number)
    return -result if negative else result


def parse_integer(value: Any) -> Optional[int]:
    """Parse an integer cell; non-integral or non-numeric values yield None."""
    number = parse_number(value)
    if number is None or not float(number).is_integer():
        return None
    return int(number)
