"""
Date parsing utilities for flexible date format handling.

Exports mix ``MM/DD/YYYY``, ``YYYY-MM-DD``, ``MM-DD-YYYY`` and full ISO
timestamps. Every value is reduced to a calendar date (``datetime.date``)
as written in the source; no timezone shifting is applied.
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

from solar_atlas.core.config import settings

logger = logging.getLogger(__name__)

FAILED_SAMPLE_LIMIT = 5
SUPPRESSION_NOTICE_EVERY = 100

_failure_stats: dict = {}

_NUMERIC_DATE = re.compile(r"^\d{1,2}[/-]\d{1,2}[/-]\d{2,4}")


def _record_parse_failure(value: Any, context: Optional[str], error: Exception) -> None:
    """
    Collect failure stats and emit limited logs (sampled warnings + periodic summaries).
    """
    key = context or "default"
    stats = _failure_stats.setdefault(key, {"count": 0, "samples": []})
    stats["count"] += 1
    count = stats["count"]

    if len(stats["samples"]) < FAILED_SAMPLE_LIMIT:
        stats["samples"].append(value)
        logger.warning("Failed to parse date%s value '%s': %s", f" ({key})" if context else "", value, error)
        return

    # Emit a single summary when suppression starts, then periodically.
    if count == FAILED_SAMPLE_LIMIT + 1 or count % SUPPRESSION_NOTICE_EVERY == 0:
        logger.info(
            "Suppressed additional date parse warnings after %d failures%s; sample values=%s",
            count,
            f" ({key})" if context else "",
            stats["samples"],
        )


def _prefers_dayfirst(value: str) -> Optional[bool]:
    """For ``a/b/yyyy`` style values decide whether the first part is the day."""
    match = _NUMERIC_DATE.match(value)
    if not match:
        return None
    parts = re.split(r"[/-]", match.group(0))
    try:
        first = int(parts[0])
        second = int(parts[1])
    except ValueError:
        return settings.date_default_dayfirst

    if first > 12 and second <= 31:
        return True
    if second > 12 and first <= 12:
        return False
    return settings.date_default_dayfirst


def parse_calendar_date(value: Any, *, log_context: Optional[str] = None, log_failures: bool = True) -> Optional[date]:
    """
    Parse a date cell into a ``datetime.date``.

    Supports formats:
    - MM/DD/YYYY and MM-DD-YYYY (day-first when the first part exceeds 12)
    - YYYY-MM-DD
    - ISO 8601 timestamps: "2024-09-04T23:09:18Z" -> 2024-09-04
    - Anything else pandas can infer

    Returns:
        The calendar date, or None when the value is blank or unparseable
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, float) and pd.isna(value):
        return None

    text_val = str(value).strip()
    if not text_val:
        return None

    parse_attempts = []
    dayfirst = _prefers_dayfirst(text_val)
    if dayfirst is not None:
        parse_attempts.append(lambda v, df=dayfirst: pd.to_datetime(v, dayfirst=df, errors="raise"))
        # Always try the alternate interpretation as a fallback
        parse_attempts.append(lambda v, df=not dayfirst: pd.to_datetime(v, dayfirst=df, errors="raise"))
    parse_attempts.append(lambda v: pd.to_datetime(v, errors="raise"))

    last_error: Optional[Exception] = None
    for attempt in parse_attempts:
        try:
            parsed = attempt(text_val)
        except (ValueError, TypeError, OverflowError) as exc:
            last_error = exc
            continue
        if parsed is None or pd.isna(parsed):
            continue
        return parsed.date()

    if log_failures:
        _record_parse_failure(text_val, log_context, last_error or ValueError("Unable to determine format"))
    return None
