"""
Street address normalization used to match installations across sources.
"""
import re
from typing import Optional

_UNIT_SUFFIX = re.compile(r"\s+(APT|UNIT|STE|SUITE|#)\s*[\w-]+$", re.IGNORECASE)

_ABBREVIATIONS = (
    ("STREET", "ST"),
    ("DRIVE", "DR"),
    ("AVENUE", "AVE"),
    ("BOULEVARD", "BLVD"),
    ("LANE", "LN"),
    ("ROAD", "RD"),
    ("COURT", "CT"),
    ("CIRCLE", "CIR"),
    ("PLACE", "PL"),
    ("TERRACE", "TER"),
    ("PARKWAY", "PKWY"),
    ("HIGHWAY", "HWY"),
    ("NORTH", "N"),
    ("SOUTH", "S"),
    ("EAST", "E"),
    ("WEST", "W"),
)


def normalize_address(address: Optional[str]) -> str:
    """
    Reduce an address to a comparable key.

    Upper-cases, drops a trailing unit designator, abbreviates street
    suffixes and directions, strips periods/commas and collapses whitespace.

    >>> normalize_address("1200 North Lamar Boulevard Apt 4B")
    '1200 N LAMAR BLVD'
    """
    if not address:
        return ""

    normalized = address.upper().strip()
    normalized = _UNIT_SUFFIX.sub("", normalized)
    for word, abbreviation in _ABBREVIATIONS:
        normalized = re.sub(rf"\b{word}\b", abbreviation, normalized)
    normalized = re.sub(r"[.,]", "", normalized)
    return re.sub(r"\s+", " ", normalized).strip()
