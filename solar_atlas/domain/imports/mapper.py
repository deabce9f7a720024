"""
Header -> target field auto-detection.

The heuristic is a greedy, order-sensitive first-match: fields are visited
in declaration order and each claims the first unclaimed header whose
normalized text contains (or is contained in) one of its patterns. It is
deliberately not an optimal assignment, so that results stay predictable.
"""
import logging
import re
from typing import Dict, List, Mapping, Optional, Sequence, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

from solar_atlas.domain.imports.target_fields import TARGET_FIELDS, TargetFieldSpec, field_keys

logger = logging.getLogger(__name__)

_SEPARATOR_RUN = re.compile(r"[_\s]+")


class ColumnMapping(BaseModel):
    """
    Target field key -> source header (None means "skip").

    A mapping is either proposed (machine-generated) or confirmed; only a
    confirmed mapping may drive an import.
    """
    model_config = ConfigDict(frozen=True)

    assignments: Dict[str, Optional[str]] = Field(default_factory=dict)
    confirmed: bool = False

    @field_validator("assignments")
    def blank_headers_mean_skip(cls, value: Dict[str, Optional[str]]) -> Dict[str, Optional[str]]:
        return {key: (header if header and header.strip() else None) for key, header in value.items()}

    def confirm(self) -> "ColumnMapping":
        """Return a confirmed copy of this mapping."""
        return self.model_copy(update={"confirmed": True})

    def header_for(self, key: str) -> Optional[str]:
        return self.assignments.get(key)

    def mapped_headers(self) -> Set[str]:
        return {header for header in self.assignments.values() if header}


def build_mapping(
    assignments: Mapping[str, Optional[str]],
    fields: Sequence[TargetFieldSpec] = TARGET_FIELDS,
    confirmed: bool = False,
) -> ColumnMapping:
    """
    Build a mapping that holds every target key.

    Keys absent from ``assignments`` are set to None; keys that are not
    target fields raise ValueError.
    """
    keys = field_keys(fields)
    unknown = [key for key in assignments if key not in keys]
    if unknown:
        raise ValueError(f"Unknown target fields in mapping: {', '.join(sorted(unknown))}")
    return ColumnMapping(assignments={key: assignments.get(key) for key in keys}, confirmed=confirmed)


def normalize_header(value: str) -> str:
    """Lower-case and collapse underscore/whitespace runs into single spaces."""
    return _SEPARATOR_RUN.sub(" ", value.lower()).strip()


def _matches(normalized_header: str, normalized_patterns: Sequence[str]) -> bool:
    if not normalized_header:
        return False
    return any(
        pattern in normalized_header or normalized_header in pattern
        for pattern in normalized_patterns
    )


def propose_mapping(
    headers: Sequence[str],
    fields: Sequence[TargetFieldSpec] = TARGET_FIELDS,
) -> ColumnMapping:
    """
    Propose a mapping from detected headers.

    Args:
        headers: Header row in document order
        fields: Target fields in priority order

    Returns:
        Unconfirmed ColumnMapping; unmatched fields map to None
    """
    normalized_headers = [normalize_header(header) for header in headers]
    claimed: Set[str] = set()
    assignments: Dict[str, Optional[str]] = {field.key: None for field in fields}

    for field in fields:
        normalized_patterns = [normalize_header(pattern) for pattern in field.patterns]
        for header, normalized in zip(headers, normalized_headers):
            if header in claimed:
                continue
            if _matches(normalized, normalized_patterns):
                assignments[field.key] = header
                claimed.add(header)
                break

    matched = [key for key, header in assignments.items() if header]
    logger.info("Auto-mapped %d of %d target fields: %s", len(matched), len(assignments), matched)
    return ColumnMapping(assignments=assignments, confirmed=False)


def unmatched_fields(mapping: ColumnMapping) -> List[str]:
    return [key for key, header in mapping.assignments.items() if not header]
