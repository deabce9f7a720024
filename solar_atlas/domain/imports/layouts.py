"""
Row layouts: how one tokenized CSV row becomes one store record.

A layout is a table of (destination column, source position, value kind)
entries plus the record-level rules for its table. Both the legacy
headerless permit export (fixed offsets) and header-mapped interconnection
exports (positions resolved from a confirmed mapping) are expressed as a
``RowLayout``, so ``convert_row`` is the only conversion routine.
"""
import hashlib
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from solar_atlas.domain.imports.errors import RowConversionError
from solar_atlas.domain.imports.mapper import ColumnMapping
from solar_atlas.domain.imports.target_fields import TARGET_FIELDS, TargetFieldSpec, ValueKind
from solar_atlas.utils.address import normalize_address
from solar_atlas.utils.date import parse_calendar_date
from solar_atlas.utils.values import clean_text, parse_integer, parse_number

logger = logging.getLogger(__name__)

CONTENT_KEY_PREFIX = "sha256:"
UNKNOWN_ADDRESS = "Unknown"

RecordHook = Callable[[Dict[str, Any]], None]


@dataclass(frozen=True)
class ColumnSource:
    column: str
    position: int
    kind: ValueKind = "text"


@dataclass(frozen=True)
class RowLayout:
    name: str
    table_name: str
    conflict_key: str
    columns: Tuple[ColumnSource, ...]
    min_fields: int
    defaults: Mapping[str, Any] = field(default_factory=dict)
    # When set, the full source row is kept under ``raw_data`` keyed by these headers.
    raw_headers: Optional[Tuple[str, ...]] = None
    hooks: Tuple[RecordHook, ...] = ()


def coerce_value(raw: Any, kind: ValueKind, *, column: Optional[str] = None) -> Any:
    """Convert one cell permissively; unparseable values become None."""
    if kind == "number":
        return parse_number(raw)
    if kind == "integer":
        return parse_integer(raw)
    if kind == "date":
        return parse_calendar_date(raw, log_context=column)
    return clean_text(raw)


def content_key(source: Any) -> str:
    """
    Deterministic key over the complete source row (cell values in document
    order, or a portal record as received), so only identical source rows share it.
    """
    canonical = json.dumps(source, sort_keys=True, default=str, separators=(",", ":"))
    return CONTENT_KEY_PREFIX + hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def finalize_record(layout: RowLayout, record: Dict[str, Any], source: Any) -> Dict[str, Any]:
    """
    Apply defaults and hooks, then make sure the conflict key is populated.

    ``source`` is the untouched input the record came from; a missing
    conflict key is derived from it with ``content_key``.
    """
    for column, default in layout.defaults.items():
        if record.get(column) is None:
            record[column] = default
    for hook in layout.hooks:
        hook(record)
    if not record.get(layout.conflict_key):
        record[layout.conflict_key] = content_key(source)
    return record


def convert_row(layout: RowLayout, values: Sequence[str], row_number: int = 0) -> Dict[str, Any]:
    """
    Project one tokenized row into a record for ``layout.table_name``.

    Raises:
        RowConversionError: when the row has fewer fields than the layout needs
    """
    if len(values) < layout.min_fields:
        raise RowConversionError(
            row_number,
            f"expected at least {layout.min_fields} fields, found {len(values)}",
        )

    record: Dict[str, Any] = {}
    for source in layout.columns:
        raw = values[source.position] if source.position < len(values) else None
        record[source.column] = coerce_value(raw, source.kind, column=source.column)

    if layout.raw_headers is not None:
        record["raw_data"] = {
            header: (values[index] or None) if index < len(values) else None
            for index, header in enumerate(layout.raw_headers)
        }

    return finalize_record(layout, record, list(values))


def _normalize_permit_address(record: Dict[str, Any]) -> None:
    record["address_normalized"] = normalize_address(record.get("address")) or None


# City permit export without a usable header row: columns are addressed by offset.
LEGACY_PERMIT_LAYOUT = RowLayout(
    name="legacy_permit",
    table_name="solar_installations",
    conflict_key="project_id",
    min_fields=20,
    columns=(
        ColumnSource("permit_class", 0),
        ColumnSource("address", 1),
        ColumnSource("description", 2),
        ColumnSource("installed_kw", 3, "number"),
        ColumnSource("applied_date", 4, "date"),
        ColumnSource("issued_date", 5, "date"),
        ColumnSource("calendar_year_issued", 6, "integer"),
        ColumnSource("status_current", 7),
        ColumnSource("completed_date", 8, "date"),
        ColumnSource("original_zip", 13),
        ColumnSource("council_district", 14),
        ColumnSource("jurisdiction", 15),
        ColumnSource("link", 16),
        ColumnSource("project_id", 17),
        ColumnSource("latitude", 19, "number"),
        ColumnSource("longitude", 20, "number"),
        ColumnSource("contractor_company", 23),
        ColumnSource("contractor_city", 26),
    ),
    defaults={"address": UNKNOWN_ADDRESS},
    hooks=(_normalize_permit_address,),
)

PIR_TABLE = "pir_installations"
PIR_CONFLICT_KEY = "record_key"


def layout_from_mapping(
    mapping: ColumnMapping,
    headers: Sequence[str],
    fields: Sequence[TargetFieldSpec] = TARGET_FIELDS,
) -> RowLayout:
    """
    Resolve a confirmed header mapping against the document's header row.

    Each mapped header is addressed by its first position in ``headers``;
    rows must be long enough to reach every required field's column.

    Raises:
        ValueError: when a mapped header does not occur in ``headers``
    """
    positions: Dict[str, int] = {}
    for index, header in enumerate(headers):
        positions.setdefault(header, index)

    columns: List[ColumnSource] = []
    required_positions: List[int] = []
    for spec in fields:
        header = mapping.header_for(spec.key)
        if not header:
            continue
        if header not in positions:
            raise ValueError(f"Mapped column '{header}' for {spec.key} not found in header row")
        columns.append(ColumnSource(spec.key, positions[header], spec.kind))
        if spec.required:
            required_positions.append(positions[header])

    min_fields = max(required_positions) + 1 if required_positions else 1
    logger.debug("Resolved mapped layout: %s (min_fields=%d)", columns, min_fields)

    return RowLayout(
        name="mapped_pir",
        table_name=PIR_TABLE,
        conflict_key=PIR_CONFLICT_KEY,
        columns=tuple(columns),
        min_fields=min_fields,
        raw_headers=tuple(headers),
    )
