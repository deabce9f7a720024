"""
Batched, re-runnable import of a full CSV document.

Guard rejections (oversize, too many rows, empty document, unconfirmed or
invalid mapping) raise before any row is read. After that the run is
best-effort: short or malformed rows are counted and skipped, a failed
batch write is logged and counted, and a summary is always returned.

Batches are written sequentially on the layout's conflict key, so
re-importing overlapping data replaces rows rather than duplicating them.
Earlier batches stay committed if a later one fails (at-least-once).
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, computed_field

from solar_atlas.core.config import settings
from solar_atlas.db.store import RecordStore
from solar_atlas.domain.imports.errors import (
    DocumentTooLargeError,
    EmptyDocumentError,
    MappingNotConfirmedError,
    RowConversionError,
    TooManyRowsError,
)
from solar_atlas.domain.imports.layouts import LEGACY_PERMIT_LAYOUT, RowLayout, convert_row, layout_from_mapping
from solar_atlas.domain.imports.mapper import ColumnMapping
from solar_atlas.domain.imports.preview import locate_header_row, split_document_lines
from solar_atlas.domain.imports.target_fields import TARGET_FIELDS, TargetFieldSpec
from solar_atlas.domain.imports.tokenizer import tokenize_line
from solar_atlas.domain.imports.validators import ensure_importable, validate_mapping

logger = logging.getLogger(__name__)

ROW_ERROR_LOG_LIMIT = 5


class ImportRunSummary(BaseModel):
    processed_count: int = 0
    error_count: int = 0
    # Rows that shared a conflict key with a later row of the same batch.
    merged_count: int = 0
    failed_batches: int = 0

    @computed_field
    @property
    def status(self) -> str:
        return "partial" if self.failed_batches else "completed"


class BatchWriter:
    """
    Buffers records and upserts them in bounded batches.

    A failed batch is logged, its rows are added to ``error_count`` and the
    writer keeps going with the next batch.
    """

    def __init__(
        self,
        store: RecordStore,
        table_name: str,
        conflict_key: str,
        summary: ImportRunSummary,
        batch_size: Optional[int] = None,
    ):
        self.store = store
        self.table_name = table_name
        self.conflict_key = conflict_key
        self.summary = summary
        self.batch_size = batch_size or settings.import_batch_size
        self.batch_number = 0
        self._buffer: List[Dict[str, Any]] = []

    def add(self, record: Dict[str, Any]) -> None:
        self._buffer.append(record)
        if len(self._buffer) >= self.batch_size:
            self.flush()

    def flush(self) -> None:
        if not self._buffer:
            return
        batch, self._buffer = self._buffer, []
        self.batch_number += 1
        try:
            written = self.store.upsert(self.table_name, batch, self.conflict_key)
        except Exception as exc:
            logger.exception(
                "Batch %d (%d rows) failed for '%s': %s",
                self.batch_number,
                len(batch),
                self.table_name,
                exc,
            )
            self.summary.error_count += len(batch)
            self.summary.failed_batches += 1
            return

        self.summary.processed_count += written
        self.summary.merged_count += len(batch) - written
        logger.info(
            "Upserted batch %d into '%s' (%d rows, %d merged, %d total)",
            self.batch_number,
            self.table_name,
            written,
            len(batch) - written,
            self.summary.processed_count,
        )


def check_document_size(csv_data: str, max_bytes: Optional[int] = None) -> None:
    """Raise DocumentTooLargeError when the UTF-8 payload exceeds the byte ceiling."""
    limit = settings.import_max_bytes if max_bytes is None else max_bytes
    size_bytes = len(csv_data.encode("utf-8"))
    if size_bytes > limit:
        raise DocumentTooLargeError(size_bytes, limit)


def _check_rows(lines: Sequence[str], header_row_index: int, max_rows: Optional[int]) -> int:
    data_rows = len(lines) - header_row_index - 1
    if data_rows < 1:
        raise EmptyDocumentError()
    limit = settings.import_max_rows if max_rows is None else max_rows
    if data_rows > limit:
        raise TooManyRowsError(data_rows, limit)
    return data_rows


def run_layout(
    lines: Sequence[str],
    header_row_index: int,
    layout: RowLayout,
    store: RecordStore,
    batch_size: Optional[int] = None,
) -> ImportRunSummary:
    """Convert every line after the header with ``layout`` and write in batches."""
    summary = ImportRunSummary()
    writer = BatchWriter(store, layout.table_name, layout.conflict_key, summary, batch_size)

    for index in range(header_row_index + 1, len(lines)):
        row_number = index + 1
        try:
            record = convert_row(layout, tokenize_line(lines[index]), row_number)
        except (RowConversionError, ValueError, TypeError) as exc:
            summary.error_count += 1
            if summary.error_count <= ROW_ERROR_LOG_LIMIT:
                logger.warning("Skipping row %d: %s", row_number, exc)
            continue
        writer.add(record)

    writer.flush()

    logger.info(
        "Import into '%s' finished: processed=%d errors=%d failed_batches=%d",
        layout.table_name,
        summary.processed_count,
        summary.error_count,
        summary.failed_batches,
    )
    return summary


def import_mapped_document(
    csv_data: str,
    mapping: ColumnMapping,
    store: RecordStore,
    *,
    fields: Sequence[TargetFieldSpec] = TARGET_FIELDS,
    batch_size: Optional[int] = None,
    max_bytes: Optional[int] = None,
    max_rows: Optional[int] = None,
) -> ImportRunSummary:
    """
    Import a header-mapped (interconnection) export.

    The header row is located with the same rules as the preview, then the
    confirmed mapping is re-validated against it before any row is read.

    Raises:
        DocumentTooLargeError, EmptyDocumentError, TooManyRowsError,
        MappingNotConfirmedError, MappingValidationError
    """
    check_document_size(csv_data, max_bytes)
    lines = split_document_lines(csv_data)
    if not lines:
        raise EmptyDocumentError()
    header_row_index = locate_header_row(lines)
    data_rows = _check_rows(lines, header_row_index, max_rows)

    if not mapping.confirmed:
        raise MappingNotConfirmedError()

    headers = tokenize_line(lines[header_row_index])
    ensure_importable(validate_mapping(mapping, headers, fields))
    layout = layout_from_mapping(mapping, headers, fields)

    logger.info(
        "Starting mapped import: %d data rows, header at line %d, %d mapped fields",
        data_rows,
        header_row_index + 1,
        len(layout.columns),
    )
    return run_layout(lines, header_row_index, layout, store, batch_size)


def import_legacy_document(
    csv_data: str,
    store: RecordStore,
    *,
    layout: RowLayout = LEGACY_PERMIT_LAYOUT,
    batch_size: Optional[int] = None,
    max_bytes: Optional[int] = None,
    max_rows: Optional[int] = None,
) -> ImportRunSummary:
    """
    Import the city permit export using fixed column offsets.

    The first non-blank line is the export's own header and is skipped.

    Raises:
        DocumentTooLargeError, EmptyDocumentError, TooManyRowsError
    """
    check_document_size(csv_data, max_bytes)
    lines = split_document_lines(csv_data)
    if not lines:
        raise EmptyDocumentError()
    data_rows = _check_rows(lines, 0, max_rows)

    logger.info("Starting positional import (%s): %d data rows", layout.name, data_rows)
    return run_layout(lines, 0, layout, store, batch_size)
