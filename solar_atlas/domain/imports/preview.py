"""
Header detection and bounded preview extraction.

City exports sometimes prepend banner/metadata lines, so the header row is
located by looking for anchor text within the first few non-blank lines.
"""
import logging
import re
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from solar_atlas.core.config import settings
from solar_atlas.domain.imports.tokenizer import tokenize_line

logger = logging.getLogger(__name__)

# Lower-cased substrings that identify the header row.
HEADER_ANCHORS = ("install date", "install_date", "kw capacity")

_LINE_BREAK = re.compile(r"\r?\n")


class ParsedDocument(BaseModel):
    """Headers plus a small preview sample; the import itself re-scans the full text."""
    model_config = ConfigDict(frozen=True)

    header_row_index: int = 0
    headers: List[str] = Field(default_factory=list)
    preview_rows: List[List[str]] = Field(default_factory=list)
    total_data_row_count: int = 0


def split_document_lines(text: str) -> List[str]:
    """Split on ``\\n`` / ``\\r\\n`` and drop blank lines."""
    return [line for line in _LINE_BREAK.split(text) if line.strip()]


def locate_header_row(
    lines: Sequence[str],
    anchors: Sequence[str] = HEADER_ANCHORS,
    scan_lines: Optional[int] = None,
) -> int:
    """Index of the first of the leading lines containing an anchor, else 0."""
    limit = settings.header_scan_lines if scan_lines is None else scan_lines
    for index, line in enumerate(lines[:limit]):
        lowered = line.lower()
        if any(anchor in lowered for anchor in anchors):
            return index
    return 0


def extract_preview(text: str, row_limit: Optional[int] = None) -> ParsedDocument:
    """
    Find the header row and tokenize a bounded sample of the rows after it.

    Args:
        text: Full raw document
        row_limit: Maximum preview rows (defaults to ``settings.preview_row_limit``)

    Returns:
        ParsedDocument; empty documents yield no headers and no rows
    """
    limit = settings.preview_row_limit if row_limit is None else row_limit
    lines = split_document_lines(text or "")
    if not lines:
        return ParsedDocument()

    header_row_index = locate_header_row(lines)
    headers = tokenize_line(lines[header_row_index])
    data_lines = lines[header_row_index + 1:]
    preview_rows = [tokenize_line(line) for line in data_lines[:limit]]

    if header_row_index:
        logger.info("Skipped %d banner line(s) before the header row", header_row_index)

    return ParsedDocument(
        header_row_index=header_row_index,
        headers=headers,
        preview_rows=preview_rows,
        total_data_row_count=len(data_lines),
    )
