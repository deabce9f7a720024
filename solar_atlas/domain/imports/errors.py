"""
Exceptions raised by the import pipeline.

Everything deriving from ``ImportPipelineError`` is a guard rejection: it is
raised before the first row is processed and carries one user-facing message.
"""
from typing import List, Optional


class ImportPipelineError(Exception):
    """Base class for fatal, pre-processing rejections."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class DocumentTooLargeError(ImportPipelineError):
    """Raised when the uploaded document exceeds the configured byte ceiling."""

    def __init__(self, size_bytes: int, max_bytes: int, message: Optional[str] = None):
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes
        super().__init__(
            message
            or f"Document is too large ({size_bytes:,} bytes). Maximum allowed size is {max_bytes:,} bytes."
        )


class TooManyRowsError(ImportPipelineError):
    """Raised when the document holds more data rows than one run may import."""

    def __init__(self, row_count: int, max_rows: int, message: Optional[str] = None):
        self.row_count = row_count
        self.max_rows = max_rows
        super().__init__(
            message
            or f"Document has {row_count:,} data rows. Maximum allowed per import is {max_rows:,}."
        )


class EmptyDocumentError(ImportPipelineError):
    """Raised when the document has no header row or no data rows."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "CSV must have a header row and at least one data row.")


class MappingNotConfirmedError(ImportPipelineError):
    """Raised when a proposed (unconfirmed) mapping is used to drive an import."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Column mapping must be confirmed before importing.")


class MappingValidationError(ImportPipelineError):
    """Raised when a confirmed mapping is missing required fields or has duplicates."""

    def __init__(
        self,
        missing_required: Optional[List[str]] = None,
        duplicates: Optional[dict] = None,
        unknown_headers: Optional[List[str]] = None,
        message: Optional[str] = None,
    ):
        self.missing_required = missing_required or []
        self.duplicates = duplicates or {}
        self.unknown_headers = unknown_headers or []
        if message is None:
            problems = []
            if self.missing_required:
                problems.append(f"required fields missing: {', '.join(self.missing_required)}")
            if self.duplicates:
                problems.append(
                    "duplicate mappings: "
                    + "; ".join(f'"{header}" is mapped to {", ".join(keys)}' for header, keys in self.duplicates.items())
                )
            if self.unknown_headers:
                problems.append(f"columns not found in document: {', '.join(self.unknown_headers)}")
            message = "Invalid column mapping (" + "; ".join(problems) + ")." if problems else "Invalid column mapping."
        super().__init__(message)


class RowConversionError(Exception):
    """A single row could not be converted; counted and skipped by the importer."""

    def __init__(self, row_number: int, message: str):
        self.row_number = row_number
        self.message = message
        super().__init__(f"Row {row_number}: {message}")
