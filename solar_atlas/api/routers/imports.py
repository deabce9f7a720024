"""
Import endpoints: preview + auto-mapping, mapping validation, and the
privileged commit paths (mapped interconnection import, positional permit
import, open data sync).
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from solar_atlas.api.dependencies import get_record_store
from solar_atlas.api.schemas.imports import (
    ImportResponse,
    LegacyImportRequest,
    MappedImportRequest,
    PreviewRequest,
    PreviewResponse,
    SyncResponse,
    ValidateMappingRequest,
    ValidateMappingResponse,
)
from solar_atlas.core.security import SessionVerdict, require_admin
from solar_atlas.db.store import RecordStore
from solar_atlas.domain.imports.errors import (
    DocumentTooLargeError,
    EmptyDocumentError,
    ImportPipelineError,
    MappingNotConfirmedError,
    MappingValidationError,
    TooManyRowsError,
)
from solar_atlas.domain.imports.importer import (
    check_document_size,
    import_legacy_document,
    import_mapped_document,
)
from solar_atlas.domain.imports.mapper import build_mapping, propose_mapping
from solar_atlas.domain.imports.preview import extract_preview
from solar_atlas.domain.imports.sync import OpenDataSyncError, sync_permits
from solar_atlas.domain.imports.target_fields import TARGET_FIELDS
from solar_atlas.domain.imports.validators import validate_mapping

router = APIRouter(prefix="/imports", tags=["imports"])

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (DocumentTooLargeError, 413),
    (TooManyRowsError, 413),
    (EmptyDocumentError, 400),
    (MappingNotConfirmedError, 422),
    (MappingValidationError, 422),
    (OpenDataSyncError, 502),
)


def _http_error(exc: ImportPipelineError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.message)
    return HTTPException(status_code=400, detail=exc.message)


def _summary_message(processed: int, errors: int) -> str:
    return f"Import finished. Processed: {processed} records, Errors: {errors}"


@router.post("/preview", response_model=PreviewResponse)
def preview_endpoint(request: PreviewRequest):
    """
    Detect the header row, return a bounded preview and a proposed mapping.

    Returns:
    - document: header row index, headers, up to 5 preview rows, data row count
    - proposed_mapping: target field -> header (null = skip), not yet confirmed
    - validation: required coverage / duplicates / unmapped columns for the proposal
    """
    try:
        check_document_size(request.csv_data)
    except ImportPipelineError as exc:
        raise _http_error(exc)

    document = extract_preview(request.csv_data)
    if not document.headers:
        raise HTTPException(status_code=400, detail="CSV document is empty.")

    proposed = propose_mapping(document.headers)
    return PreviewResponse(
        success=True,
        document=document,
        proposed_mapping=proposed.assignments,
        validation=validate_mapping(proposed, document.headers),
        target_fields=list(TARGET_FIELDS),
    )


@router.post("/validate-mapping", response_model=ValidateMappingResponse)
def validate_mapping_endpoint(request: ValidateMappingRequest):
    """Re-check a user-edited mapping against the detected headers."""
    try:
        mapping = build_mapping(request.mapping)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return ValidateMappingResponse(success=True, validation=validate_mapping(mapping, request.headers))


@router.post("/interconnections", response_model=ImportResponse)
def import_interconnections_endpoint(
    request: MappedImportRequest,
    _admin: SessionVerdict = Depends(require_admin),
    store: RecordStore = Depends(get_record_store),
):
    """
    Import an interconnection export through a confirmed column mapping.

    Submitting a mapping to this endpoint confirms it. When no mapping is
    sent, the auto-proposed mapping for the document is confirmed instead.
    """
    try:
        check_document_size(request.csv_data)
        if request.mapping is not None:
            mapping = build_mapping(request.mapping, confirmed=True)
        else:
            mapping = propose_mapping(extract_preview(request.csv_data).headers).confirm()
        summary = import_mapped_document(request.csv_data, mapping, store)
    except ImportPipelineError as exc:
        logger.warning("Interconnection import rejected: %s", exc.message)
        raise _http_error(exc)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    return ImportResponse(
        success=True,
        message=_summary_message(summary.processed_count, summary.error_count),
        summary=summary,
        applied_mapping=mapping.assignments,
    )


@router.post("/permits", response_model=ImportResponse)
def import_permits_endpoint(
    request: LegacyImportRequest,
    _admin: SessionVerdict = Depends(require_admin),
    store: RecordStore = Depends(get_record_store),
):
    """Import the city permit export using its fixed column positions."""
    try:
        summary = import_legacy_document(request.csv_data, store)
    except ImportPipelineError as exc:
        logger.warning("Permit import rejected: %s", exc.message)
        raise _http_error(exc)

    return ImportResponse(
        success=True,
        message=_summary_message(summary.processed_count, summary.error_count),
        summary=summary,
    )


@router.post("/permits/sync", response_model=SyncResponse)
def sync_permits_endpoint(
    _admin: SessionVerdict = Depends(require_admin),
    store: RecordStore = Depends(get_record_store),
):
    """Pull the latest permits from the open data portal and upsert them."""
    try:
        summary = sync_permits(store)
    except ImportPipelineError as exc:
        logger.error("Open data sync failed: %s", exc.message)
        raise _http_error(exc)

    return SyncResponse(
        success=True,
        message=(
            f"Sync completed. Processed: {summary.processed_count}, "
            f"Errors: {summary.error_count}, Total: {summary.total}"
        ),
        summary=summary,
    )
