"""
Pull solar permits from the city open data portal and upsert them.

Portal records are JSON objects rather than CSV rows, but they land in the
same table with the same record rules (address default, normalized address,
project id conflict key) and go through the same batch writer as file
imports.
"""
import logging
import re
from typing import Any, Dict, List, Optional

import requests

from solar_atlas.core.config import settings
from solar_atlas.db.store import RecordStore
from solar_atlas.domain.imports.errors import ImportPipelineError
from solar_atlas.domain.imports.importer import BatchWriter, ImportRunSummary
from solar_atlas.domain.imports.layouts import LEGACY_PERMIT_LAYOUT, coerce_value, finalize_record

logger = logging.getLogger(__name__)

_KW_IN_TEXT = re.compile(r"(\d+(?:\.\d+)?)\s*_*\s*kw", re.IGNORECASE)

# Destination column -> portal attribute
PORTAL_FIELDS: Dict[str, str] = {
    "project_id": "project_id",
    "permit_class": "permit_class_mapped",
    "address": "original_address1",
    "description": "description",
    "applied_date": "applieddate",
    "issued_date": "issue_date",
    "calendar_year_issued": "calendar_year_issued",
    "status_current": "status_current",
    "completed_date": "statusdate",
    "original_zip": "original_zip",
    "council_district": "council_district",
    "jurisdiction": "jurisdiction",
    "latitude": "latitude",
    "longitude": "longitude",
    "contractor_company": "contractor_company_name",
    "contractor_city": "contractor_city",
    "link": "link",
}


class OpenDataSyncError(ImportPipelineError):
    """Raised when the portal cannot be reached or returns an unusable payload."""


class SyncSummary(ImportRunSummary):
    total: int = 0
    skipped: int = 0


def extract_kw_from_description(description: Optional[str]) -> Optional[float]:
    """
    Pull the system size out of free-text permit descriptions.

    >>> extract_kw_from_description("Install roof mounted PV _7.11__kW")
    7.11
    """
    if not description:
        return None
    match = _KW_IN_TEXT.search(description)
    return float(match.group(1)) if match else None


def transform_portal_record(record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Map one portal record onto the permit table; None when it has no project id."""
    if not coerce_value(record.get("project_id"), "text"):
        return None

    kinds = {source.column: source.kind for source in LEGACY_PERMIT_LAYOUT.columns}
    row: Dict[str, Any] = {}
    for column, kind in kinds.items():
        if column == "installed_kw":
            row[column] = extract_kw_from_description(record.get("description"))
            continue
        raw = record.get(PORTAL_FIELDS.get(column, column))
        if column == "link" and isinstance(raw, dict):
            raw = raw.get("url")
        row[column] = coerce_value(raw, kind, column=column)

    return finalize_record(LEGACY_PERMIT_LAYOUT, row, record)


def fetch_portal_records(
    url: Optional[str] = None,
    timeout: Optional[int] = None,
    http: Any = requests,
) -> List[Dict[str, Any]]:
    """Download the permit feed; raises OpenDataSyncError on transport or payload problems."""
    target = url or settings.open_data_url
    try:
        response = http.get(target, timeout=timeout or settings.open_data_timeout_seconds)
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as exc:
        raise OpenDataSyncError(f"Open data portal request failed: {exc}") from exc
    except ValueError as exc:
        raise OpenDataSyncError(f"Open data portal returned invalid JSON: {exc}") from exc

    if not isinstance(payload, list):
        raise OpenDataSyncError("Open data portal returned an unexpected payload (expected a list of records).")

    logger.info("Fetched %d records from the open data portal", len(payload))
    return payload


def sync_permits(
    store: RecordStore,
    records: Optional[List[Dict[str, Any]]] = None,
    *,
    batch_size: Optional[int] = None,
) -> SyncSummary:
    """
    Upsert portal records into ``solar_installations``.

    Args:
        store: Target record store
        records: Pre-fetched portal records; fetched from the portal when None
        batch_size: Override for ``settings.sync_batch_size``

    Returns:
        SyncSummary with processed/error counts, total records seen and
        records skipped for lacking a project id
    """
    if records is None:
        records = fetch_portal_records()

    summary = SyncSummary(total=len(records))
    writer = BatchWriter(
        store,
        LEGACY_PERMIT_LAYOUT.table_name,
        LEGACY_PERMIT_LAYOUT.conflict_key,
        summary,
        batch_size or settings.sync_batch_size,
    )

    for record in records:
        if not isinstance(record, dict):
            summary.error_count += 1
            continue
        row = transform_portal_record(record)
        if row is None:
            summary.skipped += 1
            continue
        writer.add(row)

    writer.flush()

    logger.info(
        "Open data sync finished: total=%d processed=%d skipped=%d errors=%d",
        summary.total,
        summary.processed_count,
        summary.skipped,
        summary.error_count,
    )
    return summary
