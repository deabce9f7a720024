"""
Conflict-key upsert against the installation tables.

The importer only depends on the ``RecordStore`` protocol; ``SqlRecordStore``
is the production implementation backed by SQLAlchemy.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Protocol, Sequence

from sqlalchemy.engine import Engine

from solar_atlas.db import models  # noqa: F401  (registers the installation tables)
from solar_atlas.db.session import Base

logger = logging.getLogger(__name__)


class StoreWriteError(Exception):
    """Raised when a batch cannot be written to the store."""

    def __init__(self, table_name: str, message: str):
        self.table_name = table_name
        self.message = message
        super().__init__(f"Write to '{table_name}' failed: {message}")


class RecordStore(Protocol):
    def upsert(self, table_name: str, records: Sequence[Dict[str, Any]], conflict_key: str) -> int:
        """Insert or replace ``records`` keyed on ``conflict_key``; return rows written."""
        ...


def dedupe_on_conflict_key(records: Sequence[Dict[str, Any]], conflict_key: str) -> List[Dict[str, Any]]:
    """
    Collapse records sharing a conflict key, keeping the last occurrence.

    A single upsert statement may not touch the same row twice, and the last
    row in document order is the one a sequential replace would leave behind.
    """
    latest: Dict[Any, Dict[str, Any]] = {}
    for record in records:
        key = record.get(conflict_key)
        if key in latest:
            del latest[key]
        latest[key] = record
    return list(latest.values())


class SqlRecordStore:
    """Upserts through ``INSERT ... ON CONFLICT DO UPDATE`` (PostgreSQL or SQLite)."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def _insert_for_dialect(self, table):
        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise StoreWriteError(table.name, f"Dialect '{dialect}' does not support conflict-key upserts")
        return insert(table)

    def upsert(self, table_name: str, records: Sequence[Dict[str, Any]], conflict_key: str) -> int:
        if not records:
            return 0

        table = Base.metadata.tables.get(table_name)
        if table is None:
            raise StoreWriteError(table_name, "unknown table")
        if conflict_key not in table.c:
            raise StoreWriteError(table_name, f"unknown conflict key '{conflict_key}'")

        rows = dedupe_on_conflict_key(records, conflict_key)
        if len(rows) < len(records):
            logger.info(
                "Collapsed %d rows sharing a %s within one batch for '%s'",
                len(records) - len(rows),
                conflict_key,
                table_name,
            )

        columns = list(rows[0].keys())
        unknown = [col for col in columns if col not in table.c]
        if unknown:
            raise StoreWriteError(table_name, f"unknown columns {unknown}")

        stmt = self._insert_for_dialect(table)
        update_cols = {col: stmt.excluded[col] for col in columns if col != conflict_key}
        if "updated_at" in table.c:
            update_cols["updated_at"] = datetime.now(timezone.utc)
        stmt = stmt.on_conflict_do_update(index_elements=[conflict_key], set_=update_cols)

        # One transaction per batch: the batch commits or rolls back as a unit.
        with self.engine.begin() as conn:
            conn.execute(stmt, rows)

        return len(rows)
