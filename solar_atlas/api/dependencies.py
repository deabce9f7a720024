"""
Shared dependencies used across routers.
"""
from solar_atlas.db.session import get_engine
from solar_atlas.db.store import RecordStore, SqlRecordStore


def get_record_store() -> RecordStore:
    """Store the batch importer writes to (overridden in tests)."""
    return SqlRecordStore(get_engine())
