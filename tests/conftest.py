"""
Pytest configuration and fixtures for Solar Atlas tests.

Tests run against an in-memory SQLite database so the conflict-key upsert,
session expiry and API wiring are exercised without a PostgreSQL server.
SKIP_DB_INIT keeps the application lifespan from touching DATABASE_URL.
"""

import os

# Avoid database bootstrap during app startup
os.environ["SKIP_DB_INIT"] = "1"

from typing import Any, Dict, List, Sequence  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from solar_atlas.core.security import SqlSessionStore  # noqa: E402
from solar_atlas.db.models import create_store_tables  # noqa: E402
from solar_atlas.db.store import SqlRecordStore  # noqa: E402


PIR_DOCUMENT = (
    "Install Date,kW Capacity,Installer,Notes\n"
    "01/15/2024,7.5,SunCo,\n"
    "02/20/2024,10.2,BrightPath,Check meter\n"
)

BANNER_PIR_DOCUMENT = (
    "Austin Energy Interconnection Report\n"
    "Generated 2024-03-01\n"
    "\n"
    "Install Date,kW Capacity,Installer,Battery kWh,Cost\n"
    "2024-01-15,7.5,SunCo,13.5,\"$21,450.00\"\n"
    "2024-01-16,5.0,Helios,,18000\n"
    "2024-01-17,9.1,SunCo,,\n"
)


def permit_row(project_id: str = "2024-000101 PR", address: str = "1200 North Lamar Blvd", kw: str = "7.11") -> str:
    """Build one 27-field line of the city permit export."""
    fields = [""] * 27
    fields[0] = "Residential"
    fields[1] = address
    fields[2] = f"Install roof mounted PV {kw} kW"
    fields[3] = kw
    fields[4] = "01/02/2024"
    fields[5] = "01/09/2024"
    fields[6] = "2024"
    fields[7] = "Active"
    fields[8] = "02/01/2024"
    fields[13] = "78701"
    fields[14] = "9"
    fields[15] = "AUSTIN FULL PURPOSE"
    fields[16] = "https://abc.austintexas.gov/permit"
    fields[17] = project_id
    fields[19] = "30.2672"
    fields[20] = "-97.7431"
    fields[23] = "SunCo Solar"
    fields[26] = "Austin"
    return ",".join(f'"{value}"' if "," in value else value for value in fields)


PERMIT_HEADER = ",".join(f"col_{index}" for index in range(27))


def permit_document(*rows: str) -> str:
    return "\n".join((PERMIT_HEADER,) + rows) + "\n"


class RecordingStore:
    """In-memory RecordStore that records every upsert call."""

    def __init__(self, fail_on_batches: Sequence[int] = ()):
        self.calls: List[Dict[str, Any]] = []
        self.fail_on_batches = set(fail_on_batches)
        self.tables: Dict[str, Dict[Any, Dict[str, Any]]] = {}

    def upsert(self, table_name: str, records, conflict_key: str) -> int:
        self.calls.append({"table": table_name, "records": list(records), "conflict_key": conflict_key})
        if len(self.calls) in self.fail_on_batches:
            raise RuntimeError(f"simulated failure on batch {len(self.calls)}")
        table = self.tables.setdefault(table_name, {})
        for record in records:
            table[record[conflict_key]] = record
        return len(records)


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_store_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(engine):
    return SqlRecordStore(engine)


@pytest.fixture
def recording_store():
    return RecordingStore()


@pytest.fixture
def db_session(engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def session_store(db_session):
    return SqlSessionStore(db_session)
