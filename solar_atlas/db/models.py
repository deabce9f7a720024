"""
ORM tables backing the import pipeline.

Both installation tables carry a unique conflict-key column; the batch
importer upserts against it so re-running an import replaces rows instead
of duplicating them.
"""
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, Date, DateTime, Float, Integer, String, Text

from solar_atlas.db.session import Base


def _utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


class SolarInstallation(Base):
    """City solar permit, keyed on the portal's project id."""
    __tablename__ = "solar_installations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(String, unique=True, index=True, nullable=False)
    permit_class = Column(String, nullable=True)
    address = Column(Text, nullable=False)
    address_normalized = Column(Text, nullable=True, index=True)
    description = Column(Text, nullable=True)
    installed_kw = Column(Float, nullable=True)
    applied_date = Column(Date, nullable=True)
    issued_date = Column(Date, nullable=True)
    completed_date = Column(Date, nullable=True)
    calendar_year_issued = Column(Integer, nullable=True, index=True)
    status_current = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    original_zip = Column(String, nullable=True, index=True)
    council_district = Column(String, nullable=True)
    jurisdiction = Column(String, nullable=True)
    contractor_company = Column(String, nullable=True)
    contractor_city = Column(String, nullable=True)
    link = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class PirInstallation(Base):
    """Utility interconnection record imported through a confirmed column mapping."""
    __tablename__ = "pir_installations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    record_key = Column(String, unique=True, index=True, nullable=False)
    install_date = Column(Date, nullable=True, index=True)
    kw_capacity = Column(Float, nullable=True)
    installer = Column(String, nullable=True)
    battery_kwh = Column(Float, nullable=True)
    cost = Column(Float, nullable=True)
    ae_rebate = Column(Float, nullable=True)
    dollar_per_kw_rebate = Column(Float, nullable=True)
    percent_rebate = Column(Float, nullable=True)
    fiscal_year = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    raw_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class AdminSession(Base):
    """Privileged session; only the SHA-256 of the token is stored."""
    __tablename__ = "admin_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token_hash = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)


def create_store_tables(engine=None) -> None:
    """Create every table the service owns (no-op for tables that already exist)."""
    if engine is None:
        from solar_atlas.db.session import get_engine
        engine = get_engine()
    Base.metadata.create_all(bind=engine)
