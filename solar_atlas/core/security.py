"""
Admin session handling for privileged import endpoints.

Sessions live in the ``admin_sessions`` table and are looked up on every
request; nothing about them is cached in process memory. Only a SHA-256
hash of each token is stored.
"""
import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol, Tuple

import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from solar_atlas.core.config import settings
from solar_atlas.db.models import AdminSession
from solar_atlas.db.session import get_db

logger = logging.getLogger(__name__)

# Tokens may arrive either as X-Admin-Token or as a bearer credential.
admin_token_header = APIKeyHeader(name="X-Admin-Token", auto_error=False)
bearer_scheme = HTTPBearer(auto_error=False)


def _utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class SessionVerdict:
    valid: bool
    expires_at: Optional[datetime] = None


class SessionStore(Protocol):
    def lookup(self, token: str) -> SessionVerdict:
        ...


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_token() -> str:
    return secrets.token_hex(32)


def get_password_hash(password: str) -> str:
    """Hash a password (used to produce ADMIN_PASSWORD_HASH)."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_admin_password(password: str, hashed_password: Optional[str] = None) -> bool:
    """Check ``password`` against the configured bcrypt hash."""
    hashed = settings.admin_password_hash if hashed_password is None else hashed_password
    if not hashed or not password:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.error("ADMIN_PASSWORD_HASH is not a valid bcrypt hash")
        return False


class SqlSessionStore:
    """Session store backed by the ``admin_sessions`` table."""

    def __init__(self, db: Session):
        self.db = db

    def lookup(self, token: str) -> SessionVerdict:
        if not token:
            return SessionVerdict(valid=False)
        session = (
            self.db.query(AdminSession)
            .filter(AdminSession.token_hash == hash_token(token), AdminSession.expires_at > _utcnow())
            .first()
        )
        if session is None:
            return SessionVerdict(valid=False)
        return SessionVerdict(valid=True, expires_at=_as_utc(session.expires_at))

    def create(self, hours: Optional[int] = None) -> Tuple[str, datetime]:
        """Issue a new session; the plain token is returned once and never stored."""
        token = generate_token()
        expires_at = _utcnow() + timedelta(hours=hours or settings.admin_session_hours)
        self.db.add(AdminSession(token_hash=hash_token(token), expires_at=expires_at))
        self.db.commit()
        return token, expires_at

    def revoke(self, token: str) -> bool:
        deleted = (
            self.db.query(AdminSession)
            .filter(AdminSession.token_hash == hash_token(token))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted > 0

    def purge_expired(self) -> int:
        deleted = (
            self.db.query(AdminSession)
            .filter(AdminSession.expires_at <= _utcnow())
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted:
            logger.info("Purged %d expired admin session(s)", deleted)
        return deleted


def get_session_store(db: Session = Depends(get_db)) -> SqlSessionStore:
    return SqlSessionStore(db)


def get_admin_token(
    header_token: Optional[str] = Depends(admin_token_header),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Token from X-Admin-Token, falling back to Authorization: Bearer."""
    if header_token:
        return header_token
    if credentials and credentials.credentials:
        return credentials.credentials
    return None


def require_admin(
    token: Optional[str] = Depends(get_admin_token),
    sessions: SessionStore = Depends(get_session_store),
) -> SessionVerdict:
    """
    Dependency guarding privileged endpoints.

    Raises:
        HTTPException: 401 when the token is missing, unknown or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin token required. Provide X-Admin-Token header.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    verdict = sessions.lookup(token)
    if not verdict.valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired admin token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return verdict
