"""
Admin session endpoints: login, token validation and logout.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from solar_atlas.api.schemas.auth import AdminLogin, AdminLoginResponse, SessionStatusResponse
from solar_atlas.core.config import settings
from solar_atlas.core.security import (
    SqlSessionStore,
    get_admin_token,
    get_session_store,
    verify_admin_password,
)

router = APIRouter(prefix="/admin", tags=["admin"])

logger = logging.getLogger(__name__)


@router.post("/login", response_model=AdminLoginResponse)
def login(credentials: AdminLogin, sessions: SqlSessionStore = Depends(get_session_store)):
    """
    Exchange the admin password for a session token.

    Parameters:
    - password: Admin password (checked against ADMIN_PASSWORD_HASH)

    Returns:
    - token: Opaque session token, sent back as X-Admin-Token
    - expires_at: Session expiry (ADMIN_SESSION_HOURS from now)
    """
    if not settings.admin_password_hash:
        logger.error("Admin login attempted but ADMIN_PASSWORD_HASH is not configured")
        raise HTTPException(status_code=503, detail="Admin login is not configured")

    if not verify_admin_password(credentials.password):
        logger.warning("Rejected admin login attempt")
        raise HTTPException(status_code=401, detail="Invalid password")

    sessions.purge_expired()
    token, expires_at = sessions.create()
    logger.info("Admin session created; expires at %s", expires_at.isoformat())
    return AdminLoginResponse(success=True, token=token, expires_at=expires_at)


@router.post("/validate", response_model=SessionStatusResponse)
def validate_session(
    token: Optional[str] = Depends(get_admin_token),
    sessions: SqlSessionStore = Depends(get_session_store),
):
    """Report whether the presented token belongs to a live session."""
    if not token:
        return SessionStatusResponse(valid=False)
    verdict = sessions.lookup(token)
    return SessionStatusResponse(valid=verdict.valid, expires_at=verdict.expires_at)


@router.post("/logout")
def logout(
    token: Optional[str] = Depends(get_admin_token),
    sessions: SqlSessionStore = Depends(get_session_store),
):
    if not token:
        raise HTTPException(status_code=401, detail="Admin token required. Provide X-Admin-Token header.")
    revoked = sessions.revoke(token)
    return {"success": True, "revoked": revoked}
