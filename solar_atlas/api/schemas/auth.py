from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class AdminLogin(BaseModel):
    password: str


class AdminLoginResponse(BaseModel):
    success: bool
    token: str
    expires_at: datetime


class SessionStatusResponse(BaseModel):
    valid: bool
    expires_at: Optional[datetime] = None
