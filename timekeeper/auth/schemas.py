from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    # Employee user_id or admin email
    identifier: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserInfo(BaseModel):
    id: UUID
    name: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo
    issued_at: datetime


class CurrentUser(BaseModel):
    """Authenticated caller, resolved per request and passed into services."""

    id: UUID
    name: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
