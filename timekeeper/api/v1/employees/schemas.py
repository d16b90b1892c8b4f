from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class EmployeeCreate(BaseModel):
    """user_id is generated in the backend when omitted."""

    name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    user_id: Optional[str] = Field(None, max_length=50)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return _strip(v)


class EmployeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    is_active: Optional[bool] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return _strip(v)


class EmployeeResponse(BaseModel):
    """Employee account. Never includes the password hash."""

    id: UUID
    name: str
    user_id: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    role: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class EmployeeBrief(BaseModel):
    """Display fields used wherever a task or report references an employee."""

    id: UUID
    name: str
    user_id: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str
