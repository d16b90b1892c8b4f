import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Text, Uuid

from timekeeper.core.time_rules import utcnow
from timekeeper.db.session import Base


class User(Base):
    """Admin or employee account. Soft delete only (is_active)."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    # Login code for employees (auto-generated when not supplied); null for admins
    user_id = Column(String(50), nullable=True, unique=True)
    # Login identifier for admins; optional contact field for employees
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    password_hash = Column(Text, nullable=False)
    # admin | employee; never changed after creation
    role = Column(String(20), nullable=False, default="employee")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
