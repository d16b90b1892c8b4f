import logging
import secrets
import time
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.auth.models import User
from timekeeper.auth.security import hash_password
from timekeeper.core.enums import UserRole
from timekeeper.core.exceptions import ConflictError, NotFoundError, ServiceError, ValidationError

from .schemas import EmployeeCreate, EmployeeResponse, EmployeeUpdate

logger = logging.getLogger(__name__)


def generate_user_id() -> str:
    """EMP + last 6 digits of the epoch millis + 3 random digits, e.g. EMP482913057."""
    millis = str(int(time.time() * 1000))[-6:]
    return f"EMP{millis}{secrets.randbelow(1000):03d}"


def _to_response(user: User) -> EmployeeResponse:
    return EmployeeResponse(
        id=user.id,
        name=user.name,
        user_id=user.user_id,
        phone=user.phone,
        email=user.email,
        role=user.role,
        is_active=user.is_active,
        created_at=user.created_at,
    )


async def _phone_taken(db: AsyncSession, phone: str, exclude_user_id: Optional[UUID] = None) -> bool:
    stmt = select(User.id).where(User.phone == phone)
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def _user_id_taken(db: AsyncSession, user_id: str) -> bool:
    result = await db.execute(select(User.id).where(User.user_id == user_id).limit(1))
    return result.scalar_one_or_none() is not None


async def _get_employee(db: AsyncSession, employee_id: UUID) -> User:
    user = await db.get(User, employee_id)
    if not user or user.role != UserRole.EMPLOYEE.value:
        raise NotFoundError("Employee not found", code="EMPLOYEE_NOT_FOUND")
    return user


async def create_employee(db: AsyncSession, payload: EmployeeCreate) -> EmployeeResponse:
    phone = payload.phone.strip() if payload.phone and payload.phone.strip() else None
    user_code = payload.user_id.strip() if payload.user_id and payload.user_id.strip() else None

    if phone and await _phone_taken(db, phone):
        raise ConflictError("Phone number already registered", code="DUPLICATE_PHONE")
    if user_code and await _user_id_taken(db, user_code):
        raise ConflictError("User ID already exists", code="DUPLICATE_USER_ID")

    password_hash = await run_in_threadpool(hash_password, payload.password)
    # A generated user_id gets one retry on collision
    attempts = 1 if user_code else 2
    for attempt in range(attempts):
        candidate = user_code or generate_user_id()
        user = User(
            name=payload.name,
            user_id=candidate,
            email=str(payload.email) if payload.email else None,
            phone=phone,
            password_hash=password_hash,
            role=UserRole.EMPLOYEE.value,
            is_active=True,
        )
        db.add(user)
        try:
            await db.commit()
            break
        except IntegrityError as e:
            await db.rollback()
            if user_code:
                # Lost a race on the supplied user_id
                raise ConflictError("User ID already exists", code="DUPLICATE_USER_ID") from e
            if attempt + 1 == attempts:
                logger.error("Generated user_id %s collided again; giving up", candidate)
                raise ServiceError(
                    "Could not generate a unique user ID",
                    code="USER_ID_GENERATION_FAILED",
                ) from e
            logger.warning("Generated user_id %s already taken; retrying", candidate)
        except Exception as e:
            await db.rollback()
            raise ServiceError("Failed to create employee") from e
    await db.refresh(user)
    logger.info("Registered employee %s (%s)", user.id, user.user_id)
    return _to_response(user)


async def list_employees(db: AsyncSession) -> List[EmployeeResponse]:
    result = await db.execute(
        select(User)
        .where(User.role == UserRole.EMPLOYEE.value)
        .order_by(User.created_at.desc())
    )
    return [_to_response(u) for u in result.scalars().all()]


async def update_employee(
    db: AsyncSession,
    employee_id: UUID,
    payload: EmployeeUpdate,
) -> EmployeeResponse:
    user = await _get_employee(db, employee_id)
    provided = payload.model_fields_set

    if payload.phone and payload.phone.strip() and payload.phone.strip() != user.phone:
        if await _phone_taken(db, payload.phone.strip(), exclude_user_id=user.id):
            raise ConflictError("Phone number already in use", code="DUPLICATE_PHONE")
        user.phone = payload.phone.strip()
    if payload.name:
        user.name = payload.name.strip()
    # An explicit null clears the email
    if "email" in provided:
        user.email = str(payload.email) if payload.email else None
    if payload.is_active is not None:
        user.is_active = payload.is_active

    await db.commit()
    await db.refresh(user)
    return _to_response(user)


async def deactivate_employee(db: AsyncSession, employee_id: UUID) -> None:
    """Soft delete. Attendance history stays intact."""
    user = await _get_employee(db, employee_id)
    user.is_active = False
    await db.commit()
    logger.info("Deactivated employee %s", user.id)


async def resolve_active_employees(db: AsyncSession, employee_ids: Iterable[UUID]) -> Sequence[User]:
    """Load the given ids, failing unless every one is an active employee."""
    ids = list(dict.fromkeys(employee_ids))
    if not ids:
        raise ValidationError("At least one employee is required", code="INVALID_EMPLOYEES")
    result = await db.execute(
        select(User).where(
            User.id.in_(ids),
            User.role == UserRole.EMPLOYEE.value,
            User.is_active.is_(True),
        )
    )
    found = result.scalars().all()
    if len(found) != len(ids):
        raise ValidationError("One or more employee IDs are invalid or inactive", code="INVALID_EMPLOYEES")
    by_id = {u.id: u for u in found}
    return [by_id[i] for i in ids]
