import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.auth.models import User
from timekeeper.auth.schemas import LoginRequest, LoginResponse, UserInfo
from timekeeper.auth.security import create_access_token, verify_password
from timekeeper.core.exceptions import AuthError

logger = logging.getLogger(__name__)


async def _find_by_identifier(db: AsyncSession, identifier: str) -> Optional[User]:
    # user_id first, then email (case-insensitive)
    result = await db.execute(select(User).where(User.user_id == identifier))
    user = result.scalar_one_or_none()
    if user:
        return user
    result = await db.execute(
        select(User).where(func.lower(User.email) == identifier.lower()).order_by(User.created_at)
    )
    return result.scalars().first()


def to_user_info(user: User) -> UserInfo:
    return UserInfo(
        id=user.id,
        name=user.name,
        user_id=user.user_id,
        email=user.email,
        phone=user.phone,
        role=user.role,
    )


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    identifier = payload.identifier.strip()
    user = await _find_by_identifier(db, identifier)
    if not user:
        raise AuthError("Invalid credentials", code="INVALID_CREDENTIALS")

    if not await run_in_threadpool(verify_password, payload.password, user.password_hash):
        logger.warning("Failed login for identifier %s", identifier)
        raise AuthError("Invalid credentials", code="INVALID_CREDENTIALS")

    if not user.is_active:
        raise AuthError("Account is deactivated", code="ACCOUNT_DEACTIVATED")

    issued_at = datetime.now(timezone.utc)
    access_token = create_access_token(
        subject={
            "sub": str(user.id),
            "role": user.role,
            "iat": int(issued_at.timestamp()),
        }
    )
    logger.info("User %s logged in", user.id)

    return LoginResponse(
        access_token=access_token,
        user=to_user_info(user),
        issued_at=issued_at,
    )
