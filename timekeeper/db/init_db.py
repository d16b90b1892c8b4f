"""
Create tables and the bootstrap admin account.

Run once against a fresh database (also runs on startup when BOOTSTRAP_ON_STARTUP=true):
  ADMIN_EMAIL=admin@example.com
  ADMIN_PASSWORD=YourSecurePassword
  python -m timekeeper.db.init_db

Creates the admin only if no user with that email exists; never touches existing accounts.
"""
import asyncio
import logging

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

import timekeeper.core.models  # noqa: F401  (register tables on Base.metadata)
from timekeeper.auth.models import User
from timekeeper.auth.security import hash_password
from timekeeper.core.config import settings
from timekeeper.core.enums import UserRole
from timekeeper.db.session import AsyncSessionLocal, Base, engine

logger = logging.getLogger(__name__)


async def create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_admin(db: AsyncSession) -> None:
    email = settings.admin_email
    password = settings.admin_password
    if not email or not password:
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set; skipping admin bootstrap")
        return

    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    if result.scalars().first():
        logger.info("Admin account already exists")
        return

    db.add(
        User(
            name=settings.admin_name,
            email=email,
            password_hash=await run_in_threadpool(hash_password, password),
            role=UserRole.ADMIN.value,
            is_active=True,
        )
    )
    await db.commit()
    logger.info("Admin account created for %s", email)


async def init_db() -> None:
    await create_tables()
    async with AsyncSessionLocal() as session:
        await seed_admin(session)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_db())
