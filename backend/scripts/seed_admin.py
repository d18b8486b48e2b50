"""Admin seed script for the asset marketplace API.

This script creates a default super admin user if one doesn't exist.
It is idempotent and safe to run on every container start.
"""

import asyncio
import logging
from sqlalchemy import select

from app.database import build_engine, build_sessionmaker
from app.logging_config import setup_logging
from app.models.user import User, UserRole
from app.auth.security import hash_password
from app.config import settings

logger = logging.getLogger(__name__)


async def seed_admin(session_factory) -> bool:
    """Create the default admin user. Returns False when it already exists."""
    async with session_factory() as session:
        result = await session.execute(
            select(User).where(User.email == settings.ADMIN_EMAIL.lower())
        )
        if result.scalar_one_or_none():
            logger.info("Admin user already exists, skipping")
            return False

        admin_user = User(
            name=settings.ADMIN_NAME,
            email=settings.ADMIN_EMAIL.lower(),
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            role=UserRole.SUPER_ADMIN,
            status="active",
        )
        session.add(admin_user)
        await session.commit()

        logger.info(f"Admin user created: {settings.ADMIN_EMAIL}")
        return True


async def _run():
    engine = build_engine(settings.DATABASE_URL)
    try:
        await seed_admin(build_sessionmaker(engine))
    finally:
        await engine.dispose()


def main():
    """Entry point for the seed script."""
    setup_logging(settings.LOG_LEVEL)
    asyncio.run(_run())


if __name__ == "__main__":
    main()
