from __future__ import annotations

import asyncio
import logging
import os

from core.logging_config import configure_logging
from db.database import close_database, get_database
from models.user import GlobalRole, User
from repositories import build_repositories
from scheduling.ports import Repositories
from services.security import get_password_hash


logger = logging.getLogger(__name__)


async def upsert_admin(
    repos: Repositories, *, email: str, password: str, first_name: str = "Admin", last_name: str = "VitaVet"
) -> User:
    existing = await repos.users.get_by_email(email)
    if existing is not None:
        logger.info("seed.admin.exists", extra={"user_id": existing.id})
        return existing
    user = await repos.users.insert(
        User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            hashed_password=get_password_hash(password),
            global_role=GlobalRole.ADMIN,
        )
    )
    logger.info("seed.admin.created", extra={"user_id": user.id})
    return user


async def _run(email: str, password: str) -> User:
    db = await get_database()
    try:
        return await upsert_admin(build_repositories(db), email=email, password=password)
    finally:
        await close_database()


if __name__ == "__main__":
    configure_logging()
    # Demo defaults; override through the environment before running against a real database.
    admin_email = os.getenv("SEED_ADMIN_EMAIL", "admin@vitavet.fr")
    admin_password = os.getenv("SEED_ADMIN_PASSWORD", "change-me-now")
    asyncio.run(_run(admin_email, admin_password))
