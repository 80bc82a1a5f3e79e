from __future__ import annotations

import asyncio
import logging

from core.config import settings
from core.logging_config import configure_logging
from db.database import close_database, get_database
from repositories import build_repositories
from services.reminders import ReminderService


logger = logging.getLogger(__name__)


async def run_once() -> int:
    db = await get_database()
    service = ReminderService(build_repositories(db), batch_limit=settings.reminders_batch_limit)
    try:
        return await service.process_due_reminders()
    finally:
        await close_database()


def main() -> None:
    configure_logging()
    processed = asyncio.run(run_once())
    logger.info("cron.reminders.done", extra={"processed": processed})


if __name__ == "__main__":
    main()
