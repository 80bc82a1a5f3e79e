from __future__ import annotations

from fastapi import Depends

from core.config import settings
from db.database import get_database
from repositories import build_repositories
from scheduling.config import SchedulingConfig
from scheduling.ports import Repositories
from scheduling.scheduler import AppointmentScheduler
from services.reminders import ReminderService


async def get_repositories() -> Repositories:
    db = await get_database()
    return build_repositories(db)


def get_scheduling_config() -> SchedulingConfig:
    return SchedulingConfig.from_settings(settings)


def get_reminder_service(repos: Repositories = Depends(get_repositories)) -> ReminderService:
    return ReminderService(repos, batch_limit=settings.reminders_batch_limit)


def get_scheduler(
    repos: Repositories = Depends(get_repositories),
    config: SchedulingConfig = Depends(get_scheduling_config),
    reminders: ReminderService = Depends(get_reminder_service),
) -> AppointmentScheduler:
    return AppointmentScheduler(repos, config, reminders=reminders)
