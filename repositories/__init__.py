from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorDatabase

from scheduling.ports import Repositories

from .animals import AnimalRepository
from .appointments import AppointmentRepository, BlockedPeriodRepository
from .clinics import ClinicRepository
from .locks import VetLockRepository
from .reminders import ReminderRepository
from .users import UserRepository


def build_repositories(db: AsyncIOMotorDatabase) -> Repositories:
    return Repositories(
        appointments=AppointmentRepository(db),
        blocked_periods=BlockedPeriodRepository(db),
        clinics=ClinicRepository(db),
        users=UserRepository(db),
        animals=AnimalRepository(db),
        reminders=ReminderRepository(db),
        vet_locks=VetLockRepository(db),
    )


__all__ = ["build_repositories"]
