from __future__ import annotations

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, IndexModel

from .animals import ANIMALS
from .appointments import APPOINTMENTS, BLOCKED_PERIODS
from .clinics import CLINICS
from .reminders import NOTIFICATION_LOGS, REMINDER_INSTANCES
from .users import USER_CLINIC_ROLES, USERS


logger = logging.getLogger(__name__)

INDEXES = {
    APPOINTMENTS: [
        # At most one live appointment per vet and start. Overlaps with other
        # starts are ruled out by the vet lock held around every booking write.
        IndexModel(
            [("vet_user_id", ASCENDING), ("starts_at", ASCENDING)],
            name="uniq_live_vet_slot",
            unique=True,
            partialFilterExpression={"is_live": True},
        ),
        IndexModel([("clinic_id", ASCENDING), ("status", ASCENDING), ("starts_at", ASCENDING)]),
        IndexModel([("animal_id", ASCENDING), ("starts_at", ASCENDING)]),
    ],
    BLOCKED_PERIODS: [
        IndexModel([("vet_user_id", ASCENDING), ("starts_at", ASCENDING)]),
    ],
    CLINICS: [
        IndexModel([("postcode", ASCENDING)]),
        IndexModel([("services", ASCENDING)]),
        IndexModel([("city", ASCENDING), ("name", ASCENDING)]),
    ],
    USERS: [
        IndexModel([("email", ASCENDING)], unique=True),
    ],
    USER_CLINIC_ROLES: [
        IndexModel(
            [("user_id", ASCENDING), ("clinic_id", ASCENDING), ("role", ASCENDING)],
            unique=True,
        ),
        IndexModel([("clinic_id", ASCENDING), ("role", ASCENDING)]),
    ],
    ANIMALS: [
        IndexModel([("owner_id", ASCENDING), ("name", ASCENDING)]),
    ],
    REMINDER_INSTANCES: [
        IndexModel(
            [("rule_id", ASCENDING), ("appointment_id", ASCENDING), ("user_id", ASCENDING)],
            unique=True,
        ),
        IndexModel([("status", ASCENDING), ("send_at", ASCENDING)]),
    ],
    NOTIFICATION_LOGS: [
        IndexModel([("created_at", DESCENDING)]),
    ],
}


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    for collection, models in INDEXES.items():
        names = await db[collection].create_indexes(models)
        logger.info("db.indexes_ensured", extra={"collection": collection, "indexes": names})
