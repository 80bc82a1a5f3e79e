from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Collection, Dict, List, Optional, Sequence, Tuple

from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from models.appointment import Appointment, AppointmentStatus, AppointmentType, BlockedPeriod
from scheduling.errors import ConflictError

from .base import BaseRepository


logger = logging.getLogger(__name__)

APPOINTMENTS = "appointments"
APPOINTMENT_TYPES = "appointment_types"
BLOCKED_PERIODS = "blocked_periods"


class AppointmentRepository(BaseRepository):
    async def get(self, appointment_id: str) -> Optional[Appointment]:
        doc = await self.find_by_id(APPOINTMENTS, appointment_id)
        return Appointment.model_validate(doc) if doc else None

    async def get_type(self, type_id: str) -> Optional[AppointmentType]:
        doc = await self.find_by_id(APPOINTMENT_TYPES, type_id)
        return AppointmentType.model_validate(doc) if doc else None

    async def insert(self, appointment: Appointment) -> Appointment:
        doc = appointment.to_document()
        try:
            await self.insert_one(APPOINTMENTS, doc)
        except DuplicateKeyError as exc:
            # uniq_live_vet_slot: another live booking holds this vet/start
            logger.warning(
                "appointments.insert.duplicate",
                extra={"vet_user_id": appointment.vet_user_id, "starts_at": appointment.starts_at.isoformat()},
            )
            raise ConflictError("Slot is no longer available, please choose another") from exc
        return Appointment.model_validate(doc)

    async def find_overlapping(
        self,
        vet_user_ids: Sequence[str],
        start: datetime,
        end: datetime,
        *,
        live_only: bool = True,
    ) -> List[Appointment]:
        query: Dict[str, Any] = {
            "vet_user_id": {"$in": list(vet_user_ids)},
            "starts_at": {"$lt": end},
            "ends_at": {"$gt": start},
        }
        if live_only:
            query["is_live"] = True
        docs = await self.find_many(APPOINTMENTS, query, sort=[("starts_at", ASCENDING)])
        return [Appointment.model_validate(d) for d in docs]

    async def transition(
        self,
        appointment_id: str,
        expected: Collection[AppointmentStatus],
        changes: Dict[str, Any],
    ) -> Optional[Appointment]:
        oid = self._maybe_object_id(appointment_id)
        if oid is None:
            return None
        filter_query = {"_id": oid, "status": {"$in": [AppointmentStatus(s).value for s in expected]}}
        try:
            doc = await self.find_one_and_update(APPOINTMENTS, filter_query, {"$set": changes})
        except DuplicateKeyError as exc:
            raise ConflictError("Slot is no longer available, please choose another") from exc
        return Appointment.model_validate(doc) if doc else None

    async def list_pending(
        self, clinic_id: Optional[str], limit: int, offset: int
    ) -> Tuple[List[Appointment], int]:
        query: Dict[str, Any] = {"status": AppointmentStatus.PENDING.value}
        if clinic_id:
            query["clinic_id"] = clinic_id
        docs = await self.find_many(
            APPOINTMENTS, query, sort=[("starts_at", ASCENDING)], limit=limit, skip=offset
        )
        total = await self.count_many(APPOINTMENTS, query)
        return [Appointment.model_validate(d) for d in docs], total

    async def list_for_animals(
        self, animal_ids: Sequence[str], status: Optional[AppointmentStatus] = None
    ) -> List[Appointment]:
        query: Dict[str, Any] = {"animal_id": {"$in": list(animal_ids)}}
        if status is not None:
            query["status"] = AppointmentStatus(status).value
        docs = await self.find_many(APPOINTMENTS, query, sort=[("starts_at", DESCENDING)])
        return [Appointment.model_validate(d) for d in docs]


class BlockedPeriodRepository(BaseRepository):
    async def insert(self, block: BlockedPeriod) -> BlockedPeriod:
        doc = block.to_document()
        await self.insert_one(BLOCKED_PERIODS, doc)
        return BlockedPeriod.model_validate(doc)

    async def find_overlapping(
        self, vet_user_ids: Sequence[str], start: datetime, end: datetime
    ) -> List[BlockedPeriod]:
        query = {
            "vet_user_id": {"$in": list(vet_user_ids)},
            "starts_at": {"$lt": end},
            "ends_at": {"$gt": start},
        }
        docs = await self.find_many(BLOCKED_PERIODS, query, sort=[("starts_at", ASCENDING)])
        return [BlockedPeriod.model_validate(d) for d in docs]
