"""
Appointment Scheduler

Creates bookings without double booking and drives the appointment status
state machine:

    PENDING   -> CONFIRMED   (staff, re-checks conflicts)
    PENDING   -> REJECTED*   (staff, reason required)
    PENDING   -> CANCELLED*  (owner or staff)
    CONFIRMED -> CANCELLED*
    CONFIRMED -> COMPLETED*  (attending vet, optional notes/report)

States marked * are terminal.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

from models.appointment import (
    Appointment,
    AppointmentDetails,
    AppointmentStatus,
    TERMINAL_STATUSES,
    is_live_status,
)
from models.user import ClinicRole

from .config import SchedulingConfig
from .errors import ConflictError, InvalidStateError, NotFoundError, PermissionDeniedError, ValidationError
from .opening_hours import windows_for_day
from .overlap import find_conflicts
from .ports import Repositories
from .slots import clinic_vet_ids, get_clinic, is_slot_position, load_occupied
from .summaries import describe_appointments
from .timeutils import add_elapsed, coerce_datetime


logger = logging.getLogger(__name__)

PENDING = AppointmentStatus.PENDING
CONFIRMED = AppointmentStatus.CONFIRMED

# action -> (allowed source statuses, target status)
TRANSITIONS: Dict[str, Tuple[FrozenSet[AppointmentStatus], AppointmentStatus]] = {
    "confirm": (frozenset({PENDING}), AppointmentStatus.CONFIRMED),
    "reject": (frozenset({PENDING}), AppointmentStatus.REJECTED),
    "cancel": (frozenset({PENDING, CONFIRMED}), AppointmentStatus.CANCELLED),
    "complete": (frozenset({CONFIRMED}), AppointmentStatus.COMPLETED),
}


class AppointmentScheduler:
    def __init__(
        self,
        repos: Repositories,
        config: SchedulingConfig,
        reminders: Optional[Any] = None,
    ) -> None:
        self.repos = repos
        self.config = config
        # services.reminders.ReminderService, optional so the core runs without it
        self.reminders = reminders

    # ===== BOOKING =====

    async def create_appointment(
        self,
        clinic_id: str,
        animal_id: str,
        vet_user_id: str,
        starts_at: Union[datetime, str, None],
        type_id: Optional[str] = None,
        created_by_user_id: Optional[str] = None,
    ) -> Appointment:
        """
        Book `vet_user_id` for one slot starting at `starts_at`.

        The availability check is repeated here even when the caller got the
        slot from generate_slots. It runs under the per-vet lock together with
        the insert; the unique live-slot index behind `appointments.insert`
        stays as a second guard.
        """
        tz = self.config.timezone
        start = coerce_datetime(starts_at, tz)

        clinic = await get_clinic(self.repos, clinic_id)
        animal = await self.repos.animals.get(animal_id)
        if animal is None:
            raise NotFoundError("Animal not found")
        if animal.clinic_id != clinic_id:
            raise PermissionDeniedError("Animal not in clinic")
        if created_by_user_id:
            await self._check_owner_booking(created_by_user_id, clinic_id, animal.owner_id)

        await clinic_vet_ids(self.repos, clinic_id, vet_user_id)
        if type_id and await self.repos.appointments.get_type(type_id) is None:
            raise NotFoundError("Appointment type not found")

        duration = self.config.slot_duration
        local_start = start.astimezone(tz)
        windows = windows_for_day(clinic.opening_hours, local_start.date(), tz)
        if not is_slot_position(windows, local_start, duration):
            raise ValidationError("Selected slot is not available")

        end = add_elapsed(start, duration)
        appointment = Appointment(
            clinic_id=clinic_id,
            animal_id=animal_id,
            vet_user_id=vet_user_id,
            type_id=type_id,
            starts_at=start,
            ends_at=end,
            status=AppointmentStatus.PENDING,
            created_by_user_id=created_by_user_id,
        )
        # Re-check and write under the vet lock: no other booking or block for
        # this vet, in any clinic, lands between the two
        async with self.repos.vet_locks.hold(vet_user_id):
            await self._ensure_free(vet_user_id, start, end)
            saved = await self.repos.appointments.insert(appointment)
        logger.info(
            "appointments.create.success",
            extra={"appointment_id": saved.id, "vet_user_id": vet_user_id, "starts_at": start.isoformat()},
        )
        return saved

    async def _check_owner_booking(self, user_id: str, clinic_id: str, owner_id: str) -> None:
        links = await self.repos.users.roles_for_user(user_id)
        is_owner = any(l.clinic_id == clinic_id and l.role == ClinicRole.OWNER for l in links)
        if is_owner and owner_id != user_id:
            raise PermissionDeniedError("You can only book for your own animals")

    async def _ensure_free(
        self, vet_user_id: str, start: datetime, end: datetime, exclude_id: Optional[str] = None
    ) -> None:
        occupied = await load_occupied(self.repos, [vet_user_id], start, end)
        conflicts = find_conflicts(start, end, occupied.get(vet_user_id, ()), exclude_id=exclude_id)
        if conflicts:
            logger.warning(
                "appointments.slot_conflict",
                extra={
                    "vet_user_id": vet_user_id,
                    "starts_at": start.isoformat(),
                    "conflicting_ids": [c.id for c in conflicts],
                },
            )
            raise ConflictError("Slot is no longer available, please choose another")

    # ===== STATUS TRANSITIONS =====

    async def confirm_appointment(self, appointment_id: str) -> Appointment:
        current = await self.get_appointment(appointment_id)
        self._check_allowed(current, "confirm")
        async with self.repos.vet_locks.hold(current.vet_user_id):
            await self._ensure_free(current.vet_user_id, current.starts_at, current.ends_at, exclude_id=current.id)
            confirmed = await self._apply(current, "confirm")
        if self.reminders is not None:
            await self.reminders.plan_appointment_reminders(confirmed)
        return confirmed

    async def reject_appointment(self, appointment_id: str, reason: Optional[str]) -> Appointment:
        reason = (reason or "").strip()
        min_len = self.config.rejection_reason_min_length
        max_len = self.config.rejection_reason_max_length
        if len(reason) < min_len:
            raise ValidationError(f"Rejection reason must be at least {min_len} characters long")
        if len(reason) > max_len:
            raise ValidationError(f"Rejection reason must not exceed {max_len} characters")

        current = await self.get_appointment(appointment_id)
        self._check_allowed(current, "reject")
        return await self._apply(current, "reject", {"rejection_reason": reason})

    async def cancel_appointment(self, appointment_id: str) -> Appointment:
        current = await self.get_appointment(appointment_id)
        self._check_allowed(current, "cancel")
        cancelled = await self._apply(current, "cancel")
        if self.reminders is not None:
            await self.reminders.cancel_appointment_reminders(cancelled)
        return cancelled

    async def complete_appointment(
        self,
        appointment_id: str,
        notes: Optional[str] = None,
        report: Optional[str] = None,
        completed_by_user_id: Optional[str] = None,
    ) -> Appointment:
        max_len = self.config.report_max_length
        for name, value in (("notes", notes), ("report", report)):
            if value is not None and len(value) > max_len:
                raise ValidationError(f"{name} must not exceed {max_len} characters")

        current = await self.get_appointment(appointment_id)
        self._check_allowed(current, "complete")
        if completed_by_user_id and completed_by_user_id != current.vet_user_id:
            raise PermissionDeniedError("Only the attending vet can complete this appointment")
        return await self._apply(current, "complete", {"notes": notes, "report": report})

    def _check_allowed(self, appointment: Appointment, action: str) -> None:
        allowed, _ = TRANSITIONS[action]
        if appointment.status in allowed:
            return
        if appointment.status in TERMINAL_STATUSES:
            raise InvalidStateError(
                f"Appointment is {appointment.status.value} and can no longer change"
            )
        raise InvalidStateError(f"Cannot {action} an appointment that is {appointment.status.value}")

    async def _apply(
        self, current: Appointment, action: str, changes: Optional[Dict[str, Any]] = None
    ) -> Appointment:
        allowed, target = TRANSITIONS[action]
        update: Dict[str, Any] = {"status": target, "is_live": is_live_status(target)}
        update.update(changes or {})
        updated = await self.repos.appointments.transition(current.id, allowed, update)
        if updated is None:
            # Another request moved it first
            latest = await self.get_appointment(current.id)
            raise InvalidStateError(f"Cannot {action} an appointment that is {latest.status.value}")
        logger.info(
            f"appointments.{action}.success",
            extra={"appointment_id": updated.id, "from": current.status.value, "to": target.value},
        )
        return updated

    # ===== QUERIES =====

    async def get_appointment(self, appointment_id: str) -> Appointment:
        appointment = await self.repos.appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")
        return appointment

    async def list_pending(
        self, clinic_id: Optional[str] = None, limit: int = 20, offset: int = 0
    ) -> Tuple[List[AppointmentDetails], int]:
        if limit < 1 or limit > 100:
            raise ValidationError("Limit must be between 1 and 100")
        if offset < 0:
            raise ValidationError("Offset must be non-negative")
        appointments, total = await self.repos.appointments.list_pending(clinic_id, limit, offset)
        return await describe_appointments(self.repos, appointments), total

    async def list_owner_appointments(
        self, owner_id: str, status: Optional[AppointmentStatus] = None
    ) -> List[AppointmentDetails]:
        animals = await self.repos.animals.list_for_owner(owner_id)
        if not animals:
            return []
        appointments = await self.repos.appointments.list_for_animals([a.id for a in animals], status)
        # Internal notes stay with the clinic staff
        appointments = [a.model_copy(update={"notes": None}) for a in appointments]
        return await describe_appointments(self.repos, appointments)
