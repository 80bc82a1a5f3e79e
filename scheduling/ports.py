"""
Persistence collaborators of the scheduling core.

The core only talks to these interfaces. Production wires the Mongo
repositories from `repositories`; tests wire in-memory doubles.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncContextManager, Collection, Dict, List, Optional, Protocol, Sequence, Tuple

from models.animal import Animal
from models.appointment import Appointment, AppointmentStatus, AppointmentType, BlockedPeriod
from models.clinic import Clinic, ClinicService
from models.reminder import NotificationLog, ReminderInstance, ReminderRule, ReminderScope, ReminderStatus
from models.user import ClinicRole, User, UserClinicRole


class AppointmentStore(Protocol):
    async def get(self, appointment_id: str) -> Optional[Appointment]: ...

    async def get_type(self, type_id: str) -> Optional[AppointmentType]: ...

    async def insert(self, appointment: Appointment) -> Appointment:
        """Persist a new appointment; raises ConflictError when the vet/start is taken."""
        ...

    async def find_overlapping(
        self,
        vet_user_ids: Sequence[str],
        start: datetime,
        end: datetime,
        *,
        live_only: bool = True,
    ) -> List[Appointment]: ...

    async def transition(
        self,
        appointment_id: str,
        expected: Collection[AppointmentStatus],
        changes: Dict[str, Any],
    ) -> Optional[Appointment]:
        """Apply `changes` only if the status is still one of `expected`."""
        ...

    async def list_pending(
        self, clinic_id: Optional[str], limit: int, offset: int
    ) -> Tuple[List[Appointment], int]: ...

    async def list_for_animals(
        self, animal_ids: Sequence[str], status: Optional[AppointmentStatus] = None
    ) -> List[Appointment]: ...


class BlockedPeriodStore(Protocol):
    async def insert(self, block: BlockedPeriod) -> BlockedPeriod: ...

    async def find_overlapping(
        self, vet_user_ids: Sequence[str], start: datetime, end: datetime
    ) -> List[BlockedPeriod]: ...


class ClinicStore(Protocol):
    async def get(self, clinic_id: str) -> Optional[Clinic]: ...

    async def search(
        self, postcode_prefix: Optional[str], service_slugs: Sequence[str], limit: int = 50
    ) -> List[Clinic]: ...

    async def insert(self, clinic: Clinic) -> Clinic: ...

    async def update(self, clinic_id: str, changes: Dict[str, Any]) -> Optional[Clinic]: ...

    async def list_all(self) -> List[Clinic]: ...

    async def list_services(self) -> List[ClinicService]: ...


class UserStore(Protocol):
    async def get(self, user_id: str) -> Optional[User]: ...

    async def get_many(self, user_ids: Sequence[str]) -> List[User]: ...

    async def get_by_email(self, email: str) -> Optional[User]: ...

    async def insert(self, user: User) -> User: ...

    async def list_users(self, limit: int, offset: int) -> Tuple[List[User], int]: ...

    async def update(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]: ...

    async def delete(self, user_id: str) -> bool: ...

    async def roles_for_user(self, user_id: str) -> List[UserClinicRole]: ...

    async def members(
        self, clinic_id: str, role: Optional[ClinicRole] = None
    ) -> List[UserClinicRole]: ...

    async def assign_role(self, link: UserClinicRole) -> UserClinicRole: ...

    async def remove_roles(self, user_id: str) -> int: ...


class AnimalStore(Protocol):
    async def get(self, animal_id: str) -> Optional[Animal]: ...

    async def get_many(self, animal_ids: Sequence[str]) -> List[Animal]: ...

    async def insert(self, animal: Animal) -> Animal: ...

    async def list_for_owner(self, owner_id: str, clinic_id: Optional[str] = None) -> List[Animal]: ...


class ReminderStore(Protocol):
    async def active_rules(self, scope: ReminderScope) -> List[ReminderRule]: ...

    async def find_instance(
        self, rule_id: str, appointment_id: str, user_id: str
    ) -> Optional[ReminderInstance]: ...

    async def insert_instance(self, instance: ReminderInstance) -> ReminderInstance: ...

    async def due_instances(self, now: datetime, limit: int) -> List[ReminderInstance]: ...

    async def mark_status(
        self,
        instance_id: str,
        expected: ReminderStatus,
        status: ReminderStatus,
        changes: Optional[Dict[str, Any]] = None,
    ) -> bool: ...

    async def cancel_for_appointment(self, appointment_id: str) -> int: ...

    async def list_instances(self, status: Optional[ReminderStatus] = None) -> List[ReminderInstance]: ...

    async def log_notification(self, log: NotificationLog) -> None: ...

    async def list_logs(self, limit: int, offset: int) -> Tuple[List[NotificationLog], int]: ...


class VetLockStore(Protocol):
    def hold(self, vet_user_id: str) -> AsyncContextManager[None]:
        """Exclusive writer of the vet's occupied time for the duration of the block."""
        ...


@dataclass
class Repositories:
    appointments: AppointmentStore
    blocked_periods: BlockedPeriodStore
    clinics: ClinicStore
    users: UserStore
    animals: AnimalStore
    reminders: ReminderStore
    vet_locks: VetLockStore
