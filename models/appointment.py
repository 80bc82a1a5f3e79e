from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, model_validator

from .base import MongoModel, PyObjectId


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


# Statuses that no longer occupy the vet's time
RELEASED_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.REJECTED})
TERMINAL_STATUSES = frozenset(
    {AppointmentStatus.REJECTED, AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED}
)


def is_live_status(status: AppointmentStatus) -> bool:
    return AppointmentStatus(status) not in RELEASED_STATUSES


class AppointmentType(MongoModel):
    label: str
    duration_minutes: int = 30


class Appointment(MongoModel):
    clinic_id: PyObjectId
    animal_id: PyObjectId
    vet_user_id: PyObjectId
    type_id: Optional[PyObjectId] = None
    starts_at: datetime
    ends_at: datetime
    status: AppointmentStatus = AppointmentStatus.PENDING
    is_live: bool = True
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None
    report: Optional[str] = None
    created_by_user_id: Optional[PyObjectId] = None

    @model_validator(mode="after")
    def _check_interval(self) -> "Appointment":
        if self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        self.is_live = is_live_status(self.status)
        return self


class BlockedPeriod(MongoModel):
    clinic_id: PyObjectId
    vet_user_id: PyObjectId
    starts_at: datetime
    ends_at: datetime
    reason: Optional[str] = None

    @model_validator(mode="after")
    def _check_interval(self) -> "BlockedPeriod":
        if self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self


class Slot(BaseModel):
    id: str
    starts_at: datetime
    ends_at: datetime
    duration_minutes: int
    vet_user_id: Optional[str] = None


class AgendaStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    BLOCKED = "BLOCKED"


class AgendaItemKind(str, Enum):
    APPOINTMENT = "APPOINTMENT"
    BLOCK = "BLOCK"


class AnimalSummary(BaseModel):
    id: str
    name: str
    birthdate: Optional[str] = None
    species: Optional[str] = None
    breed: Optional[str] = None
    weight_kg: Optional[float] = None


class PersonSummary(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str


class AgendaItem(BaseModel):
    id: str
    kind: AgendaItemKind
    starts_at: datetime
    ends_at: datetime
    status: AgendaStatus
    reason: Optional[str] = None
    animal: Optional[AnimalSummary] = None
    owner: Optional[PersonSummary] = None


class AppointmentDetails(BaseModel):
    """Appointment with the denormalized vet/animal/owner used by list screens."""

    appointment: Appointment
    vet: Optional[PersonSummary] = None
    animal: Optional[AnimalSummary] = None
    owner: Optional[PersonSummary] = None
