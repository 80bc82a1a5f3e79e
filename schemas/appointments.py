from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from models.appointment import AppointmentDetails


class AppointmentCreate(BaseModel):
    clinic_id: str
    animal_id: str
    vet_user_id: str
    # Parsed by the scheduler so a missing or malformed value is a domain error
    starts_at: Optional[str] = None
    type_id: Optional[str] = None


class RejectAppointmentRequest(BaseModel):
    reason: Optional[str] = None


class CompleteAppointmentRequest(BaseModel):
    notes: Optional[str] = None
    report: Optional[str] = None


class PendingAppointmentsPage(BaseModel):
    items: List[AppointmentDetails]
    total: int
    limit: int
    offset: int
