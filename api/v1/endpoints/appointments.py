from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from api.deps import get_repositories, get_scheduler
from models.appointment import Appointment, AppointmentDetails, AppointmentStatus
from models.user import STAFF_ROLES, ClinicRole
from schemas.appointments import (
    AppointmentCreate,
    CompleteAppointmentRequest,
    PendingAppointmentsPage,
    RejectAppointmentRequest,
)
from scheduling.errors import PermissionDeniedError, ValidationError
from scheduling.ports import Repositories
from scheduling.scheduler import AppointmentScheduler
from services.security import CurrentUser, get_current_user


router = APIRouter(prefix="/appointments", tags=["appointments"])
logger = logging.getLogger(__name__)


@router.post("", response_model=Appointment, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: AppointmentCreate,
    current_user: CurrentUser = Depends(get_current_user),
    scheduler: AppointmentScheduler = Depends(get_scheduler),
) -> Appointment:
    current_user.require_clinic_role(payload.clinic_id, ClinicRole.OWNER, ClinicRole.VET, ClinicRole.ASV)
    return await scheduler.create_appointment(
        clinic_id=payload.clinic_id,
        animal_id=payload.animal_id,
        vet_user_id=payload.vet_user_id,
        starts_at=payload.starts_at,
        type_id=payload.type_id,
        created_by_user_id=current_user.id,
    )


@router.get("/pending", response_model=PendingAppointmentsPage)
async def list_pending_appointments(
    clinic_id: Optional[str] = Query(default=None),
    limit: int = Query(default=20),
    offset: int = Query(default=0),
    current_user: CurrentUser = Depends(get_current_user),
    scheduler: AppointmentScheduler = Depends(get_scheduler),
) -> PendingAppointmentsPage:
    if clinic_id is None and not current_user.is_admin:
        staff_clinics = current_user.clinic_ids(*STAFF_ROLES)
        if not staff_clinics:
            raise PermissionDeniedError("Insufficient permissions")
        if len(staff_clinics) > 1:
            raise ValidationError("clinic_id is required for staff of several clinics")
        clinic_id = staff_clinics[0]
    elif clinic_id is not None:
        current_user.require_staff(clinic_id)

    items, total = await scheduler.list_pending(clinic_id, limit=limit, offset=offset)
    return PendingAppointmentsPage(items=items, total=total, limit=limit, offset=offset)


@router.get("/me", response_model=List[AppointmentDetails])
async def list_my_appointments(
    status_filter: Optional[AppointmentStatus] = Query(default=None, alias="status"),
    current_user: CurrentUser = Depends(get_current_user),
    scheduler: AppointmentScheduler = Depends(get_scheduler),
) -> List[AppointmentDetails]:
    return await scheduler.list_owner_appointments(current_user.id, status_filter)


@router.patch("/{appointment_id}/confirm", response_model=Appointment)
async def confirm_appointment(
    appointment_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    scheduler: AppointmentScheduler = Depends(get_scheduler),
) -> Appointment:
    appointment = await scheduler.get_appointment(appointment_id)
    current_user.require_staff(appointment.clinic_id)
    return await scheduler.confirm_appointment(appointment_id)


@router.patch("/{appointment_id}/reject", response_model=Appointment)
async def reject_appointment(
    appointment_id: str,
    payload: RejectAppointmentRequest,
    current_user: CurrentUser = Depends(get_current_user),
    scheduler: AppointmentScheduler = Depends(get_scheduler),
) -> Appointment:
    appointment = await scheduler.get_appointment(appointment_id)
    current_user.require_staff(appointment.clinic_id)
    return await scheduler.reject_appointment(appointment_id, payload.reason)


@router.patch("/{appointment_id}/cancel", response_model=Appointment)
async def cancel_appointment(
    appointment_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    scheduler: AppointmentScheduler = Depends(get_scheduler),
    repos: Repositories = Depends(get_repositories),
) -> Appointment:
    appointment = await scheduler.get_appointment(appointment_id)
    animal = await repos.animals.get(appointment.animal_id)
    is_owner = animal is not None and animal.owner_id == current_user.id
    if not is_owner:
        current_user.require_staff(appointment.clinic_id)
    return await scheduler.cancel_appointment(appointment_id)


@router.patch("/{appointment_id}/complete", response_model=Appointment)
async def complete_appointment(
    appointment_id: str,
    payload: CompleteAppointmentRequest,
    current_user: CurrentUser = Depends(get_current_user),
    scheduler: AppointmentScheduler = Depends(get_scheduler),
) -> Appointment:
    appointment = await scheduler.get_appointment(appointment_id)
    current_user.require_clinic_role(appointment.clinic_id, ClinicRole.VET)
    return await scheduler.complete_appointment(
        appointment_id,
        notes=payload.notes,
        report=payload.report,
        completed_by_user_id=current_user.id,
    )
