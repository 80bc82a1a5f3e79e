from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from api.deps import get_reminder_service, get_repositories
from models.appointment import AppointmentStatus
from models.reminder import ReminderInstance, ReminderStatus
from models.user import ClinicRole
from scheduling.errors import InvalidStateError, NotFoundError
from scheduling.ports import Repositories
from services.reminders import ReminderService
from services.security import CurrentUser, get_current_user


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.get("", response_model=List[ReminderInstance])
async def list_reminder_instances(
    status: Optional[ReminderStatus] = Query(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
) -> List[ReminderInstance]:
    current_user.require_any_role(ClinicRole.ADMIN_CLINIC, ClinicRole.VET)
    return await repos.reminders.list_instances(status)


@router.post("/run-due")
async def run_due_reminders(
    current_user: CurrentUser = Depends(get_current_user),
    reminders: ReminderService = Depends(get_reminder_service),
) -> Dict[str, int]:
    current_user.require_any_role(ClinicRole.ADMIN_CLINIC, ClinicRole.VET)
    processed = await reminders.process_due_reminders()
    logger.info("reminders.run_due.manual", extra={"by": current_user.id, "processed": processed})
    return {"processed": processed}


@router.post("/plan/appointment/{appointment_id}")
async def plan_appointment_reminders(
    appointment_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
    reminders: ReminderService = Depends(get_reminder_service),
) -> Dict[str, int]:
    appointment = await repos.appointments.get(appointment_id)
    if appointment is None:
        raise NotFoundError("Appointment not found")
    current_user.require_staff(appointment.clinic_id)
    if appointment.status != AppointmentStatus.CONFIRMED:
        raise InvalidStateError("Only confirmed appointments get reminders")
    planned = await reminders.plan_appointment_reminders(appointment)
    return {"planned": len(planned)}
