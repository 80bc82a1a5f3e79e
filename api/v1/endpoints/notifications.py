from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query

from api.deps import get_repositories
from models.reminder import NotificationLog
from models.user import ClinicRole
from scheduling.ports import Repositories
from services.security import CurrentUser, get_current_user


router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/logs", response_model=List[NotificationLog])
async def list_notification_logs(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    current_user: CurrentUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
) -> List[NotificationLog]:
    current_user.require_any_role(ClinicRole.VET, ClinicRole.ADMIN_CLINIC)
    logs, _ = await repos.reminders.list_logs(limit, offset)
    return logs
