from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from api.deps import get_repositories, get_scheduling_config
from models.appointment import Slot
from scheduling.config import SchedulingConfig
from scheduling.ports import Repositories
from scheduling.slots import generate_slots


router = APIRouter(tags=["slots"])


@router.get("/slots", response_model=List[Slot])
async def get_slots(
    clinic_id: str = Query(...),
    date: str = Query(..., description="YYYY-MM-DD"),
    vet_user_id: Optional[str] = Query(default=None),
    repos: Repositories = Depends(get_repositories),
    config: SchedulingConfig = Depends(get_scheduling_config),
) -> List[Slot]:
    return await generate_slots(repos, config, clinic_id, date, vet_user_id=vet_user_id)
