from __future__ import annotations

import logging
from typing import List, Literal

from fastapi import APIRouter, Depends, Query, status

from api.deps import get_repositories, get_scheduling_config
from models.appointment import AgendaItem, BlockedPeriod
from models.user import ClinicRole
from schemas.agenda import BlockPeriodCreate, GridPlacement, MonthGrid, MonthGridCell, WeekGrid
from scheduling.agenda import block_period, get_agenda, window_first_day
from scheduling.config import SchedulingConfig
from scheduling.grid import GridConfig, project_month, project_week
from scheduling.ports import Repositories
from scheduling.timeutils import coerce_date
from services.security import CurrentUser, get_current_user


router = APIRouter(prefix="/agenda", tags=["agenda"])
logger = logging.getLogger(__name__)


@router.get("/me", response_model=List[AgendaItem])
async def my_agenda(
    date: str = Query(..., description="YYYY-MM-DD"),
    range_: Literal["day", "week", "month"] = Query(default="day", alias="range"),
    current_user: CurrentUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
    config: SchedulingConfig = Depends(get_scheduling_config),
) -> List[AgendaItem]:
    current_user.require_any_role(ClinicRole.VET)
    return await get_agenda(repos, config, current_user.id, range_, date)


@router.get("/me/grid", response_model=WeekGrid | MonthGrid)
async def my_agenda_grid(
    date: str = Query(..., description="YYYY-MM-DD"),
    range_: Literal["week", "month"] = Query(default="week", alias="range"),
    start_hour: int = Query(default=9, ge=0, le=23),
    end_hour: int = Query(default=19, ge=1, le=24),
    current_user: CurrentUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
    config: SchedulingConfig = Depends(get_scheduling_config),
):
    current_user.require_any_role(ClinicRole.VET)
    anchor = coerce_date(date)
    items = await get_agenda(repos, config, current_user.id, range_, anchor)
    first_day, days = window_first_day(range_, anchor)

    if range_ == "month":
        cells = project_month(items, first_day, config.timezone, days)
        return MonthGrid(
            first_day=first_day,
            cells=[
                MonthGridCell(
                    day=cell.day,
                    week_row=cell.week_row,
                    column=cell.column,
                    in_month=cell.day.month == anchor.month,
                    items=[segment.item for segment in cell.items],
                )
                for cell in cells
            ],
        )

    grid = GridConfig(
        first_day=first_day,
        days=days,
        window_start_minutes=start_hour * 60,
        window_end_minutes=end_hour * 60,
        slot_minutes=config.slot_duration_minutes,
        timezone=config.timezone,
    )
    placements = project_week(items, grid)
    return WeekGrid(
        first_day=first_day,
        days=days,
        slot_minutes=grid.slot_minutes,
        window_start_minutes=grid.window_start_minutes,
        window_end_minutes=grid.window_end_minutes,
        total_rows=grid.total_rows,
        placements=[
            GridPlacement(
                item=p.segment.item,
                day=p.segment.day,
                starts_at=p.segment.starts_at,
                ends_at=p.segment.ends_at,
                column=p.column,
                row=p.row,
                row_span=p.row_span,
            )
            for p in placements
        ],
    )


@router.post("/block", response_model=BlockedPeriod, status_code=status.HTTP_201_CREATED)
async def create_block(
    payload: BlockPeriodCreate,
    current_user: CurrentUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
    config: SchedulingConfig = Depends(get_scheduling_config),
) -> BlockedPeriod:
    vet_user_id = payload.vet_user_id or current_user.id
    if vet_user_id == current_user.id:
        current_user.require_clinic_role(payload.clinic_id, ClinicRole.VET)
    else:
        # Blocking someone else's time is a clinic administration task
        current_user.require_clinic_role(payload.clinic_id, ClinicRole.ADMIN_CLINIC)
    return await block_period(
        repos,
        config,
        clinic_id=payload.clinic_id,
        vet_user_id=vet_user_id,
        starts_at=payload.starts_at,
        ends_at=payload.ends_at,
        reason=payload.reason,
    )
