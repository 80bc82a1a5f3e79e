from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel

from models.appointment import AgendaItem


class BlockPeriodCreate(BaseModel):
    clinic_id: str
    # Defaults to the requesting vet
    vet_user_id: Optional[str] = None
    starts_at: Optional[str] = None
    ends_at: Optional[str] = None
    reason: Optional[str] = None


class GridPlacement(BaseModel):
    item: AgendaItem
    day: date
    starts_at: datetime
    ends_at: datetime
    column: int
    row: int
    row_span: int


class WeekGrid(BaseModel):
    first_day: date
    days: int
    slot_minutes: int
    window_start_minutes: int
    window_end_minutes: int
    total_rows: int
    placements: List[GridPlacement]


class MonthGridCell(BaseModel):
    day: date
    week_row: int
    column: int
    in_month: bool
    items: List[AgendaItem]


class MonthGrid(BaseModel):
    first_day: date
    cells: List[MonthGridCell]
