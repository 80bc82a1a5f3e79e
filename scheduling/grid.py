"""
Calendar grid projection for the week and month views.

Pure functions: no I/O, no clock. Rows are slot-sized steps from the start
of the visible hour window, columns are day offsets from the first
displayed day.

Rows follow the local wall clock, not elapsed time. On a DST change day an
item crossing the transition spans the rows of the wall-clock interval it
covers, so across the skipped spring hour it also takes that hour's empty
rows.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo

from models.appointment import AgendaItem

from .errors import ValidationError


@dataclass(frozen=True)
class GridConfig:
    first_day: date
    days: int = 7
    window_start_minutes: int = 9 * 60
    window_end_minutes: int = 19 * 60
    slot_minutes: int = 30
    timezone: tzinfo = field(default_factory=lambda: ZoneInfo("Europe/Paris"))

    def __post_init__(self) -> None:
        if self.slot_minutes <= 0:
            raise ValidationError("slot_minutes must be positive")
        if not 0 <= self.window_start_minutes < self.window_end_minutes <= 24 * 60:
            raise ValidationError("Invalid visible hour window")
        if self.days < 1:
            raise ValidationError("days must be at least 1")

    @property
    def total_rows(self) -> int:
        return (self.window_end_minutes - self.window_start_minutes) // self.slot_minutes


@dataclass(frozen=True)
class DaySegment:
    """The part of an item falling on one local day."""

    item: AgendaItem
    day: date
    starts_at: datetime
    ends_at: datetime


@dataclass(frozen=True)
class Placement:
    segment: DaySegment
    column: int
    row: int
    row_span: int

    @property
    def end_row(self) -> int:
        return self.row + self.row_span


@dataclass
class MonthCell:
    day: date
    week_row: int
    column: int
    items: List[DaySegment] = field(default_factory=list)


def minutes_since_midnight(ts: datetime, tz: tzinfo) -> int:
    local = ts.astimezone(tz)
    return local.hour * 60 + local.minute


def row_index(ts: datetime, config: GridConfig) -> int:
    offset = minutes_since_midnight(ts, config.timezone) - config.window_start_minutes
    return max(0, offset // config.slot_minutes)


def row_span(starts_at: datetime, ends_at: datetime, config: GridConfig) -> int:
    minutes = (ends_at - starts_at).total_seconds() / 60
    span = max(1, math.ceil(minutes / config.slot_minutes))
    return min(span, max(1, config.total_rows - row_index(starts_at, config)))


def _midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def segment_by_day(item: AgendaItem, tz: tzinfo) -> List[DaySegment]:
    """Split `item` into one segment per local day it overlaps, each within [00:00, 24:00)."""
    start = item.starts_at.astimezone(tz)
    end = item.ends_at.astimezone(tz)
    segments: List[DaySegment] = []
    day = start.date()
    while True:
        day_start = _midnight(day, tz)
        day_end = _midnight(day + timedelta(days=1), tz)
        if day_start >= end:
            break
        seg_start, seg_end = max(start, day_start), min(end, day_end)
        if seg_start < seg_end:
            segments.append(DaySegment(item=item, day=day, starts_at=seg_start, ends_at=seg_end))
        day += timedelta(days=1)
    return segments


def place_segment(segment: DaySegment, config: GridConfig) -> Optional[Placement]:
    column = (segment.day - config.first_day).days
    if not 0 <= column < config.days:
        return None

    day_start = _midnight(segment.day, config.timezone)
    visible_start = max(segment.starts_at, day_start + timedelta(minutes=config.window_start_minutes))
    visible_end = min(segment.ends_at, day_start + timedelta(minutes=config.window_end_minutes))
    if visible_end <= visible_start:
        return None

    return Placement(
        segment=segment,
        column=column,
        row=row_index(visible_start, config),
        row_span=row_span(visible_start, visible_end, config),
    )


def project_week(items: Sequence[AgendaItem], config: GridConfig) -> List[Placement]:
    placements: List[Placement] = []
    for item in items:
        for segment in segment_by_day(item, config.timezone):
            placement = place_segment(segment, config)
            if placement is not None:
                placements.append(placement)
    return placements


def project_month(items: Sequence[AgendaItem], first_day: date, tz: tzinfo, days: int = 42) -> List[MonthCell]:
    cells = [
        MonthCell(day=first_day + timedelta(days=i), week_row=i // 7, column=i % 7)
        for i in range(days)
    ]
    by_day: Dict[date, MonthCell] = {cell.day: cell for cell in cells}
    for item in items:
        for segment in segment_by_day(item, tz):
            cell = by_day.get(segment.day)
            if cell is not None:
                cell.items.append(segment)
    return cells
