"""
Agenda Aggregation

Merges a vet's appointments (every status) and blocked periods into one
ordered list of AgendaItems for a day, ISO week or month window.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, tzinfo
from typing import List, Optional, Tuple, Union

from models.appointment import (
    AgendaItem,
    AgendaItemKind,
    AgendaStatus,
    Appointment,
    BlockedPeriod,
)

from .config import SchedulingConfig
from .errors import ValidationError
from .ports import Repositories
from .slots import clinic_vet_ids, get_clinic
from .summaries import animal_summary, load_related, person_summary
from .timeutils import coerce_date, coerce_datetime


logger = logging.getLogger(__name__)

AGENDA_RANGES = ("day", "week", "month")
MONTH_GRID_DAYS = 42


def window_first_day(range_: str, anchor: date) -> Tuple[date, int]:
    """First displayed day and number of days for `range_` around `anchor`."""
    if range_ == "day":
        return anchor, 1
    if range_ == "week":
        # isoweekday: Monday=1 .. Sunday=7
        return anchor - timedelta(days=anchor.isoweekday() - 1), 7
    if range_ == "month":
        first = anchor.replace(day=1)
        return first - timedelta(days=first.isoweekday() - 1), MONTH_GRID_DAYS
    raise ValidationError(f"Invalid range '{range_}'. Use one of: day, week, month")


def agenda_window(
    range_: str, anchor: Union[date, str], tz: tzinfo
) -> Tuple[datetime, datetime]:
    """Half-open [start, end) of the agenda window in the clinic time zone."""
    first_day, days = window_first_day(range_, coerce_date(anchor))
    start = datetime.combine(first_day, time.min, tzinfo=tz)
    end = datetime.combine(first_day + timedelta(days=days), time.min, tzinfo=tz)
    return start, end


async def get_agenda(
    repos: Repositories,
    config: SchedulingConfig,
    vet_user_id: str,
    range_: str,
    anchor: Union[date, str],
) -> List[AgendaItem]:
    start, end = agenda_window(range_, anchor, config.timezone)

    appointments = await repos.appointments.find_overlapping([vet_user_id], start, end, live_only=False)
    blocks = await repos.blocked_periods.find_overlapping([vet_user_id], start, end)
    appointments = sorted(appointments, key=lambda a: a.starts_at)
    blocks = sorted(blocks, key=lambda b: b.starts_at)

    animals, users = await load_related(repos, appointments)
    items: List[AgendaItem] = []
    for appt in appointments:
        animal = animals.get(appt.animal_id)
        items.append(
            AgendaItem(
                id=appt.id,
                kind=AgendaItemKind.APPOINTMENT,
                starts_at=appt.starts_at,
                ends_at=appt.ends_at,
                status=AgendaStatus(appt.status.value),
                reason=appt.rejection_reason,
                animal=animal_summary(animal),
                owner=person_summary(users.get(animal.owner_id)) if animal else None,
            )
        )
    for block in blocks:
        items.append(
            AgendaItem(
                id=block.id,
                kind=AgendaItemKind.BLOCK,
                starts_at=block.starts_at,
                ends_at=block.ends_at,
                status=AgendaStatus.BLOCKED,
                reason=block.reason,
            )
        )

    # sort is stable: ties keep appointments ahead of blocks
    items.sort(key=lambda item: item.starts_at)
    logger.info(
        "agenda.loaded",
        extra={"vet_user_id": vet_user_id, "range": range_, "start": start.isoformat(), "items": len(items)},
    )
    return items


async def block_period(
    repos: Repositories,
    config: SchedulingConfig,
    clinic_id: str,
    vet_user_id: str,
    starts_at: Union[datetime, str, None],
    ends_at: Union[datetime, str, None],
    reason: Optional[str] = None,
) -> BlockedPeriod:
    start = coerce_datetime(starts_at, config.timezone, "starts_at")
    end = coerce_datetime(ends_at, config.timezone, "ends_at")
    if end <= start:
        raise ValidationError("ends_at must be after starts_at")

    await get_clinic(repos, clinic_id)
    await clinic_vet_ids(repos, clinic_id, vet_user_id)

    block = BlockedPeriod(
        clinic_id=clinic_id,
        vet_user_id=vet_user_id,
        starts_at=start,
        ends_at=end,
        reason=(reason or "").strip() or None,
    )
    async with repos.vet_locks.hold(vet_user_id):
        saved = await repos.blocked_periods.insert(block)
    logger.info(
        "agenda.block.created",
        extra={"block_id": saved.id, "vet_user_id": vet_user_id, "starts_at": start.isoformat()},
    )
    return saved
