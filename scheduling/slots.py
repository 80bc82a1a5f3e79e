"""
Slot Generation Service

Generates the bookable slots of a clinic for one day, considering:
- Clinic opening hours
- Vets holding the VET role in the clinic
- Live appointments and blocked periods of each vet
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from models.appointment import Slot
from models.clinic import Clinic
from models.user import ClinicRole

from .config import SchedulingConfig
from .errors import NotFoundError, ValidationError
from .opening_hours import Window, windows_for_day
from .overlap import Occupied, find_conflicts
from .ports import Repositories
from .timeutils import add_elapsed, coerce_date, elapsed_between


logger = logging.getLogger(__name__)


def candidate_intervals(
    windows: Sequence[Window], duration: timedelta
) -> Iterator[Tuple[datetime, datetime]]:
    """
    Partition each window into fixed intervals; a trailing remainder is dropped.

    Stepping is in elapsed time, so on a DST change day every slot still lasts
    `duration` and the missing or repeated wall-clock hour is handled.
    """
    for window_start, window_end in windows:
        current = window_start
        while elapsed_between(current, window_end) >= duration:
            following = add_elapsed(current, duration)
            yield current, following
            current = following


def is_slot_position(windows: Sequence[Window], start: datetime, duration: timedelta) -> bool:
    """True when [start, start + duration) is one of the generated candidates."""
    for window_start, window_end in windows:
        offset = elapsed_between(window_start, start)
        if offset >= timedelta(0) and elapsed_between(start, window_end) >= duration:
            return offset % duration == timedelta(0)
    return False


async def get_clinic(repos: Repositories, clinic_id: str) -> Clinic:
    clinic = await repos.clinics.get(clinic_id)
    if clinic is None:
        raise NotFoundError("Clinic not found")
    return clinic


async def clinic_vet_ids(
    repos: Repositories, clinic_id: str, vet_user_id: Optional[str] = None
) -> List[str]:
    links = await repos.users.members(clinic_id, ClinicRole.VET)
    vet_ids: List[str] = []
    for link in links:
        if link.user_id not in vet_ids:
            vet_ids.append(link.user_id)
    if vet_user_id is None:
        return vet_ids
    if vet_user_id not in vet_ids:
        raise ValidationError("Vet is not in this clinic")
    return [vet_user_id]


async def load_occupied(
    repos: Repositories, vet_ids: Sequence[str], start: datetime, end: datetime
) -> Dict[str, List[Occupied]]:
    """Live appointments and blocked periods overlapping [start, end), per vet."""
    appointments = await repos.appointments.find_overlapping(vet_ids, start, end)
    blocks = await repos.blocked_periods.find_overlapping(vet_ids, start, end)
    occupied: Dict[str, List[Occupied]] = defaultdict(list)
    for item in [*appointments, *blocks]:
        occupied[item.vet_user_id].append(item)
    return occupied


async def generate_slots(
    repos: Repositories,
    config: SchedulingConfig,
    clinic_id: str,
    target_date: Union[date, str],
    vet_user_id: Optional[str] = None,
) -> List[Slot]:
    """
    Bookable slots of a clinic for one day.

    Steps:
        1. Resolve the opening windows of the day (closed or unconfigured: empty)
        2. Resolve the clinic vets, or check the requested vet belongs to it
        3. Load live appointments and blocked periods touching the day
        4. Partition each window into fixed intervals and drop overlapping ones
        5. Return them ordered by start, vets in membership order on ties
    """
    day = coerce_date(target_date)
    clinic = await get_clinic(repos, clinic_id)

    windows = windows_for_day(clinic.opening_hours, day, config.timezone)
    if not windows:
        logger.info("slots.clinic_closed", extra={"clinic_id": clinic_id, "date": day.isoformat()})
        return []

    vet_ids = await clinic_vet_ids(repos, clinic_id, vet_user_id)
    if not vet_ids:
        return []

    occupied = await load_occupied(repos, vet_ids, windows[0][0], windows[-1][1])

    slots: List[Slot] = []
    for start, end in candidate_intervals(windows, config.slot_duration):
        for vet_id in vet_ids:
            if find_conflicts(start, end, occupied.get(vet_id, ())):
                continue
            slots.append(
                Slot(
                    id=f"{vet_id}@{start.isoformat()}",
                    starts_at=start,
                    ends_at=end,
                    duration_minutes=config.slot_duration_minutes,
                    vet_user_id=vet_id,
                )
            )

    logger.info(
        "slots.generated",
        extra={"clinic_id": clinic_id, "date": day.isoformat(), "vets": len(vet_ids), "slots": len(slots)},
    )
    return slots
