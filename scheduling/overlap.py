"""
Overlap Detection

Intervals are half-open: [start, end). Back-to-back intervals do not
conflict.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Union

from models.appointment import Appointment, BlockedPeriod, is_live_status


Occupied = Union[Appointment, BlockedPeriod]


def intervals_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    return start_a < end_b and start_b < end_a


def occupies(item: Occupied) -> bool:
    """Blocked periods always occupy; appointments only while live."""
    if isinstance(item, Appointment):
        return is_live_status(item.status)
    return True


def find_conflicts(
    start: datetime,
    end: datetime,
    occupied: Iterable[Occupied],
    exclude_id: Optional[str] = None,
) -> List[Occupied]:
    """
    Return every occupying item overlapping [start, end).

    Args:
        start: start of the candidate interval
        end: end of the candidate interval
        occupied: appointments and blocked periods of a single vet
        exclude_id: appointment to ignore (re-validation of an existing booking)
    """
    conflicts: List[Occupied] = []
    for item in occupied:
        if exclude_id is not None and item.id == exclude_id:
            continue
        if not occupies(item):
            continue
        if intervals_overlap(start, end, item.starts_at, item.ends_at):
            conflicts.append(item)
    return conflicts
