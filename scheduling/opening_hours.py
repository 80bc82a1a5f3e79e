"""
Clinic opening hours.

Clinics store hours per weekday as "HH:MM-HH:MM" strings; several ranges
may be joined with commas. A missing key or a null value means closed.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Dict, List, Optional, Tuple

from models.clinic import WEEKDAY_KEYS

from .errors import ValidationError


Window = Tuple[datetime, datetime]


def _parse_clock(value: str) -> time:
    hours, minutes = value.strip().split(":")
    if hours == "24" and minutes == "00":
        return time.max
    return time(int(hours), int(minutes))


def parse_ranges(spec: Optional[str]) -> List[Tuple[time, time]]:
    """Parse "09:00-12:00,14:00-18:00" into ordered (start, end) pairs."""
    if not spec:
        return []
    ranges: List[Tuple[time, time]] = []
    for chunk in spec.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        try:
            start_raw, end_raw = chunk.split("-")
            start, end = _parse_clock(start_raw), _parse_clock(end_raw)
        except ValueError as exc:
            raise ValidationError(f"Invalid opening hours range '{chunk}'") from exc
        if end <= start:
            raise ValidationError(f"Invalid opening hours range '{chunk}'")
        ranges.append((start, end))
    ranges.sort()
    return ranges


def validate_opening_hours(hours: Optional[Dict[str, Optional[str]]]) -> None:
    if not hours:
        return
    for key, spec in hours.items():
        if key not in WEEKDAY_KEYS:
            raise ValidationError(f"Unknown weekday '{key}' in opening hours")
        parse_ranges(spec)


def windows_for_day(
    hours: Optional[Dict[str, Optional[str]]],
    target_date: date,
    tz: tzinfo,
) -> List[Window]:
    """Opening windows of `target_date` as aware datetimes, merged and sorted."""
    if not hours:
        return []
    spec = hours.get(WEEKDAY_KEYS[target_date.weekday()])
    windows: List[Window] = []
    for start, end in parse_ranges(spec):
        if end == time.max:
            # "24:00" closes at the next midnight
            window_end = datetime.combine(target_date + timedelta(days=1), time.min, tzinfo=tz)
        else:
            window_end = datetime.combine(target_date, end, tzinfo=tz)
        windows.append((datetime.combine(target_date, start, tzinfo=tz), window_end))
    return _merge(windows)


def _merge(windows: List[Window]) -> List[Window]:
    if not windows:
        return []
    merged = [windows[0]]
    for start, end in windows[1:]:
        last_start, last_end = merged[-1]
        if start <= last_end:
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged
