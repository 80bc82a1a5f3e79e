from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Tuple, Union

from .errors import ValidationError


def coerce_date(value: Union[date, datetime, str, None], field_name: str = "date") -> date:
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        if len(text) != 10:
            raise ValueError(text)
        return date.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"Invalid {field_name} format. Use YYYY-MM-DD") from exc


def coerce_datetime(
    value: Union[datetime, str, None], tz: tzinfo, field_name: str = "starts_at"
) -> datetime:
    """Parse an ISO timestamp; naive values are read in the clinic time zone."""
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValidationError(f"Invalid {field_name}: '{value}'") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def add_elapsed(moment: datetime, delta: timedelta) -> datetime:
    """
    `moment + delta` in elapsed time, kept in `moment`'s time zone.

    Plain addition on a zoneinfo datetime moves the wall clock, which is off
    by the offset change across a DST transition.
    """
    return (moment.astimezone(timezone.utc) + delta).astimezone(moment.tzinfo)


def elapsed_between(start: datetime, end: datetime) -> timedelta:
    return end.astimezone(timezone.utc) - start.astimezone(timezone.utc)


def local_day_bounds(day: date, tz: tzinfo) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=tz)
    return start, datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
