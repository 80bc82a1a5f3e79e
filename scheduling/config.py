from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta, tzinfo
from zoneinfo import ZoneInfo

from core.config import AppSettings


@dataclass(frozen=True)
class SchedulingConfig:
    timezone: tzinfo = field(default_factory=lambda: ZoneInfo("Europe/Paris"))
    slot_duration_minutes: int = 30
    rejection_reason_min_length: int = 10
    rejection_reason_max_length: int = 500
    report_max_length: int = 5000

    @property
    def slot_duration(self) -> timedelta:
        return timedelta(minutes=self.slot_duration_minutes)

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "SchedulingConfig":
        return cls(
            timezone=ZoneInfo(settings.clinic_timezone),
            slot_duration_minutes=settings.slot_duration_minutes,
            rejection_reason_min_length=settings.rejection_reason_min_length,
            rejection_reason_max_length=settings.rejection_reason_max_length,
            report_max_length=settings.report_max_length,
        )
