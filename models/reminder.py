from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field

from .base import MongoModel, PyObjectId


class ReminderScope(str, Enum):
    APPOINTMENT = "APPOINTMENT"


class ReminderStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    SENT = "SENT"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class NotificationChannel(str, Enum):
    EMAIL = "EMAIL"
    PUSH = "PUSH"


class ReminderRule(MongoModel):
    scope: ReminderScope = ReminderScope.APPOINTMENT
    offset_days: int = -7
    channel_email: bool = True
    channel_push: bool = False
    active: bool = True


class ReminderInstance(MongoModel):
    rule_id: PyObjectId
    user_id: PyObjectId
    appointment_id: Optional[PyObjectId] = None
    send_at: datetime
    status: ReminderStatus = ReminderStatus.SCHEDULED
    payload: Dict[str, Any] = Field(default_factory=dict)
    sent_at: Optional[datetime] = None


class NotificationLog(MongoModel):
    instance_id: PyObjectId
    channel: NotificationChannel = NotificationChannel.EMAIL
    delivery_status: Optional[str] = None
