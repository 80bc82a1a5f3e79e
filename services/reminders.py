"""
Reminder planning and delivery bookkeeping.

Confirmed appointments get one SCHEDULED instance per active APPOINTMENT
rule, sent `offset_days` relative to the appointment start. The processor
marks due instances SENT and records one notification log entry per
channel the rule enabled when the instance was planned.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from models.appointment import Appointment
from models.reminder import (
    NotificationChannel,
    NotificationLog,
    ReminderInstance,
    ReminderScope,
    ReminderStatus,
)
from scheduling.ports import Repositories


logger = logging.getLogger(__name__)


def delivery_channels(instance: ReminderInstance) -> List[NotificationChannel]:
    payload = instance.payload
    channels: List[NotificationChannel] = []
    if payload.get("channel_email", True):
        channels.append(NotificationChannel.EMAIL)
    if payload.get("channel_push", False):
        channels.append(NotificationChannel.PUSH)
    return channels


class ReminderService:
    def __init__(self, repos: Repositories, batch_limit: int = 200) -> None:
        self.repos = repos
        self.batch_limit = batch_limit

    async def plan_appointment_reminders(self, appointment: Appointment) -> List[ReminderInstance]:
        animal = await self.repos.animals.get(appointment.animal_id)
        if animal is None:
            logger.warning("reminders.plan.animal_missing", extra={"appointment_id": appointment.id})
            return []

        created: List[ReminderInstance] = []
        for rule in await self.repos.reminders.active_rules(ReminderScope.APPOINTMENT):
            existing = await self.repos.reminders.find_instance(rule.id, appointment.id, animal.owner_id)
            if existing is not None:
                continue
            instance = ReminderInstance(
                rule_id=rule.id,
                user_id=animal.owner_id,
                appointment_id=appointment.id,
                send_at=appointment.starts_at + timedelta(days=rule.offset_days),
                payload={
                    "appointment_id": appointment.id,
                    "starts_at": appointment.starts_at.isoformat(),
                    "animal_name": animal.name,
                    "channel_email": rule.channel_email,
                    "channel_push": rule.channel_push,
                },
            )
            created.append(await self.repos.reminders.insert_instance(instance))

        logger.info(
            "reminders.planned",
            extra={"appointment_id": appointment.id, "planned": len(created)},
        )
        return created

    async def cancel_appointment_reminders(self, appointment: Appointment) -> int:
        cancelled = await self.repos.reminders.cancel_for_appointment(appointment.id)
        if cancelled:
            logger.info("reminders.cancelled", extra={"appointment_id": appointment.id, "count": cancelled})
        return cancelled

    async def process_due_reminders(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        due = await self.repos.reminders.due_instances(now, self.batch_limit)
        logger.info("reminders.process.start", extra={"due": len(due)})

        processed = 0
        for instance in due:
            # Conditional on SCHEDULED so two runners never send the same instance
            claimed = await self.repos.reminders.mark_status(
                instance.id, ReminderStatus.SCHEDULED, ReminderStatus.SENT, {"sent_at": now}
            )
            if not claimed:
                continue
            for channel in delivery_channels(instance):
                await self.repos.reminders.log_notification(
                    NotificationLog(instance_id=instance.id, channel=channel, delivery_status="SENT")
                )
            processed += 1

        logger.info("reminders.process.done", extra={"processed": processed})
        return processed
