from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING

from models.reminder import NotificationLog, ReminderInstance, ReminderRule, ReminderScope, ReminderStatus

from .base import BaseRepository


REMINDER_RULES = "reminder_rules"
REMINDER_INSTANCES = "reminder_instances"
NOTIFICATION_LOGS = "notification_logs"


class ReminderRepository(BaseRepository):
    async def active_rules(self, scope: ReminderScope) -> List[ReminderRule]:
        docs = await self.find_many(
            REMINDER_RULES, {"scope": ReminderScope(scope).value, "active": True}, sort=[("created_at", ASCENDING)]
        )
        return [ReminderRule.model_validate(d) for d in docs]

    async def find_instance(self, rule_id: str, appointment_id: str, user_id: str) -> Optional[ReminderInstance]:
        doc = await self.find_one(
            REMINDER_INSTANCES,
            {"rule_id": rule_id, "appointment_id": appointment_id, "user_id": user_id},
        )
        return ReminderInstance.model_validate(doc) if doc else None

    async def insert_instance(self, instance: ReminderInstance) -> ReminderInstance:
        doc = instance.to_document()
        await self.insert_one(REMINDER_INSTANCES, doc)
        return ReminderInstance.model_validate(doc)

    async def due_instances(self, now: datetime, limit: int) -> List[ReminderInstance]:
        docs = await self.find_many(
            REMINDER_INSTANCES,
            {"status": ReminderStatus.SCHEDULED.value, "send_at": {"$lte": now}},
            sort=[("send_at", ASCENDING)],
            limit=limit,
        )
        return [ReminderInstance.model_validate(d) for d in docs]

    async def mark_status(
        self,
        instance_id: str,
        expected: ReminderStatus,
        status: ReminderStatus,
        changes: Optional[Dict[str, Any]] = None,
    ) -> bool:
        oid = self._maybe_object_id(instance_id)
        if oid is None:
            return False
        modified = await self.update_one(
            REMINDER_INSTANCES,
            {"_id": oid, "status": ReminderStatus(expected).value},
            {"$set": {**(changes or {}), "status": status}},
        )
        return modified == 1

    async def cancel_for_appointment(self, appointment_id: str) -> int:
        return await self.update_many(
            REMINDER_INSTANCES,
            {"appointment_id": appointment_id, "status": ReminderStatus.SCHEDULED.value},
            {"$set": {"status": ReminderStatus.CANCELLED}},
        )

    async def list_instances(self, status: Optional[ReminderStatus] = None) -> List[ReminderInstance]:
        query: Dict[str, Any] = {}
        if status is not None:
            query["status"] = ReminderStatus(status).value
        docs = await self.find_many(REMINDER_INSTANCES, query, sort=[("send_at", ASCENDING)])
        return [ReminderInstance.model_validate(d) for d in docs]

    async def log_notification(self, log: NotificationLog) -> None:
        await self.insert_one(NOTIFICATION_LOGS, log.to_document())

    async def list_logs(self, limit: int, offset: int) -> Tuple[List[NotificationLog], int]:
        docs = await self.find_many(
            NOTIFICATION_LOGS, {}, sort=[("created_at", DESCENDING)], limit=limit, skip=offset
        )
        total = await self.count_many(NOTIFICATION_LOGS, {})
        return [NotificationLog.model_validate(d) for d in docs], total
