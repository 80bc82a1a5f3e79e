from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pymongo import ASCENDING

from models.user import ClinicRole, User, UserClinicRole

from .base import BaseRepository, utcnow


USERS = "users"
USER_CLINIC_ROLES = "user_clinic_roles"


class UserRepository(BaseRepository):
    async def get(self, user_id: str) -> Optional[User]:
        doc = await self.find_by_id(USERS, user_id)
        return User.model_validate(doc) if doc else None

    async def get_many(self, user_ids: Sequence[str]) -> List[User]:
        docs = await self.find_many(USERS, {"_id": {"$in": self._object_ids(user_ids)}})
        return [User.model_validate(d) for d in docs]

    async def get_by_email(self, email: str) -> Optional[User]:
        # Case-insensitive exact match so login does not depend on casing
        email_ci = {"$regex": f"^{re.escape(str(email))}$", "$options": "i"}
        doc = await self.find_one(USERS, {"email": email_ci})
        return User.model_validate(doc) if doc else None

    async def insert(self, user: User) -> User:
        doc = user.to_document()
        await self.insert_one(USERS, doc)
        return User.model_validate(doc)

    async def list_users(self, limit: int, offset: int) -> Tuple[List[User], int]:
        docs = await self.find_many(USERS, {}, sort=[("email", ASCENDING)], limit=limit, skip=offset)
        total = await self.count_many(USERS, {})
        return [User.model_validate(d) for d in docs], total

    async def update(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        oid = self._maybe_object_id(user_id)
        if oid is None:
            return None
        doc = await self.find_one_and_update(USERS, {"_id": oid}, {"$set": changes})
        return User.model_validate(doc) if doc else None

    async def delete(self, user_id: str) -> bool:
        oid = self._maybe_object_id(user_id)
        if oid is None:
            return False
        return await self.delete_one(USERS, {"_id": oid}) > 0

    async def roles_for_user(self, user_id: str) -> List[UserClinicRole]:
        docs = await self.find_many(USER_CLINIC_ROLES, {"user_id": str(user_id)})
        return [UserClinicRole.model_validate(d) for d in docs]

    async def members(self, clinic_id: str, role: Optional[ClinicRole] = None) -> List[UserClinicRole]:
        query = {"clinic_id": str(clinic_id)}
        if role is not None:
            query["role"] = ClinicRole(role).value
        docs = await self.find_many(USER_CLINIC_ROLES, query, sort=[("created_at", ASCENDING)])
        return [UserClinicRole.model_validate(d) for d in docs]

    async def assign_role(self, link: UserClinicRole) -> UserClinicRole:
        key = {"user_id": link.user_id, "clinic_id": link.clinic_id, "role": link.role.value}
        await self.update_one(
            USER_CLINIC_ROLES,
            key,
            {"$setOnInsert": {"created_at": utcnow()}},
            upsert=True,
        )
        return link

    async def remove_roles(self, user_id: str) -> int:
        return await self.delete_many(USER_CLINIC_ROLES, {"user_id": str(user_id)})
