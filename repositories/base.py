from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase

from models.base import to_mongo


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseRepository:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.db = db

    @staticmethod
    def _ensure_object_id(value: Any) -> ObjectId:
        if isinstance(value, ObjectId):
            return value
        return ObjectId(str(value))

    @classmethod
    def _maybe_object_id(cls, value: Any) -> Optional[ObjectId]:
        # Malformed ids behave like unknown ones
        try:
            return cls._ensure_object_id(value)
        except (InvalidId, TypeError):
            return None

    @classmethod
    def _object_ids(cls, values: Sequence[Any]) -> List[ObjectId]:
        return [oid for oid in (cls._maybe_object_id(v) for v in values) if oid is not None]

    async def find_many(
        self,
        collection: str,
        query: Dict[str, Any] | None = None,
        *,
        sort: Optional[Sequence[tuple[str, int]]] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        cursor = self.db[collection].find(query or {})
        if sort:
            cursor = cursor.sort(list(sort))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [doc async for doc in cursor]

    async def count_many(self, collection: str, query: Dict[str, Any] | None = None) -> int:
        return await self.db[collection].count_documents(query or {})

    async def find_one(self, collection: str, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.db[collection].find_one(query)

    async def find_by_id(self, collection: str, value: Any) -> Optional[Dict[str, Any]]:
        oid = self._maybe_object_id(value)
        if oid is None:
            return None
        return await self.find_one(collection, {"_id": oid})

    async def insert_one(self, collection: str, doc: Dict[str, Any], *, with_timestamps: bool = True) -> ObjectId:
        """Insert `doc` in place (timestamps and `_id` are set on it); DuplicateKeyError propagates."""
        if doc.get("_id", "__absent__") is None:
            doc.pop("_id")

        if with_timestamps:
            now = utcnow()
            if doc.get("created_at") is None:
                doc["created_at"] = now
            if doc.get("updated_at") is None:
                doc["updated_at"] = now
        result = await self.db[collection].insert_one(doc)
        doc["_id"] = result.inserted_id
        return result.inserted_id

    @staticmethod
    def _touch(update: Dict[str, Any]) -> Dict[str, Any]:
        update = {**update}
        update["$set"] = {**update.get("$set", {}), "updated_at": utcnow()}
        return update

    async def update_one(
        self,
        collection: str,
        filter_query: Dict[str, Any],
        update: Dict[str, Any],
        *,
        touch_updated_at: bool = True,
        upsert: bool = False,
    ) -> int:
        if touch_updated_at:
            update = self._touch(update)
        result = await self.db[collection].update_one(filter_query, to_mongo(update), upsert=upsert)
        return result.modified_count

    async def update_many(
        self,
        collection: str,
        filter_query: Dict[str, Any],
        update: Dict[str, Any],
        *,
        touch_updated_at: bool = True,
    ) -> int:
        if touch_updated_at:
            update = self._touch(update)
        result = await self.db[collection].update_many(filter_query, to_mongo(update))
        return result.modified_count

    async def find_one_and_update(
        self,
        collection: str,
        filter_query: Dict[str, Any],
        update: Dict[str, Any],
        *,
        touch_updated_at: bool = True,
    ) -> Optional[Dict[str, Any]]:
        """Conditional update returning the document after the change, or None when nothing matched."""
        if touch_updated_at:
            update = self._touch(update)
        return await self.db[collection].find_one_and_update(
            filter_query, to_mongo(update), return_document=True
        )

    async def delete_one(self, collection: str, query: Dict[str, Any]) -> int:
        result = await self.db[collection].delete_one(query)
        return result.deleted_count

    async def delete_many(self, collection: str, query: Dict[str, Any]) -> int:
        result = await self.db[collection].delete_many(query)
        return result.deleted_count
