from __future__ import annotations

from functools import lru_cache

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from core.config import settings


@lru_cache(maxsize=1)
def get_motor_client() -> AsyncIOMotorClient:
    # tz_aware: stored UTC datetimes come back aware so they compare with clinic-local ones
    return AsyncIOMotorClient(settings.mongo_uri, tz_aware=True, appname="vitavet-api")


async def get_database() -> AsyncIOMotorDatabase:
    client = get_motor_client()
    return client[settings.database_name]


async def close_database() -> None:
    client = get_motor_client()
    client.close()
    get_motor_client.cache_clear()
