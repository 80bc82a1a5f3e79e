from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator
from uuid import uuid4

from pymongo.errors import DuplicateKeyError

from scheduling.errors import ConflictError

from .base import BaseRepository, utcnow


logger = logging.getLogger(__name__)

VET_LOCKS = "vet_locks"


class VetLockRepository(BaseRepository):
    """
    Lease lock per vet, one document keyed by the vet id.

    Whoever holds the lease is the only writer of that vet's occupied time,
    across every clinic the vet works in. A crashed holder's lease expires
    after `lease_seconds`.
    """

    lease_seconds = 10
    retry_delay_seconds = 0.05
    max_wait_seconds = 5.0

    async def _acquire(self, vet_user_id: str, token: str) -> bool:
        now = utcnow()
        try:
            # Matches only an expired lease; a live one makes the upsert collide on _id
            await self.update_one(
                VET_LOCKS,
                {"_id": vet_user_id, "locked_until": {"$lte": now}},
                {"$set": {"token": token, "locked_until": now + timedelta(seconds=self.lease_seconds)}},
                touch_updated_at=False,
                upsert=True,
            )
        except DuplicateKeyError:
            return False
        return True

    @asynccontextmanager
    async def hold(self, vet_user_id: str) -> AsyncIterator[None]:
        token = uuid4().hex
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.max_wait_seconds
        while not await self._acquire(vet_user_id, token):
            if loop.time() >= deadline:
                logger.warning("vet_locks.timeout", extra={"vet_user_id": vet_user_id})
                raise ConflictError("Vet agenda is busy, please retry")
            await asyncio.sleep(self.retry_delay_seconds)
        try:
            yield
        finally:
            await self.delete_one(VET_LOCKS, {"_id": vet_user_id, "token": token})
