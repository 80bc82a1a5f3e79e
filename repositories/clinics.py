from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence

from pymongo import ASCENDING

from models.clinic import Clinic, ClinicService

from .base import BaseRepository


CLINICS = "clinics"
SERVICES = "services"
SEARCH_MAX_RESULTS = 50


class ClinicRepository(BaseRepository):
    async def get(self, clinic_id: str) -> Optional[Clinic]:
        doc = await self.find_by_id(CLINICS, clinic_id)
        return Clinic.model_validate(doc) if doc else None

    async def search(
        self, postcode_prefix: Optional[str], service_slugs: Sequence[str], limit: int = SEARCH_MAX_RESULTS
    ) -> List[Clinic]:
        """Active clinics matching the postcode prefix OR any of the services."""
        query: Dict[str, Any] = {"active": True}
        criteria: List[Dict[str, Any]] = []
        if postcode_prefix:
            criteria.append({"postcode": {"$regex": f"^{re.escape(postcode_prefix)}"}})
        if service_slugs:
            criteria.append({"services": {"$in": list(service_slugs)}})
        if criteria:
            query["$or"] = criteria
        docs = await self.find_many(
            CLINICS,
            query,
            sort=[("city", ASCENDING), ("name", ASCENDING)],
            limit=min(limit, SEARCH_MAX_RESULTS),
        )
        return [Clinic.model_validate(d) for d in docs]

    async def insert(self, clinic: Clinic) -> Clinic:
        doc = clinic.to_document()
        await self.insert_one(CLINICS, doc)
        return Clinic.model_validate(doc)

    async def update(self, clinic_id: str, changes: Dict[str, Any]) -> Optional[Clinic]:
        oid = self._maybe_object_id(clinic_id)
        if oid is None:
            return None
        doc = await self.find_one_and_update(CLINICS, {"_id": oid}, {"$set": changes})
        return Clinic.model_validate(doc) if doc else None

    async def list_all(self) -> List[Clinic]:
        docs = await self.find_many(CLINICS, {}, sort=[("name", ASCENDING)])
        return [Clinic.model_validate(d) for d in docs]

    async def list_services(self) -> List[ClinicService]:
        docs = await self.find_many(SERVICES, {}, sort=[("label", ASCENDING)])
        return [ClinicService.model_validate(d) for d in docs]
