from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from pymongo import ASCENDING

from models.animal import Animal

from .base import BaseRepository


ANIMALS = "animals"


class AnimalRepository(BaseRepository):
    async def get(self, animal_id: str) -> Optional[Animal]:
        doc = await self.find_by_id(ANIMALS, animal_id)
        return Animal.model_validate(doc) if doc else None

    async def get_many(self, animal_ids: Sequence[str]) -> List[Animal]:
        docs = await self.find_many(ANIMALS, {"_id": {"$in": self._object_ids(animal_ids)}})
        return [Animal.model_validate(d) for d in docs]

    async def insert(self, animal: Animal) -> Animal:
        doc = animal.to_document()
        await self.insert_one(ANIMALS, doc)
        return Animal.model_validate(doc)

    async def list_for_owner(self, owner_id: str, clinic_id: Optional[str] = None) -> List[Animal]:
        query: Dict[str, Any] = {"owner_id": str(owner_id)}
        if clinic_id:
            query["clinic_id"] = clinic_id
        docs = await self.find_many(ANIMALS, query, sort=[("name", ASCENDING)])
        return [Animal.model_validate(d) for d in docs]
