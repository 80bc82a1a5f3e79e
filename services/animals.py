from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from models.animal import Animal
from models.user import STAFF_ROLES, ClinicRole
from scheduling.errors import NotFoundError, PermissionDeniedError
from scheduling.ports import Repositories


logger = logging.getLogger(__name__)


async def create_animal(repos: Repositories, owner_id: str, data: Dict[str, Any]) -> Animal:
    clinic_id = data.get("clinic_id")
    if await repos.clinics.get(clinic_id) is None:
        raise NotFoundError("Clinic not found")

    links = await repos.users.roles_for_user(owner_id)
    if not any(l.clinic_id == clinic_id and l.role == ClinicRole.OWNER for l in links):
        raise PermissionDeniedError("You must be an owner in this clinic to add animals")

    animal = await repos.animals.insert(Animal(**{**data, "owner_id": owner_id}))
    logger.info("animals.create.success", extra={"animal_id": animal.id, "clinic_id": clinic_id})
    return animal


async def get_animal_history(
    repos: Repositories, requester_id: str, animal_id: str
) -> Tuple[Animal, List[Dict[str, Any]]]:
    """
    Animal record with its appointments, newest first.

    Owners see their own animals without the internal `notes`; staff of the
    animal's clinic see everything.
    """
    animal = await repos.animals.get(animal_id)
    if animal is None:
        raise NotFoundError("Animal not found")

    is_owner = animal.owner_id == requester_id
    if not is_owner:
        links = await repos.users.roles_for_user(requester_id)
        if not any(l.clinic_id == animal.clinic_id and l.role in STAFF_ROLES for l in links):
            raise PermissionDeniedError("Not allowed")

    appointments = await repos.appointments.list_for_animals([animal.id])
    exclude = {"notes"} if is_owner else set()
    history = [appt.model_dump(exclude=exclude) for appt in appointments]
    return animal, history


async def list_owner_animals(repos: Repositories, owner_id: str, clinic_id: Optional[str] = None) -> List[Animal]:
    return await repos.animals.list_for_owner(owner_id, clinic_id or None)
