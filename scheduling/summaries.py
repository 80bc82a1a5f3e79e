from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from models.animal import Animal
from models.appointment import AnimalSummary, Appointment, AppointmentDetails, PersonSummary
from models.user import User

from .ports import Repositories


def animal_summary(animal: Optional[Animal]) -> Optional[AnimalSummary]:
    if animal is None:
        return None
    return AnimalSummary(
        id=animal.id,
        name=animal.name,
        birthdate=animal.birthdate,
        species=animal.species,
        breed=animal.breed,
        weight_kg=animal.weight_kg,
    )


def person_summary(user: Optional[User]) -> Optional[PersonSummary]:
    if user is None:
        return None
    return PersonSummary(id=user.id, first_name=user.first_name, last_name=user.last_name, email=user.email)


async def load_related(
    repos: Repositories, appointments: Sequence[Appointment]
) -> Tuple[Dict[str, Animal], Dict[str, User]]:
    """Batch load the animals, owners and vets referenced by `appointments`."""
    animal_ids = list(dict.fromkeys(a.animal_id for a in appointments))
    animals = await repos.animals.get_many(animal_ids) if animal_ids else []
    animals_by_id = {a.id: a for a in animals}

    user_ids = list(dict.fromkeys([a.vet_user_id for a in appointments] + [a.owner_id for a in animals]))
    users = await repos.users.get_many(user_ids) if user_ids else []
    return animals_by_id, {u.id: u for u in users}


async def describe_appointments(
    repos: Repositories, appointments: Sequence[Appointment]
) -> List[AppointmentDetails]:
    animals, users = await load_related(repos, appointments)
    details: List[AppointmentDetails] = []
    for appt in appointments:
        animal = animals.get(appt.animal_id)
        details.append(
            AppointmentDetails(
                appointment=appt,
                vet=person_summary(users.get(appt.vet_user_id)),
                animal=animal_summary(animal),
                owner=person_summary(users.get(animal.owner_id)) if animal else None,
            )
        )
    return details
