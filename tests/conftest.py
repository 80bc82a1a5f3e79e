"""Shared fixtures: an in-memory clinic with two vets, an owner and an animal."""

import os

os.environ.setdefault("ENSURE_INDEXES_ON_STARTUP", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("ENVIRONMENT", "test")

from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from models.animal import Animal
from models.clinic import Clinic
from models.user import ClinicRole, GlobalRole, User
from scheduling.config import SchedulingConfig
from scheduling.ports import Repositories
from tests.fakes import build_fake_repositories


PARIS = ZoneInfo("Europe/Paris")
# 2024-06-03 is a Monday
MONDAY = "2024-06-03"


def paris(year: int, month: int, day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=PARIS)


@dataclass
class World:
    repos: Repositories
    clinic: Clinic
    vet: User
    other_vet: User
    asv: User
    owner: User
    other_owner: User
    admin: User
    animal: Animal
    other_animal: Animal


def _user(email: str, first: str, last: str, **kwargs) -> User:
    return User(email=email, first_name=first, last_name=last, hashed_password="not-a-hash", **kwargs)


@pytest.fixture
def config() -> SchedulingConfig:
    return SchedulingConfig(timezone=PARIS)


@pytest.fixture
def world() -> World:
    repos = build_fake_repositories()
    clinic = repos.clinics.add(
        Clinic(
            name="Clinique des Tilleuls",
            postcode="75011",
            city="Paris",
            opening_hours={
                "mon": "09:00-19:00",
                "tue": "09:00-19:00",
                "wed": "09:00-19:00",
                "thu": "09:00-19:00",
                "fri": "09:00-19:00",
                "sat": "09:00-12:00",
                "sun": None,
            },
            services=["consultation", "vaccination"],
        )
    )
    users = repos.users
    vet = users.add(_user("vet@vitavet.fr", "Claire", "Martin"), (clinic.id, ClinicRole.VET))
    other_vet = users.add(_user("vet2@vitavet.fr", "Louis", "Bernard"), (clinic.id, ClinicRole.VET))
    asv = users.add(_user("asv@vitavet.fr", "Emma", "Petit"), (clinic.id, ClinicRole.ASV))
    owner = users.add(_user("owner@vitavet.fr", "Julie", "Durand"), (clinic.id, ClinicRole.OWNER))
    other_owner = users.add(_user("owner2@vitavet.fr", "Marc", "Leroy"), (clinic.id, ClinicRole.OWNER))
    admin = users.add(_user("admin@vitavet.fr", "Ada", "Admin", global_role=GlobalRole.ADMIN))

    animal = repos.animals.add(
        Animal(owner_id=owner.id, clinic_id=clinic.id, name="Rex", species="dog", breed="Beagle", weight_kg=12.5)
    )
    other_animal = repos.animals.add(Animal(owner_id=other_owner.id, clinic_id=clinic.id, name="Mina", species="cat"))

    return World(
        repos=repos,
        clinic=clinic,
        vet=vet,
        other_vet=other_vet,
        asv=asv,
        owner=owner,
        other_owner=other_owner,
        admin=admin,
        animal=animal,
        other_animal=other_animal,
    )
