from __future__ import annotations

from enum import Enum
from typing import Optional

from .base import MongoModel, PyObjectId


class AnimalSex(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    UNKNOWN = "UNKNOWN"


class Animal(MongoModel):
    owner_id: PyObjectId
    clinic_id: PyObjectId
    name: str
    birthdate: Optional[str] = None
    species: Optional[str] = None
    breed: Optional[str] = None
    sex: Optional[AnimalSex] = None
    is_sterilized: Optional[bool] = None
    color: Optional[str] = None
    chip_id: Optional[str] = None
    weight_kg: Optional[float] = None
    height_cm: Optional[int] = None
    # Nouveaux Animaux de Compagnie
    is_nac: Optional[bool] = None
