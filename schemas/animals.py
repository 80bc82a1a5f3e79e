from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from models.animal import Animal, AnimalSex


class AnimalCreate(BaseModel):
    clinic_id: str
    name: str = Field(min_length=1, max_length=100)
    birthdate: Optional[str] = None
    species: Optional[str] = None
    breed: Optional[str] = None
    sex: Optional[AnimalSex] = None
    is_sterilized: Optional[bool] = None
    color: Optional[str] = None
    chip_id: Optional[str] = None
    weight_kg: Optional[float] = Field(default=None, ge=0)
    height_cm: Optional[int] = Field(default=None, ge=0)
    is_nac: Optional[bool] = None


class AnimalHistory(BaseModel):
    animal: Animal
    appointments: List[Dict[str, Any]]
