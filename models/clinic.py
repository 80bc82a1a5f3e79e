from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .base import MongoModel


WEEKDAY_KEYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


class Clinic(MongoModel):
    name: str
    postcode: str
    city: str
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    # {"mon": "09:00-19:00", "sat": "10:00-12:00,14:00-16:00", "sun": None}
    opening_hours: Optional[Dict[str, Optional[str]]] = None
    services: List[str] = Field(default_factory=list)
    active: bool = True


class ClinicService(BaseModel):
    slug: str
    label: str
    description: Optional[str] = None
