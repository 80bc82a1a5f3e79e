from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field

from models.user import ClinicRole


class ClinicCreate(BaseModel):
    name: str = Field(min_length=1)
    postcode: str = Field(min_length=1)
    city: str = Field(min_length=1)
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    country: Optional[str] = "FR"
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    opening_hours: Optional[Dict[str, Optional[str]]] = None
    services: List[str] = []
    active: bool = True


class ClinicUpdate(BaseModel):
    name: Optional[str] = None
    postcode: Optional[str] = None
    city: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    opening_hours: Optional[Dict[str, Optional[str]]] = None
    services: Optional[List[str]] = None
    active: Optional[bool] = None


class RoleAssignRequest(BaseModel):
    user_id: str
    role: ClinicRole


class ClinicMember(BaseModel):
    user_id: str
    role: ClinicRole
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
