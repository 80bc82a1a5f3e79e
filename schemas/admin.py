from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, EmailStr, Field

from models.user import ClinicRole, GlobalRole
from schemas.auth import UserDisplay


class UserPage(BaseModel):
    items: List[UserDisplay]
    total: int
    limit: int
    offset: int


class AdminUserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    # ADMIN is global; the clinic roles need clinic_id
    role: Optional[Union[GlobalRole, ClinicRole]] = None
    clinic_id: Optional[str] = None


class AdminUserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=8)
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    active: Optional[bool] = None
    role: Optional[Union[GlobalRole, ClinicRole]] = None
    clinic_id: Optional[str] = None
