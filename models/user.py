from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .base import MongoModel, PyObjectId


class GlobalRole(str, Enum):
    ADMIN = "ADMIN"


class ClinicRole(str, Enum):
    OWNER = "OWNER"
    VET = "VET"
    ASV = "ASV"
    ADMIN_CLINIC = "ADMIN_CLINIC"


STAFF_ROLES = frozenset({ClinicRole.VET, ClinicRole.ASV, ClinicRole.ADMIN_CLINIC})


class User(MongoModel):
    email: str
    first_name: str
    last_name: str
    hashed_password: str
    global_role: Optional[GlobalRole] = None
    active: bool = True


class UserClinicRole(BaseModel):
    user_id: PyObjectId
    clinic_id: PyObjectId
    role: ClinicRole
