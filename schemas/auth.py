from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from models.user import ClinicRole, GlobalRole


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    user_id: str | None = None
    email: EmailStr | None = None


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    # Optional first clinic; the account gets OWNER there
    clinic_id: Optional[str] = None


class RoleDisplay(BaseModel):
    clinic_id: str
    role: ClinicRole


class UserDisplay(BaseModel):
    user_id: str
    email: EmailStr
    first_name: str
    last_name: str
    global_role: Optional[GlobalRole] = None
    roles: List[RoleDisplay] = []


class RegisterResponse(BaseModel):
    user: UserDisplay
    token: Token
