from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from models.user import ClinicRole, GlobalRole, User, UserClinicRole
from scheduling.errors import ConflictError, NotFoundError, ValidationError
from scheduling.ports import Repositories
from services.security import get_password_hash


logger = logging.getLogger(__name__)

AccountRole = Union[GlobalRole, ClinicRole]


async def _check_role_scope(repos: Repositories, role: Optional[AccountRole], clinic_id: Optional[str]) -> None:
    # Clinic roles live on a clinic link, the global role lives on the user
    if role is None:
        if clinic_id:
            raise ValidationError("clinic_id requires a clinic role")
        return
    if isinstance(role, ClinicRole) and not clinic_id:
        raise ValidationError(f"Clinic role {role.value} requires a clinic_id")
    if isinstance(role, GlobalRole) and clinic_id:
        raise ValidationError(f"Global role {role.value} cannot have a clinic_id")
    if clinic_id and await repos.clinics.get(clinic_id) is None:
        raise NotFoundError("Clinic not found")


async def create_account(
    repos: Repositories,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    role: Optional[AccountRole] = None,
    clinic_id: Optional[str] = None,
) -> User:
    if await repos.users.get_by_email(email) is not None:
        raise ConflictError("User with this email already exists")
    await _check_role_scope(repos, role, clinic_id)

    user = await repos.users.insert(
        User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            hashed_password=get_password_hash(password),
            global_role=role if isinstance(role, GlobalRole) else None,
        )
    )
    if isinstance(role, ClinicRole):
        await repos.users.assign_role(UserClinicRole(user_id=user.id, clinic_id=clinic_id, role=role))
    logger.info(
        "admin.users.create.success",
        extra={"user_id": user.id, "role": role.value if role else None, "clinic_id": clinic_id},
    )
    return user


async def update_account(
    repos: Repositories,
    user_id: str,
    changes: Dict[str, Any],
    role: Optional[AccountRole] = None,
    clinic_id: Optional[str] = None,
) -> User:
    """
    Apply profile `changes` and, when `role` is given, replace every role the
    user holds with that single one.
    """
    user = await repos.users.get(user_id)
    if user is None:
        raise NotFoundError("User not found")

    changes = dict(changes)
    email = changes.get("email")
    if email is not None:
        other = await repos.users.get_by_email(email)
        if other is not None and other.id != user.id:
            raise ConflictError("User with this email already exists")
    if role is not None or clinic_id:
        await _check_role_scope(repos, role, clinic_id)
    if "password" in changes:
        changes["hashed_password"] = get_password_hash(changes.pop("password"))

    if role is not None:
        changes["global_role"] = role if isinstance(role, GlobalRole) else None
        await repos.users.remove_roles(user.id)
        if isinstance(role, ClinicRole):
            await repos.users.assign_role(UserClinicRole(user_id=user.id, clinic_id=clinic_id, role=role))

    if changes:
        user = await repos.users.update(user.id, changes)
        if user is None:
            raise NotFoundError("User not found")
    logger.info(
        "admin.users.update.success",
        extra={"user_id": user_id, "fields": sorted(k for k in changes if k != "hashed_password")},
    )
    return user


async def delete_account(repos: Repositories, user_id: str, by_user_id: str) -> None:
    if user_id == by_user_id:
        raise ValidationError("You cannot delete your own account")
    if not await repos.users.delete(user_id):
        raise NotFoundError("User not found")
    removed = await repos.users.remove_roles(user_id)
    logger.info("admin.users.delete.success", extra={"user_id": user_id, "roles_removed": removed})
