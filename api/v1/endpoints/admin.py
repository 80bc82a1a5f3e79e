from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from api.deps import get_repositories
from models.clinic import Clinic
from models.user import ClinicRole, User, UserClinicRole
from schemas.admin import AdminUserCreate, AdminUserUpdate, UserPage
from schemas.auth import RoleDisplay, UserDisplay
from schemas.clinics import ClinicCreate, ClinicMember, ClinicUpdate, RoleAssignRequest
from scheduling.opening_hours import validate_opening_hours
from scheduling.ports import Repositories
from services.security import CurrentUser, get_current_user, require_admin
from services.users import create_account, delete_account, update_account


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


async def _user_display(repos: Repositories, user: User) -> UserDisplay:
    roles = await repos.users.roles_for_user(user.id)
    return UserDisplay(
        user_id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        global_role=user.global_role,
        roles=[RoleDisplay(clinic_id=r.clinic_id, role=r.role) for r in roles],
    )


@router.get("/clinics", response_model=List[Clinic])
async def list_clinics(
    current_user: CurrentUser = Depends(require_admin),
    repos: Repositories = Depends(get_repositories),
) -> List[Clinic]:
    return await repos.clinics.list_all()


@router.post("/clinics", response_model=Clinic, status_code=status.HTTP_201_CREATED)
async def create_clinic(
    payload: ClinicCreate,
    current_user: CurrentUser = Depends(require_admin),
    repos: Repositories = Depends(get_repositories),
) -> Clinic:
    validate_opening_hours(payload.opening_hours)
    clinic = await repos.clinics.insert(Clinic(**payload.model_dump()))
    logger.info("admin.clinics.create.success", extra={"clinic_id": clinic.id, "by": current_user.id})
    return clinic


@router.patch("/clinics/{clinic_id}", response_model=Clinic)
async def update_clinic(
    clinic_id: str,
    payload: ClinicUpdate,
    current_user: CurrentUser = Depends(require_admin),
    repos: Repositories = Depends(get_repositories),
) -> Clinic:
    changes = payload.model_dump(exclude_unset=True)
    if "opening_hours" in changes:
        validate_opening_hours(changes["opening_hours"])
    if not changes:
        clinic = await repos.clinics.get(clinic_id)
    else:
        clinic = await repos.clinics.update(clinic_id, changes)
    if clinic is None:
        raise HTTPException(status_code=404, detail="Clinic not found")
    logger.info("admin.clinics.update.success", extra={"clinic_id": clinic_id, "fields": sorted(changes)})
    return clinic


@router.post("/clinics/{clinic_id}/roles", response_model=ClinicMember, status_code=status.HTTP_201_CREATED)
async def assign_clinic_role(
    clinic_id: str,
    payload: RoleAssignRequest,
    current_user: CurrentUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
) -> ClinicMember:
    current_user.require_clinic_role(clinic_id, ClinicRole.ADMIN_CLINIC)
    if await repos.clinics.get(clinic_id) is None:
        raise HTTPException(status_code=404, detail="Clinic not found")
    user = await repos.users.get(payload.user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    await repos.users.assign_role(UserClinicRole(user_id=user.id, clinic_id=clinic_id, role=payload.role))
    logger.info(
        "admin.roles.assign.success",
        extra={"clinic_id": clinic_id, "user_id": user.id, "role": payload.role.value},
    )
    return ClinicMember(
        user_id=user.id,
        role=payload.role,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
    )


@router.get("/clinics/{clinic_id}/roles", response_model=List[ClinicMember])
async def list_clinic_roles(
    clinic_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
) -> List[ClinicMember]:
    current_user.require_clinic_role(clinic_id, ClinicRole.ADMIN_CLINIC)
    links = await repos.users.members(clinic_id)
    users = {u.id: u for u in await repos.users.get_many([l.user_id for l in links])}
    members: List[ClinicMember] = []
    for link in links:
        user = users.get(link.user_id)
        members.append(
            ClinicMember(
                user_id=link.user_id,
                role=link.role,
                first_name=user.first_name if user else None,
                last_name=user.last_name if user else None,
                email=user.email if user else None,
            )
        )
    return members


@router.get("/users", response_model=UserPage)
async def list_users(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    current_user: CurrentUser = Depends(require_admin),
    repos: Repositories = Depends(get_repositories),
) -> UserPage:
    users, total = await repos.users.list_users(limit, offset)
    items = [await _user_display(repos, user) for user in users]
    return UserPage(items=items, total=total, limit=limit, offset=offset)


@router.post("/users", response_model=UserDisplay, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: AdminUserCreate,
    current_user: CurrentUser = Depends(require_admin),
    repos: Repositories = Depends(get_repositories),
) -> UserDisplay:
    user = await create_account(
        repos,
        email=str(payload.email),
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
        clinic_id=payload.clinic_id,
    )
    return await _user_display(repos, user)


@router.patch("/users/{user_id}", response_model=UserDisplay)
async def update_user(
    user_id: str,
    payload: AdminUserUpdate,
    current_user: CurrentUser = Depends(require_admin),
    repos: Repositories = Depends(get_repositories),
) -> UserDisplay:
    fields = payload.model_dump(exclude_unset=True, exclude={"role", "clinic_id"})
    changes = {k: v for k, v in fields.items() if v is not None}
    if "email" in changes:
        changes["email"] = str(changes["email"])
    user = await update_account(repos, user_id, changes, role=payload.role, clinic_id=payload.clinic_id)
    return await _user_display(repos, user)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_user(
    user_id: str,
    current_user: CurrentUser = Depends(require_admin),
    repos: Repositories = Depends(get_repositories),
) -> Response:
    await delete_account(repos, user_id, by_user_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
