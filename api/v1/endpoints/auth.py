from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from api.deps import get_repositories
from schemas.auth import RegisterRequest, RegisterResponse, RoleDisplay, Token, UserDisplay
from scheduling.ports import Repositories
from services.security import (
    CurrentUser,
    authenticate_user,
    create_access_token,
    get_current_user,
    register_owner,
)


router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)


def _display(current: CurrentUser) -> UserDisplay:
    user = current.user
    return UserDisplay(
        user_id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        global_role=user.global_role,
        roles=[RoleDisplay(clinic_id=link.clinic_id, role=link.role) for link in current.roles],
    )


@router.post("/auth/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    repos: Repositories = Depends(get_repositories),
) -> Token:
    username = (form_data.username or "").strip()
    logger.info("auth.login_attempt", extra={"email": username})

    user = await authenticate_user(repos, username, form_data.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password")

    access_token = create_access_token({"email": user.email, "sub": user.id})
    logger.info("auth.login_success", extra={"email": user.email})
    return Token(access_token=access_token)


@router.post("/auth/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, repos: Repositories = Depends(get_repositories)) -> RegisterResponse:
    if payload.clinic_id and await repos.clinics.get(payload.clinic_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Clinic not found")
    user = await register_owner(
        repos,
        email=str(payload.email),
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        clinic_id=payload.clinic_id,
    )
    roles = await repos.users.roles_for_user(user.id)
    token = Token(access_token=create_access_token({"email": user.email, "sub": user.id}))
    return RegisterResponse(user=_display(CurrentUser(user=user, roles=roles)), token=token)


@router.get("/users/me", response_model=UserDisplay)
async def read_users_me(current_user: CurrentUser = Depends(get_current_user)) -> UserDisplay:
    return _display(current_user)
