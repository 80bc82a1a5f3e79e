from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from api.deps import get_repositories
from core.config import settings
from models.user import STAFF_ROLES, ClinicRole, GlobalRole, User, UserClinicRole
from scheduling.errors import ConflictError, PermissionDeniedError
from scheduling.ports import Repositories


password_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")
logger = logging.getLogger(__name__)


@dataclass
class CurrentUser:
    """Authenticated user with the clinic roles resolved at request time."""

    user: User
    roles: List[UserClinicRole] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return self.user.global_role == GlobalRole.ADMIN

    def has_role(self, clinic_id: str, *roles: ClinicRole) -> bool:
        return any(link.clinic_id == clinic_id and link.role in roles for link in self.roles)

    def clinic_ids(self, *roles: ClinicRole) -> List[str]:
        ids: List[str] = []
        for link in self.roles:
            if link.role in roles and link.clinic_id not in ids:
                ids.append(link.clinic_id)
        return ids

    def require_clinic_role(self, clinic_id: str, *roles: ClinicRole) -> None:
        if self.is_admin or self.has_role(clinic_id, *roles):
            return
        raise PermissionDeniedError("Insufficient permissions for this clinic")

    def require_any_role(self, *roles: ClinicRole) -> None:
        if self.is_admin or self.clinic_ids(*roles):
            return
        raise PermissionDeniedError("Insufficient permissions")

    def require_staff(self, clinic_id: Optional[str] = None) -> None:
        if clinic_id is None:
            self.require_any_role(*STAFF_ROLES)
        else:
            self.require_clinic_role(clinic_id, *STAFF_ROLES)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return password_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unknown or malformed hash
        logger.warning("auth.password_hash_unrecognized")
        return False


def get_password_hash(password: str) -> str:
    return password_context.hash(password)


def create_access_token(subject: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = subject.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return encoded_jwt


async def authenticate_user(repos: Repositories, email: str, password: str) -> Optional[User]:
    user = await repos.users.get_by_email(email)
    if user is None:
        logger.warning("auth.user_not_found", extra={"email": email})
        return None
    if not user.active:
        logger.warning("auth.user_inactive", extra={"email": email})
        return None
    if not verify_password(password, user.hashed_password):
        logger.warning("auth.login_invalid_password", extra={"email": email})
        return None
    return user


async def register_owner(
    repos: Repositories,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    clinic_id: Optional[str] = None,
) -> User:
    if await repos.users.get_by_email(email) is not None:
        raise ConflictError("User with this email already exists")
    user = await repos.users.insert(
        User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            hashed_password=get_password_hash(password),
        )
    )
    if clinic_id:
        await repos.users.assign_role(UserClinicRole(user_id=user.id, clinic_id=clinic_id, role=ClinicRole.OWNER))
    logger.info("auth.register.success", extra={"user_id": user.id, "clinic_id": clinic_id})
    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    repos: Repositories = Depends(get_repositories),
) -> CurrentUser:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        email: str | None = payload.get("email")
        if email is None:
            logger.error("auth.token_missing_email")
            raise credentials_exception
    except JWTError:
        logger.warning("auth.jwt_error")
        raise credentials_exception

    user = await repos.users.get_by_email(email)
    if user is None or not user.active:
        logger.error("auth.user_not_found_for_token", extra={"email": email})
        raise credentials_exception
    roles = await repos.users.roles_for_user(user.id)
    return CurrentUser(user=user, roles=roles)


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_admin:
        logger.warning("auth.admin_required", extra={"user_id": current_user.id})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user
