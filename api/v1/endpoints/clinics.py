from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_repositories
from models.clinic import Clinic, ClinicService
from models.user import ClinicRole
from schemas.clinics import ClinicMember
from scheduling.ports import Repositories


router = APIRouter(tags=["clinics"])
logger = logging.getLogger(__name__)


@router.get("/clinics", response_model=List[Clinic])
async def search_clinics(
    postcode: Optional[str] = Query(default=None, max_length=12, pattern=r"^[0-9A-Za-z\-\s]+$"),
    services: Optional[str] = Query(default=None, description="Comma-separated service slugs"),
    repos: Repositories = Depends(get_repositories),
) -> List[Clinic]:
    slugs = [s.strip() for s in (services or "").split(",") if s.strip()]
    prefix = (postcode or "").strip() or None
    clinics = await repos.clinics.search(prefix, slugs)
    logger.info("clinics.search", extra={"postcode": prefix, "services": slugs, "results": len(clinics)})
    return clinics


@router.get("/services", response_model=List[ClinicService])
async def list_services(repos: Repositories = Depends(get_repositories)) -> List[ClinicService]:
    return await repos.clinics.list_services()


@router.get("/clinics/{clinic_id}", response_model=Clinic)
async def get_clinic(clinic_id: str, repos: Repositories = Depends(get_repositories)) -> Clinic:
    clinic = await repos.clinics.get(clinic_id)
    if clinic is None:
        raise HTTPException(status_code=404, detail="Clinic not found")
    return clinic


@router.get("/clinics/{clinic_id}/vets", response_model=List[ClinicMember])
async def list_clinic_vets(clinic_id: str, repos: Repositories = Depends(get_repositories)) -> List[ClinicMember]:
    if await repos.clinics.get(clinic_id) is None:
        raise HTTPException(status_code=404, detail="Clinic not found")
    links = await repos.users.members(clinic_id, ClinicRole.VET)
    users = {u.id: u for u in await repos.users.get_many([l.user_id for l in links])}
    vets: List[ClinicMember] = []
    for link in links:
        user = users.get(link.user_id)
        if user is None or not user.active:
            continue
        vets.append(
            ClinicMember(
                user_id=user.id,
                role=link.role,
                first_name=user.first_name,
                last_name=user.last_name,
                email=user.email,
            )
        )
    return vets
