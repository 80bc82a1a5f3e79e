from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from api.deps import get_repositories
from models.animal import Animal
from schemas.animals import AnimalCreate, AnimalHistory
from scheduling.ports import Repositories
from services.animals import create_animal, get_animal_history, list_owner_animals
from services.security import CurrentUser, get_current_user


router = APIRouter(prefix="/animals", tags=["animals"])


@router.post("", response_model=Animal, status_code=status.HTTP_201_CREATED)
async def add_animal(
    payload: AnimalCreate,
    current_user: CurrentUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
) -> Animal:
    return await create_animal(repos, current_user.id, payload.model_dump())


@router.get("/me", response_model=List[Animal])
async def my_animals(
    clinic_id: Optional[str] = Query(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
) -> List[Animal]:
    return await list_owner_animals(repos, current_user.id, clinic_id)


@router.get("/{animal_id}/history", response_model=AnimalHistory)
async def animal_history(
    animal_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
) -> AnimalHistory:
    animal, appointments = await get_animal_history(repos, current_user.id, animal_id)
    return AnimalHistory(animal=animal, appointments=appointments)
