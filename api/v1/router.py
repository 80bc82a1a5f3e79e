from __future__ import annotations

from fastapi import APIRouter

from api.v1.endpoints import admin as admin_endpoints
from api.v1.endpoints import agenda as agenda_endpoints
from api.v1.endpoints import animals as animals_endpoints
from api.v1.endpoints import appointments as appointments_endpoints
from api.v1.endpoints import auth as auth_endpoints
from api.v1.endpoints import clinics as clinics_endpoints
from api.v1.endpoints import notifications as notifications_endpoints
from api.v1.endpoints import reminders as reminders_endpoints
from api.v1.endpoints import slots as slots_endpoints


api_router = APIRouter()

api_router.include_router(auth_endpoints.router)
api_router.include_router(clinics_endpoints.router)
api_router.include_router(slots_endpoints.router)
api_router.include_router(appointments_endpoints.router)
api_router.include_router(agenda_endpoints.router)
api_router.include_router(animals_endpoints.router)
api_router.include_router(reminders_endpoints.router)
api_router.include_router(notifications_endpoints.router)
api_router.include_router(admin_endpoints.router)
