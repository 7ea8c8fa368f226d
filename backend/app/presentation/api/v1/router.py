"""Versioned API router mounted by the application factory at ``/api/v1``."""

from fastapi import APIRouter

from app.presentation.api.v1.endpoints.auth import router as auth_router
from app.presentation.api.v1.endpoints.files import router as files_router
from app.presentation.api.v1.endpoints.health import router as health_router

router = APIRouter(prefix="/api/v1")
for endpoint_router in (health_router, auth_router, files_router):
    router.include_router(endpoint_router)
