"""Health check endpoint — no authentication, always available."""

from fastapi import APIRouter, Request

from app.config import get_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Returns the current application health status."""
    settings = get_settings()
    manager = getattr(request.app.state, "session_manager", None)
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
        "open_sessions": manager.session_count if manager is not None else 0,
    }
