"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import make_url

from app.config import get_settings
from app.application.services import AuthService, RecordStore, StoreSessionManager
from app.infrastructure.database import Base, engine
from app.infrastructure.database.session import async_session_factory
from app.infrastructure.database.repositories import (
    SQLAlchemyFileRecordRepository,
    SQLAlchemyUserRepository,
)
from app.infrastructure.logging.log_config import setup_logging
from app.presentation.api.v1.router import router as api_router

logger = logging.getLogger(__name__)


def _ensure_sqlite_directory(database_url: str) -> None:
    """SQLite will not create missing parent directories on its own."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


async def _seed_bootstrap_admin() -> None:
    """Create the configured administrator account if it does not exist yet.

    Idempotent — safe to call on every startup. Skipped when no bootstrap
    credentials are configured.
    """
    settings = get_settings()
    if not settings.bootstrap_admin_email or not settings.bootstrap_admin_password:
        logger.debug("No bootstrap admin configured")
        return

    async with async_session_factory() as session:
        service = AuthService(
            SQLAlchemyUserRepository(session),
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            bcrypt_rounds=settings.bcrypt_rounds,
        )
        created = await service.ensure_admin(
            settings.bootstrap_admin_email, settings.bootstrap_admin_password
        )
        await session.commit()
    if created:
        logger.info("Seeded bootstrap admin '%s'", settings.bootstrap_admin_email)
    else:
        logger.debug("Bootstrap admin already exists")


def _build_session_manager() -> StoreSessionManager:
    settings = get_settings()
    repository = SQLAlchemyFileRecordRepository(async_session_factory)
    return StoreSessionManager(
        lambda: RecordStore(
            repository,
            page_size=settings.default_page_size,
            page_sizes=settings.page_sizes,
        )
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — create tables and seed the admin before serving."""
    settings = get_settings()
    setup_logging()

    # 1. Create all database tables
    _ensure_sqlite_directory(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # 2. Bootstrap administrator
    await _seed_bootstrap_admin()

    # 3. Per-session record stores
    app.state.session_manager = _build_session_manager()

    yield

    # Shutdown
    app.state.session_manager.shutdown()
    await engine.dispose()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
