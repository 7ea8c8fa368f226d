"""FastAPI dependency injection — wires infrastructure to application layer."""

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.application.services import (
    AuthService,
    RecordImportService,
    RecordStore,
    StoreSessionManager,
)
from app.domain.entities import UserAccount
from app.domain.exceptions import AuthenticationError, NotFoundError, PersistenceError
from app.infrastructure.database.session import get_db_session
from app.infrastructure.database.repositories import SQLAlchemyUserRepository

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentSession:
    """The signed-in user plus the session id and expiry carried by their token."""

    user: UserAccount
    session_id: str
    expires_at: datetime | None = None


async def get_auth_service(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AuthService, None]:
    """Provides an AuthService with its user repository wired up."""
    settings = get_settings()
    yield AuthService(
        SQLAlchemyUserRepository(session),
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        token_expire_minutes=settings.access_token_expire_minutes,
        bcrypt_rounds=settings.bcrypt_rounds,
    )


def get_session_manager(request: Request) -> StoreSessionManager:
    """The application-wide StoreSessionManager created during lifespan."""
    return request.app.state.session_manager


def get_import_service() -> RecordImportService:
    return RecordImportService()


async def get_current_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
    manager: StoreSessionManager = Depends(get_session_manager),
) -> CurrentSession:
    """Resolve the bearer token to a user. Any failure is a 401.

    Tokens of a signed-out session are rejected until they expire.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        authenticated = await auth_service.authenticate(credentials.credentials)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    if manager.is_closed(authenticated.session_id):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session has been closed",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return CurrentSession(
        user=authenticated.user,
        session_id=authenticated.session_id,
        expires_at=authenticated.expires_at,
    )


async def require_admin(
    current: CurrentSession = Depends(get_current_session),
) -> CurrentSession:
    """Only administrators may change records or accounts."""
    if not current.user.can_edit():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current


async def get_record_store(
    current: CurrentSession = Depends(get_current_session),
    manager: StoreSessionManager = Depends(get_session_manager),
) -> RecordStore:
    """The caller's session store, opened (and loaded) on first use."""
    try:
        return await manager.open(current.session_id, current.expires_at)
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session is no longer open",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except PersistenceError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
