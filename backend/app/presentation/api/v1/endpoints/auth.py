"""Sign-in, sign-out and account endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from app.application.schemas.auth import LoginRequest, TokenResponse, UserCreate, UserResponse
from app.application.services import AuthService, StoreSessionManager
from app.domain.entities import UserAccount
from app.domain.exceptions import AuthenticationError, PersistenceError, ValidationError
from app.infrastructure.dependencies import (
    CurrentSession,
    get_auth_service,
    get_current_session,
    get_session_manager,
    require_admin,
)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _to_response(user: UserAccount) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        role=user.role,
        display_name=user.display_name,
        is_active=user.is_active,
        created_at=user.created_at,
        can_edit=user.can_edit(),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    manager: StoreSessionManager = Depends(get_session_manager),
) -> TokenResponse:
    """Exchange credentials for a bearer token and open the session's store."""
    try:
        result = await auth_service.login(data.email, data.password)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        await manager.open(result.session_id, result.expires_at)
    except PersistenceError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return TokenResponse(access_token=result.token, user=_to_response(result.user))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    current: CurrentSession = Depends(get_current_session),
    manager: StoreSessionManager = Depends(get_session_manager),
) -> None:
    """Drop the session's store; its token is refused from now on."""
    manager.close(current.session_id, current.expires_at)


@router.get("/me", response_model=UserResponse)
async def me(current: CurrentSession = Depends(get_current_session)) -> UserResponse:
    return _to_response(current.user)


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_user(
    data: UserCreate,
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Register another account (admin only)."""
    try:
        user = await auth_service.register(
            data.email, data.password, role=data.role, display_name=data.display_name
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": e.message, "fields": e.fields},
        )
    return _to_response(user)
