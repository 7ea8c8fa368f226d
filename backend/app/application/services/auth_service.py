"""Authentication service — sign-in, token validation and role resolution."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from app.application.interfaces import UserRepository
from app.domain.entities import UserAccount, UserRole
from app.domain.exceptions import AuthenticationError, ValidationError
from app.infrastructure.security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


@dataclass
class LoginResult:
    """A successful sign-in: the account, its bearer token and session id."""

    user: UserAccount
    token: str
    session_id: str
    expires_at: datetime


@dataclass
class AuthenticatedSession:
    """A validated bearer token: its user, session id and expiry."""

    user: UserAccount
    session_id: str
    expires_at: datetime | None


class AuthService:
    """Resolves credentials to users and roles. Does not guard record operations."""

    def __init__(
        self,
        repository: UserRepository,
        secret_key: str,
        algorithm: str = "HS256",
        token_expire_minutes: int = 480,
        bcrypt_rounds: int = 12,
    ):
        self._repository = repository
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._token_expire_minutes = token_expire_minutes
        self._bcrypt_rounds = bcrypt_rounds

    async def login(self, email: str, password: str) -> LoginResult:
        user = await self._repository.get_by_email(email.strip().lower())
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login for %s", email)
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("Account is inactive")

        session_id = str(uuid.uuid4())
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=self._token_expire_minutes)
        token = create_access_token(
            {"sub": user.id, "role": user.role.value, "sid": session_id},
            self._secret_key,
            algorithm=self._algorithm,
            expires_at=expires_at,
        )
        logger.info("User %s signed in (role=%s)", user.email, user.role.value)
        return LoginResult(user=user, token=token, session_id=session_id, expires_at=expires_at)

    async def authenticate(self, token: str) -> AuthenticatedSession:
        """Validate a bearer token and resolve its user and session."""
        payload = decode_token(token, self._secret_key, self._algorithm)
        user_id, session_id = payload.get("sub"), payload.get("sid")
        if not user_id or not session_id:
            raise AuthenticationError("Invalid token payload")
        user = await self._repository.get_by_id(user_id)
        if user is None:
            raise AuthenticationError("User not found")
        if not user.is_active:
            raise AuthenticationError("Account is inactive")
        exp = payload.get("exp")
        expires_at = datetime.fromtimestamp(exp, timezone.utc) if exp is not None else None
        return AuthenticatedSession(user=user, session_id=session_id, expires_at=expires_at)

    async def register(
        self,
        email: str,
        password: str,
        role: UserRole = UserRole.VIEWER,
        display_name: str | None = None,
    ) -> UserAccount:
        email = email.strip().lower()
        if "@" not in email:
            raise ValidationError("A valid email is required", fields=["email"])
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must have at least {MIN_PASSWORD_LENGTH} characters",
                fields=["password"],
            )
        if await self._repository.get_by_email(email) is not None:
            raise ValidationError(f"User '{email}' already exists", fields=["email"])

        user = UserAccount(
            email=email,
            password_hash=hash_password(password, rounds=self._bcrypt_rounds),
            role=role,
            display_name=display_name or email.split("@")[0],
        )
        created = await self._repository.create(user)
        logger.info("Registered user %s (role=%s)", created.email, created.role.value)
        return created

    async def ensure_admin(self, email: str, password: str) -> bool:
        """Create the bootstrap administrator if missing. Returns True if created."""
        if await self._repository.get_by_email(email.strip().lower()) is not None:
            return False
        await self.register(email, password, role=UserRole.ADMIN)
        return True
