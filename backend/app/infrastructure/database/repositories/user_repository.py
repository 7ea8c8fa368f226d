"""Concrete repository implementation for UserAccount backed by SQLAlchemy."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces import UserRepository
from app.domain.entities import UserAccount, UserRole
from app.infrastructure.database.models import UserAccountModel


class SQLAlchemyUserRepository(UserRepository):
    """Implements the UserRepository port using SQLAlchemy async sessions."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: UserAccountModel) -> UserAccount:
        return UserAccount(
            id=model.id,
            email=model.email,
            password_hash=model.password_hash,
            role=UserRole(model.role),
            display_name=model.display_name,
            is_active=model.is_active,
            created_at=model.created_at,
        )

    async def get_by_id(self, user_id: str) -> UserAccount | None:
        result = await self._session.get(UserAccountModel, user_id)
        return self._to_entity(result) if result else None

    async def get_by_email(self, email: str) -> UserAccount | None:
        result = await self._session.execute(
            select(UserAccountModel).where(func.lower(UserAccountModel.email) == email.lower())
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, user: UserAccount) -> UserAccount:
        model = UserAccountModel(
            id=user.id,
            email=user.email,
            password_hash=user.password_hash,
            role=user.role.value,
            display_name=user.display_name,
            is_active=user.is_active,
            created_at=user.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)
