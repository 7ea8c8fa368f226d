"""Abstract repository interface (port) for registry users."""

from abc import ABC, abstractmethod

from app.domain.entities import UserAccount


class UserRepository(ABC):
    """Port for user account persistence."""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> UserAccount | None:
        ...

    @abstractmethod
    async def get_by_email(self, email: str) -> UserAccount | None:
        """Look up an account by its (case-insensitive) email."""
        ...

    @abstractmethod
    async def create(self, user: UserAccount) -> UserAccount:
        ...
