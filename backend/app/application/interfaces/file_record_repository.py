"""Abstract repository interface (port) for the ``files`` collection."""

from abc import ABC, abstractmethod
from typing import Any

from app.domain.entities import FileRecord, NewFileRecord


class FileRecordRepository(ABC):
    """Port for file record persistence — implemented in the infrastructure layer.

    Every method may raise ``PersistenceError`` wrapping the backend failure.
    """

    @abstractmethod
    async def list_all(self) -> list[FileRecord]:
        """Return the whole collection ordered by ``item_number`` ascending."""
        ...

    @abstractmethod
    async def create(self, record: NewFileRecord) -> str:
        """Persist a new record and return its generated id."""
        ...

    @abstractmethod
    async def update(self, record_id: str, changes: dict[str, Any]) -> None:
        """Apply a partial update. Raises ``NotFoundError`` for unknown ids."""
        ...

    @abstractmethod
    async def delete(self, record_id: str) -> bool:
        """Delete a record. Returns True if deleted, False if not found."""
        ...
