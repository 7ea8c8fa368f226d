"""Concrete repository for the ``files`` collection backed by SQLAlchemy.

Record stores live for a whole user session, so this repository is built
from a session factory and opens a short transaction per operation rather
than borrowing a request-scoped session.
"""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.interfaces import FileRecordRepository
from app.domain.entities import FileRecord, FileStatus, NewFileRecord, StorageUnit
from app.domain.exceptions import NotFoundError, PersistenceError
from app.infrastructure.database.models import FileRecordModel

_WRITABLE_COLUMNS = frozenset({
    "item_number", "code", "name", "start_date", "end_date",
    "storage_unit", "support", "folio_start", "folio_end",
    "block", "shelf", "box_number", "folder_number", "volume_number",
    "status", "borrowed_to", "borrowed_date", "return_date", "retention_reason",
})


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class SQLAlchemyFileRecordRepository(FileRecordRepository):
    """Implements the FileRecordRepository port using SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """One session + transaction; SQLAlchemy failures become PersistenceError."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as exc:
            raise PersistenceError(operation, exc) from exc

    def _to_entity(self, model: FileRecordModel) -> FileRecord:
        """Map ORM model → domain entity."""
        return FileRecord(
            id=model.id,
            item_number=model.item_number,
            code=model.code,
            name=model.name,
            start_date=model.start_date,
            end_date=model.end_date,
            storage_unit=StorageUnit(model.storage_unit),
            support=model.support,
            folio_start=model.folio_start,
            folio_end=model.folio_end,
            block=model.block,
            shelf=model.shelf,
            box_number=model.box_number,
            folder_number=model.folder_number,
            volume_number=model.volume_number,
            status=FileStatus(model.status),
            borrowed_to=model.borrowed_to,
            borrowed_date=model.borrowed_date,
            return_date=model.return_date,
            retention_reason=model.retention_reason,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, record_id: str, record: NewFileRecord) -> FileRecordModel:
        """Map a new domain record → ORM model (for creation)."""
        return FileRecordModel(
            id=record_id,
            item_number=record.item_number,
            code=record.code,
            name=record.name,
            start_date=record.start_date,
            end_date=record.end_date,
            storage_unit=_column_value(record.storage_unit),
            support=record.support,
            folio_start=record.folio_start,
            folio_end=record.folio_end,
            block=record.block,
            shelf=record.shelf,
            box_number=record.box_number,
            folder_number=record.folder_number,
            volume_number=record.volume_number,
            status=_column_value(record.status),
            borrowed_to=record.borrowed_to,
            borrowed_date=record.borrowed_date,
            return_date=record.return_date,
            retention_reason=record.retention_reason,
            created_at=record.created_at,
        )

    async def list_all(self) -> list[FileRecord]:
        stmt = select(FileRecordModel).order_by(
            FileRecordModel.item_number, FileRecordModel.created_at
        )
        async with self._transaction("list_all") as session:
            result = await session.execute(stmt)
            return [self._to_entity(row) for row in result.scalars().all()]

    async def create(self, record: NewFileRecord) -> str:
        record_id = str(uuid.uuid4())
        async with self._transaction("create") as session:
            session.add(self._to_model(record_id, record))
        return record_id

    async def update(self, record_id: str, changes: dict[str, Any]) -> None:
        unknown = set(changes) - _WRITABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns {sorted(unknown)}")
        async with self._transaction("update") as session:
            model = await session.get(FileRecordModel, record_id)
            if model is None:
                raise NotFoundError("FileRecord", record_id)
            for key, value in changes.items():
                setattr(model, key, _column_value(value))
            model.updated_at = datetime.now(timezone.utc)

    async def delete(self, record_id: str) -> bool:
        async with self._transaction("delete") as session:
            model = await session.get(FileRecordModel, record_id)
            if model is None:
                return False
            await session.delete(model)
            return True
