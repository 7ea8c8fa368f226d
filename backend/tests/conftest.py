"""Shared fixtures: an in-memory FileRecordRepository with injectable failures."""

from dataclasses import replace
from typing import Any

import pytest

from app.application.interfaces import FileRecordRepository
from app.domain.entities import FileRecord, NewFileRecord
from app.domain.exceptions import NotFoundError, PersistenceError


class FakeFileRecordRepository(FileRecordRepository):
    """In-memory fake repository for unit testing.

    Add ``(operation, record_id)`` to ``fail_on`` to make that call raise
    ``PersistenceError``; a ``None`` id fails every call of the operation.
    """

    def __init__(self):
        self._records: dict[str, FileRecord] = {}
        self._next_id = 1
        self.fail_on: set[tuple[str, str | None]] = set()

    def _check(self, operation: str, record_id: str | None = None) -> None:
        if (operation, record_id) in self.fail_on or (operation, None) in self.fail_on:
            raise PersistenceError(operation, RuntimeError("backend unavailable"))

    async def list_all(self) -> list[FileRecord]:
        self._check("list_all")
        return sorted(self._records.values(), key=lambda r: r.item_number)

    async def create(self, record: NewFileRecord) -> str:
        self._check("create")
        record_id = f"id-{self._next_id}"
        self._next_id += 1
        self._records[record_id] = FileRecord.from_new(record_id, record)
        return record_id

    async def update(self, record_id: str, changes: dict[str, Any]) -> None:
        self._check("update", record_id)
        if record_id not in self._records:
            raise NotFoundError("FileRecord", record_id)
        self._records[record_id] = replace(self._records[record_id], **changes)

    async def delete(self, record_id: str) -> bool:
        self._check("delete", record_id)
        return self._records.pop(record_id, None) is not None


@pytest.fixture
def repository() -> FakeFileRecordRepository:
    return FakeFileRecordRepository()
