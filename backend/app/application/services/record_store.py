"""RecordStore — the session's single source of truth for file records.

Holds the full unfiltered record list plus the active filters and page
cursor. Every mutation goes through the persistence port first; local state
changes only after the backend confirms, so a failed call leaves the store
exactly as it was.
"""

import asyncio
import bisect
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from app.application.interfaces import FileRecordRepository
from app.application.services.record_filter import PAGE_SIZES, Page, Pagination, RecordFilter
from app.domain.entities import (
    EDITABLE_FIELDS,
    LENDING_FIELDS,
    FileRecord,
    FileStatus,
    NewFileRecord,
    StorageUnit,
)
from app.domain.exceptions import NotFoundError, PersistenceError, ValidationError
from app.domain.status_transitions import StatusTransitionEngine

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("name", "storage_unit", "support", "folio_start", "folio_end")


@dataclass
class BatchDeleteResult:
    """Outcome of :meth:`RecordStore.remove_many`. Deletions are independent."""

    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)  # id → error message
    not_found: list[str] = field(default_factory=list)

    @property
    def succeeded_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    def summary(self) -> dict[str, int]:
        return {
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "not_found": len(self.not_found),
        }


def _sort_key(record: FileRecord) -> int:
    return record.item_number


def _coerce_storage_unit(value: Any) -> StorageUnit:
    try:
        return StorageUnit(value)
    except ValueError:
        raise ValidationError(
            f"Invalid storage unit '{value}'", fields=["storage_unit"]
        ) from None


def _check_ranges(values: dict[str, Any]) -> None:
    """Folio and date ranges must not run backwards."""
    folio_start, folio_end = values.get("folio_start"), values.get("folio_end")
    if folio_start is not None and folio_end is not None and folio_start > folio_end:
        raise ValidationError(
            "folio_start must not be greater than folio_end",
            fields=["folio_start", "folio_end"],
        )
    start, end = values.get("start_date"), values.get("end_date")
    if start is not None and end is not None and start > end:
        raise ValidationError(
            "start_date must not be after end_date", fields=["start_date", "end_date"]
        )


class RecordStore:
    """Explicitly constructed, per-session store over the ``files`` collection."""

    def __init__(
        self,
        repository: FileRecordRepository,
        transitions: StatusTransitionEngine | None = None,
        page_size: int = 10,
        page_sizes: Iterable[int] = PAGE_SIZES,
        clock: Callable[[], datetime] | None = None,
    ):
        self._repository = repository
        self._transitions = transitions or StatusTransitionEngine()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._records: list[FileRecord] = []
        self._filter = RecordFilter()
        self._pagination = Pagination(page_size=page_size, allowed_sizes=tuple(page_sizes))
        self.loaded = False

    # ── State access ─────────────────────────────────────────────────

    @property
    def records(self) -> list[FileRecord]:
        """Snapshot of the full, unfiltered list (ordered by item number)."""
        return list(self._records)

    @property
    def transitions(self) -> StatusTransitionEngine:
        return self._transitions

    @property
    def filters(self) -> dict[str, str]:
        return self._filter.filters

    @property
    def search(self) -> str:
        return self._filter.search

    def get(self, record_id: str) -> FileRecord:
        for record in self._records:
            if record.id == record_id:
                return record
        raise NotFoundError("FileRecord", record_id)

    def _index_of(self, record_id: str) -> int:
        for i, record in enumerate(self._records):
            if record.id == record_id:
                return i
        raise NotFoundError("FileRecord", record_id)

    # ── Loading ──────────────────────────────────────────────────────

    async def load_all(self) -> list[FileRecord]:
        """Replace local state with the backend collection. No automatic retry."""
        try:
            records = await self._repository.list_all()
        except PersistenceError:
            logger.warning("Failed to load file records", exc_info=True)
            raise
        self._records = sorted(records, key=_sort_key)
        self.loaded = True
        self._pagination.clamp(len(self.filtered_records()))
        logger.info("Loaded %d file records", len(self._records))
        return self.records

    # ── CRUD ─────────────────────────────────────────────────────────

    def _validate_new(self, new: NewFileRecord) -> NewFileRecord:
        missing = []
        for name in _REQUIRED_FIELDS:
            value = getattr(new, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}", fields=missing
            )
        values: dict[str, Any] = {
            "name": new.name.strip(),
            "support": new.support.strip(),
            "storage_unit": _coerce_storage_unit(new.storage_unit),
        }
        _check_ranges({
            "folio_start": new.folio_start,
            "folio_end": new.folio_end,
            "start_date": new.start_date,
            "end_date": new.end_date,
        })
        if new.item_number is None:
            values["item_number"] = max((r.item_number for r in self._records), default=0) + 1
        # New records always start available with no lending history.
        return replace(
            new,
            **values,
            status=FileStatus.DISPONIBLE,
            borrowed_to=None,
            borrowed_date=None,
            return_date=None,
            retention_reason=None,
        )

    async def add(self, new: NewFileRecord) -> FileRecord:
        """Validate, persist and append a new record."""
        prepared = self._validate_new(new)
        try:
            record_id = await self._repository.create(prepared)
        except PersistenceError:
            logger.warning("Failed to create record '%s'", prepared.name, exc_info=True)
            raise
        record = FileRecord.from_new(record_id, prepared)
        bisect.insort(self._records, record, key=_sort_key)
        self._pagination.clamp(len(self.filtered_records()))
        logger.info("Created record %s (item %d)", record_id, record.item_number)
        return record

    def _validate_patch(self, record: FileRecord, patch: dict[str, Any]) -> dict[str, Any]:
        if "id" in patch:
            raise ValidationError("The record id cannot be changed", fields=["id"])
        lending = sorted(LENDING_FIELDS & patch.keys())
        if lending:
            raise ValidationError(
                "Lending fields change only through borrow/return/retain/release",
                fields=lending,
            )
        unknown = sorted(patch.keys() - EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(unknown)}", fields=unknown)

        changes = dict(patch)
        for name in _REQUIRED_FIELDS:
            if name in changes:
                value = changes[name]
                if value is None or (isinstance(value, str) and not value.strip()):
                    raise ValidationError(f"{name} cannot be empty", fields=[name])
        if changes.get("item_number", 0) is None:
            raise ValidationError("item_number cannot be empty", fields=["item_number"])
        if "storage_unit" in changes:
            changes["storage_unit"] = _coerce_storage_unit(changes["storage_unit"])
        for name in ("name", "support"):
            if name in changes:
                changes[name] = changes[name].strip()

        merged = {
            key: changes.get(key, getattr(record, key))
            for key in ("folio_start", "folio_end", "start_date", "end_date")
        }
        _check_ranges(merged)
        return changes

    def _drop_local(self, record_id: str) -> None:
        self._records = [r for r in self._records if r.id != record_id]
        self._pagination.clamp(len(self.filtered_records()))

    async def _apply(self, record_id: str, changes: dict[str, Any]) -> FileRecord:
        """Persist ``changes`` and merge them locally once confirmed."""
        try:
            await self._repository.update(record_id, changes)
        except NotFoundError:
            # Deleted elsewhere: reconcile by dropping the stale copy.
            self._drop_local(record_id)
            logger.warning("Record %s no longer exists in the backend", record_id)
            raise
        except PersistenceError:
            logger.warning("Failed to update record %s", record_id, exc_info=True)
            raise
        index = self._index_of(record_id)
        updated = replace(self._records[index], **changes, updated_at=self._clock())
        self._records[index] = updated
        if "item_number" in changes:
            self._records.sort(key=_sort_key)
        self._pagination.clamp(len(self.filtered_records()))
        return updated

    async def update(self, record_id: str, patch: dict[str, Any]) -> FileRecord:
        """Edit descriptive/location fields of an existing record."""
        record = self.get(record_id)
        changes = self._validate_patch(record, patch)
        if not changes:
            return record
        updated = await self._apply(record_id, changes)
        logger.info("Updated record %s: %s", record_id, sorted(changes))
        return updated

    async def remove(self, record_id: str) -> bool:
        """Hard-delete a record. It stays visible until the backend confirms.

        Returns False when the backend no longer had the document; the local
        copy is dropped either way.
        """
        self.get(record_id)
        try:
            deleted = await self._repository.delete(record_id)
        except PersistenceError:
            logger.warning("Failed to delete record %s", record_id, exc_info=True)
            raise
        self._drop_local(record_id)
        logger.info("Deleted record %s", record_id)
        return deleted

    async def _remove_one(self, record_id: str, result: BatchDeleteResult) -> None:
        try:
            deleted = await self.remove(record_id)
        except NotFoundError:
            result.not_found.append(record_id)
        except PersistenceError as exc:
            result.failed[record_id] = str(exc)
        else:
            if deleted:
                result.succeeded.append(record_id)
            else:
                result.not_found.append(record_id)

    async def remove_many(self, record_ids: Iterable[str]) -> BatchDeleteResult:
        """Delete several records independently and summarise the outcome.

        Not atomic: one failing deletion does not stop the others.
        """
        result = BatchDeleteResult()
        ids = list(dict.fromkeys(record_ids))
        await asyncio.gather(*(self._remove_one(record_id, result) for record_id in ids))
        logger.info("Batch delete finished: %s", result.summary())
        return result

    # ── Status transitions ───────────────────────────────────────────

    async def borrow(self, record_id: str, borrower: str) -> FileRecord:
        record = self.get(record_id)
        updated = await self._apply(record_id, self._transitions.borrow(record, borrower))
        logger.info("Record %s borrowed by %s", record_id, updated.borrowed_to)
        return updated

    async def return_record(self, record_id: str) -> FileRecord:
        record = self.get(record_id)
        updated = await self._apply(record_id, self._transitions.return_record(record))
        logger.info("Record %s returned", record_id)
        return updated

    async def retain(self, record_id: str, reason: str) -> FileRecord:
        record = self.get(record_id)
        updated = await self._apply(record_id, self._transitions.retain(record, reason))
        logger.info("Record %s retained", record_id)
        return updated

    async def release(self, record_id: str) -> FileRecord:
        record = self.get(record_id)
        updated = await self._apply(record_id, self._transitions.release(record))
        logger.info("Record %s released", record_id)
        return updated

    # ── Filtering & pagination ───────────────────────────────────────

    def set_filter(self, field_name: str, value: str | None) -> None:
        self._filter.set(field_name, value)
        self._pagination.clamp(len(self.filtered_records()))

    def set_search(self, text: str | None) -> None:
        self._filter.set_search(text)
        self._pagination.clamp(len(self.filtered_records()))

    def clear_filters(self) -> None:
        self._filter.clear()
        self._pagination.clamp(len(self._records))

    def filtered_records(self) -> list[FileRecord]:
        """Records passing every active filter. Recomputed on each call."""
        return self._filter.apply(self._records)

    def page(self) -> Page:
        return self._pagination.slice(self.filtered_records())

    def set_page(self, page_index: int) -> Page:
        self._pagination.page_index = page_index
        return self.page()

    def set_page_size(self, page_size: int) -> Page:
        self._pagination.set_size(page_size, len(self.filtered_records()))
        return self.page()

    def first_page(self) -> Page:
        return self.set_page(0)

    def previous_page(self) -> Page:
        return self.set_page(self._pagination.page_index - 1)

    def next_page(self) -> Page:
        return self.set_page(self._pagination.page_index + 1)

    def last_page(self) -> Page:
        count = self._pagination.page_count(len(self.filtered_records()))
        return self.set_page(count - 1)
