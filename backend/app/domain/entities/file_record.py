"""Domain entity for archival file records — one row of the document registry."""

from dataclasses import dataclass, field, fields
from datetime import date, datetime, timezone
from enum import Enum


class FileStatus(str, Enum):
    """Lending state of a record. Exactly one holds at a time."""

    DISPONIBLE = "DISPONIBLE"
    PRESTADO = "PRESTADO"
    RETENIDO = "RETENIDO"


class StorageUnit(str, Enum):
    """Physical containment type (unidad de conservación)."""

    CAJA = "CAJA"
    CARPETA = "CARPETA"
    TOMO = "TOMO"
    OTRO = "OTRO"


# Fields owned by the status transitions; plain edits may not touch them.
LENDING_FIELDS = frozenset({
    "status",
    "borrowed_to",
    "borrowed_date",
    "return_date",
    "retention_reason",
})


@dataclass
class NewFileRecord:
    """Input for creating a record. The persistence layer assigns the id."""

    name: str
    storage_unit: StorageUnit
    support: str
    folio_start: int
    folio_end: int
    item_number: int | None = None
    code: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    block: str | None = None
    shelf: str | None = None
    box_number: str | None = None
    folder_number: str | None = None
    volume_number: str | None = None
    status: FileStatus = FileStatus.DISPONIBLE
    borrowed_to: str | None = None
    borrowed_date: datetime | None = None
    return_date: datetime | None = None
    retention_reason: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class FileRecord:
    """A persisted archival series entry.

    The lending invariant: ``borrowed_to`` is set iff status is PRESTADO and
    ``retention_reason`` is set iff status is RETENIDO. Status changes go
    through :class:`~app.domain.status_transitions.StatusTransitionEngine`.
    """

    id: str
    item_number: int
    name: str
    storage_unit: StorageUnit
    support: str
    folio_start: int
    folio_end: int
    code: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    block: str | None = None
    shelf: str | None = None
    box_number: str | None = None
    folder_number: str | None = None
    volume_number: str | None = None
    status: FileStatus = FileStatus.DISPONIBLE
    borrowed_to: str | None = None
    borrowed_date: datetime | None = None
    return_date: datetime | None = None
    retention_reason: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime | None = None

    @classmethod
    def from_new(cls, record_id: str, new: NewFileRecord) -> "FileRecord":
        """Build the persisted shape of a freshly created record."""
        values = {f.name: getattr(new, f.name) for f in fields(NewFileRecord)}
        return cls(id=record_id, **values)

    @property
    def is_borrowed(self) -> bool:
        return self.status is FileStatus.PRESTADO

    @property
    def is_retained(self) -> bool:
        return self.status is FileStatus.RETENIDO


EDITABLE_FIELDS = frozenset(
    f.name for f in fields(FileRecord)
) - LENDING_FIELDS - {"id", "created_at", "updated_at"}
