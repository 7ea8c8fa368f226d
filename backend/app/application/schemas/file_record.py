"""Pydantic DTOs (Data Transfer Objects) for the file record registry."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from app.domain.entities import FileStatus, NewFileRecord, StorageUnit


class FileRecordCreate(BaseModel):
    """Schema for registering a new file. Lending fields are not accepted."""

    item_number: int | None = Field(None, ge=1, description="Defaults to the next free number")
    code: str | None = Field(None, max_length=100)
    name: str = Field(..., min_length=1, max_length=500, examples=["Actas 2020"])
    start_date: date | None = None
    end_date: date | None = None
    storage_unit: StorageUnit = Field(..., examples=["CAJA"])
    support: str = Field(..., min_length=1, max_length=100, examples=["PAPEL"])
    folio_start: int = Field(..., ge=0, examples=[1])
    folio_end: int = Field(..., ge=0, examples=[120])
    block: str | None = Field(None, max_length=50)
    shelf: str | None = Field(None, max_length=50)
    box_number: str | None = Field(None, max_length=50)
    folder_number: str | None = Field(None, max_length=50)
    volume_number: str | None = Field(None, max_length=50)

    def to_entity(self) -> NewFileRecord:
        return NewFileRecord(**self.model_dump())


class FileRecordUpdate(BaseModel):
    """Partial edit of descriptive/location fields — all fields optional.

    Extra keys are forwarded so the store can reject id or lending fields
    with a precise message.
    """

    item_number: int | None = Field(None, ge=1)
    code: str | None = None
    name: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    storage_unit: StorageUnit | None = None
    support: str | None = None
    folio_start: int | None = Field(None, ge=0)
    folio_end: int | None = Field(None, ge=0)
    block: str | None = None
    shelf: str | None = None
    box_number: str | None = None
    folder_number: str | None = None
    volume_number: str | None = None

    model_config = {"extra": "allow"}

    def to_patch(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class FileRecordResponse(BaseModel):
    """Schema returned to the client."""

    id: str
    item_number: int
    code: str | None
    name: str
    start_date: date | None
    end_date: date | None
    storage_unit: StorageUnit
    support: str
    folio_start: int
    folio_end: int
    block: str | None
    shelf: str | None
    box_number: str | None
    folder_number: str | None
    volume_number: str | None
    status: FileStatus
    borrowed_to: str | None
    borrowed_date: datetime | None
    return_date: datetime | None
    retention_reason: str | None
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class PageResponse(BaseModel):
    """One page of the filtered record list plus the active filter state."""

    items: list[FileRecordResponse]
    page_index: int
    page_size: int
    page_count: int
    total: int
    has_previous: bool
    has_next: bool
    filters: dict[str, str] = Field(default_factory=dict)
    search: str = ""


class FilterUpdate(BaseModel):
    """Set (or, with an empty value, clear) the filter on one field."""

    field: str = Field(..., examples=["status"])
    value: str | None = Field(None, examples=["PRESTADO"])


class SearchUpdate(BaseModel):
    text: str | None = None


class BorrowRequest(BaseModel):
    borrowed_to: str = Field(..., max_length=255, examples=["Juan Pérez"])


class RetainRequest(BaseModel):
    reason: str = Field(..., max_length=500, examples=["Auditoría interna"])


class BatchDeleteRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1)


class BatchDeleteResponse(BaseModel):
    succeeded: list[str]
    failed: dict[str, str]
    not_found: list[str]
    message: str


class ImportRowErrorSchema(BaseModel):
    row: int
    message: str


class ImportResultResponse(BaseModel):
    imported: int
    total: int
    errors: list[ImportRowErrorSchema]
    message: str
