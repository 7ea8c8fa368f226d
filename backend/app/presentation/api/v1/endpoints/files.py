"""File record registry endpoints (records, lending, spreadsheet exchange)."""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response, UploadFile, status

from app.config import get_settings
from app.application.schemas.file_record import (
    BatchDeleteRequest,
    BatchDeleteResponse,
    BorrowRequest,
    FileRecordCreate,
    FileRecordResponse,
    FileRecordUpdate,
    FilterUpdate,
    ImportResultResponse,
    ImportRowErrorSchema,
    PageResponse,
    RetainRequest,
    SearchUpdate,
)
from app.application.services import RecordImportService, RecordStore
from app.domain.exceptions import (
    AlreadyBorrowedError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.infrastructure.dependencies import (
    get_import_service,
    get_record_store,
    require_admin,
)
from app.infrastructure.export import (
    PDF_MEDIA_TYPE,
    XLSX_MEDIA_TYPE,
    build_import_template,
    export_excel,
    export_filename,
    export_pdf,
    filter_by_year,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["Files"])


# ── Helpers ──────────────────────────────────────────────────────────

def _to_http(exc: Exception) -> HTTPException:
    """Translate a domain exception into the matching HTTP error."""
    if isinstance(exc, AlreadyBorrowedError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "code": "already_borrowed",
                "message": str(exc),
                "borrowed_to": exc.borrowed_to,
                "can_return": True,
            },
        )
    if isinstance(exc, ValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": exc.message, "fields": exc.fields},
        )
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, InvalidTransitionError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


_DOMAIN_ERRORS = (ValidationError, NotFoundError, InvalidTransitionError, PersistenceError)


def _page_response(store: RecordStore) -> PageResponse:
    page = store.page()
    return PageResponse(
        items=[FileRecordResponse.model_validate(r, from_attributes=True) for r in page.items],
        page_index=page.page_index,
        page_size=page.page_size,
        page_count=page.page_count,
        total=page.total,
        has_previous=page.has_previous,
        has_next=page.has_next,
        filters=store.filters,
        search=store.search,
    )


# ── Listing, filtering & pagination ──────────────────────────────────

@router.get("", response_model=PageResponse)
async def list_files(
    page: int | None = Query(None, ge=0, description="0-based page index"),
    page_size: int | None = Query(None, description="One of the allowed page sizes"),
    store: RecordStore = Depends(get_record_store),
) -> PageResponse:
    """Current page of the session's filtered record list."""
    try:
        if page_size is not None:
            store.set_page_size(page_size)
        if page is not None:
            store.set_page(page)
    except ValidationError as e:
        raise _to_http(e)
    return _page_response(store)


@router.post("/reload", response_model=PageResponse)
async def reload_files(store: RecordStore = Depends(get_record_store)) -> PageResponse:
    """Re-read the whole collection from the backend."""
    try:
        await store.load_all()
    except PersistenceError as e:
        raise _to_http(e)
    return _page_response(store)


@router.put("/filters", response_model=PageResponse)
async def set_filter(
    data: FilterUpdate,
    store: RecordStore = Depends(get_record_store),
) -> PageResponse:
    """Set one field filter; an empty value removes it."""
    try:
        store.set_filter(data.field, data.value)
    except ValidationError as e:
        raise _to_http(e)
    return _page_response(store)


@router.delete("/filters", response_model=PageResponse)
async def clear_filters(store: RecordStore = Depends(get_record_store)) -> PageResponse:
    """Remove every field filter and the search text."""
    store.clear_filters()
    return _page_response(store)


@router.put("/search", response_model=PageResponse)
async def set_search(
    data: SearchUpdate,
    store: RecordStore = Depends(get_record_store),
) -> PageResponse:
    """Search all fields at once (ANDed with the field filters)."""
    store.set_search(data.text)
    return _page_response(store)


# ── Export / import ──────────────────────────────────────────────────

@router.get("/export")
async def export_files(
    export_format: Literal["xlsx", "pdf"] = Query("xlsx", alias="format"),
    year: int | None = Query(None, ge=1000, le=9999),
    store: RecordStore = Depends(get_record_store),
) -> Response:
    """Download the filtered list as an Excel workbook or a PDF table."""
    records = filter_by_year(store.filtered_records(), year)
    if export_format == "pdf":
        content, media_type = export_pdf(records, year), PDF_MEDIA_TYPE
    else:
        content, media_type = export_excel(records, year), XLSX_MEDIA_TYPE
    filename = export_filename(export_format, year)
    logger.info("Exported %d records to %s", len(records), filename)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/import/template")
async def download_import_template() -> Response:
    """Empty workbook with the importable columns and instructions."""
    return Response(
        content=build_import_template(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="plantilla_archivos.xlsx"'},
    )


@router.post("/import", response_model=ImportResultResponse, dependencies=[Depends(require_admin)])
async def import_files(
    file: UploadFile,
    store: RecordStore = Depends(get_record_store),
    service: RecordImportService = Depends(get_import_service),
) -> ImportResultResponse:
    """Bulk-create records from an uploaded .xlsx workbook."""
    filename = file.filename or "workbook.xlsx"
    if not filename.lower().endswith((".xlsx", ".xlsm")):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Expected an .xlsx file",
        )
    content = await file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file")
    max_bytes = get_settings().max_import_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {get_settings().max_import_size_mb} MB",
        )

    try:
        summary = await service.import_workbook(store, content, filename)
    except _DOMAIN_ERRORS as e:
        raise _to_http(e)
    return ImportResultResponse(
        imported=summary.imported,
        total=summary.total,
        errors=[ImportRowErrorSchema(row=err.row, message=err.message) for err in summary.errors],
        message=f"Imported {summary.imported} of {summary.total} row(s)",
    )


# ── Single records ───────────────────────────────────────────────────

@router.get("/{record_id}", response_model=FileRecordResponse)
async def get_file(
    record_id: str,
    store: RecordStore = Depends(get_record_store),
) -> FileRecordResponse:
    try:
        record = store.get(record_id)
    except NotFoundError as e:
        raise _to_http(e)
    return FileRecordResponse.model_validate(record, from_attributes=True)


@router.post(
    "",
    response_model=FileRecordResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_file(
    data: FileRecordCreate,
    store: RecordStore = Depends(get_record_store),
) -> FileRecordResponse:
    """Register a new file; it starts DISPONIBLE."""
    try:
        record = await store.add(data.to_entity())
    except _DOMAIN_ERRORS as e:
        raise _to_http(e)
    return FileRecordResponse.model_validate(record, from_attributes=True)


@router.patch("/{record_id}", response_model=FileRecordResponse, dependencies=[Depends(require_admin)])
async def update_file(
    record_id: str,
    data: FileRecordUpdate,
    store: RecordStore = Depends(get_record_store),
) -> FileRecordResponse:
    """Edit descriptive or location fields."""
    try:
        record = await store.update(record_id, data.to_patch())
    except _DOMAIN_ERRORS as e:
        raise _to_http(e)
    return FileRecordResponse.model_validate(record, from_attributes=True)


@router.delete(
    "/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_file(
    record_id: str,
    store: RecordStore = Depends(get_record_store),
) -> None:
    """Hard-delete a record."""
    try:
        deleted = await store.remove(record_id)
    except _DOMAIN_ERRORS as e:
        raise _to_http(e)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"FileRecord with id '{record_id}' was already removed",
        )


@router.post("/batch-delete", response_model=BatchDeleteResponse, dependencies=[Depends(require_admin)])
async def batch_delete_files(
    data: BatchDeleteRequest,
    store: RecordStore = Depends(get_record_store),
) -> BatchDeleteResponse:
    """Delete several records; failures are reported per id."""
    result = await store.remove_many(data.ids)
    counts = result.summary()
    return BatchDeleteResponse(
        succeeded=result.succeeded,
        failed=result.failed,
        not_found=result.not_found,
        message=(
            f"Deleted {counts['succeeded']} record(s), {counts['failed']} failed, "
            f"{counts['not_found']} not found"
        ),
    )


# ── Lending ──────────────────────────────────────────────────────────

@router.post("/{record_id}/borrow", response_model=FileRecordResponse, dependencies=[Depends(require_admin)])
async def borrow_file(
    record_id: str,
    data: BorrowRequest,
    store: RecordStore = Depends(get_record_store),
) -> FileRecordResponse:
    try:
        record = await store.borrow(record_id, data.borrowed_to)
    except _DOMAIN_ERRORS as e:
        raise _to_http(e)
    return FileRecordResponse.model_validate(record, from_attributes=True)


@router.post("/{record_id}/return", response_model=FileRecordResponse, dependencies=[Depends(require_admin)])
async def return_file(
    record_id: str,
    store: RecordStore = Depends(get_record_store),
) -> FileRecordResponse:
    try:
        record = await store.return_record(record_id)
    except _DOMAIN_ERRORS as e:
        raise _to_http(e)
    return FileRecordResponse.model_validate(record, from_attributes=True)


@router.post("/{record_id}/retain", response_model=FileRecordResponse, dependencies=[Depends(require_admin)])
async def retain_file(
    record_id: str,
    data: RetainRequest,
    store: RecordStore = Depends(get_record_store),
) -> FileRecordResponse:
    try:
        record = await store.retain(record_id, data.reason)
    except _DOMAIN_ERRORS as e:
        raise _to_http(e)
    return FileRecordResponse.model_validate(record, from_attributes=True)


@router.post("/{record_id}/release", response_model=FileRecordResponse, dependencies=[Depends(require_admin)])
async def release_file(
    record_id: str,
    store: RecordStore = Depends(get_record_store),
) -> FileRecordResponse:
    try:
        record = await store.release(record_id)
    except _DOMAIN_ERRORS as e:
        raise _to_http(e)
    return FileRecordResponse.model_validate(record, from_attributes=True)
