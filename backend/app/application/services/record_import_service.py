"""Bulk import of file records from an Excel workbook."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from app.application.services.record_store import RecordStore
from app.domain.entities import NewFileRecord, StorageUnit
from app.domain.exceptions import PersistenceError, ValidationError
from app.infrastructure.export import read_import_rows
from app.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

DEFAULT_STORAGE_UNIT = StorageUnit.CARPETA
DEFAULT_SUPPORT = "PAPEL"
DEFAULT_FOLIO = 1


@dataclass
class ImportRowError:
    row: int
    message: str


@dataclass
class ImportSummary:
    """Per-file outcome: rows created and rows rejected (with reasons)."""

    imported: int = 0
    errors: list[ImportRowError] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.imported + len(self.errors)


def _clean_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_int(value: Any, field_name: str, default: int | None) -> int | None:
    if value is None or str(value).strip() == "":
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number, got '{value}'", fields=[field_name]) from None
    if not number.is_integer():
        raise ValidationError(f"{field_name} must be a whole number, got '{value}'", fields=[field_name])
    return int(number)


def _to_date(value: Any, field_name: str) -> date | None:
    if value is None or str(value).strip() == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError(
            f"{field_name} must use the YYYY-MM-DD format, got '{value}'", fields=[field_name]
        ) from None


def row_to_new_record(row: dict[str, Any]) -> NewFileRecord:
    """Map one workbook row to a ``NewFileRecord``, applying template defaults."""
    return NewFileRecord(
        item_number=_to_int(row.get("item_number"), "item_number", None),
        code=_clean_str(row.get("code")),
        name=_clean_str(row.get("name")) or "",
        start_date=_to_date(row.get("start_date"), "start_date"),
        end_date=_to_date(row.get("end_date"), "end_date"),
        block=_clean_str(row.get("block")),
        shelf=_clean_str(row.get("shelf")),
        storage_unit=(_clean_str(row.get("storage_unit")) or DEFAULT_STORAGE_UNIT.value).upper(),
        support=(_clean_str(row.get("support")) or DEFAULT_SUPPORT).upper(),
        folio_start=_to_int(row.get("folio_start"), "folio_start", DEFAULT_FOLIO),
        folio_end=_to_int(row.get("folio_end"), "folio_end", DEFAULT_FOLIO),
    )


class RecordImportService:
    """Reads a workbook and adds each row through the session's RecordStore.

    A bad row never aborts the import; it is reported in the summary.
    """

    def __init__(self, reader: Callable[[bytes], list[dict[str, Any]]] = read_import_rows):
        self._reader = reader
        self._log = PipelineLogger("RecordImportService")

    async def import_workbook(
        self, store: RecordStore, content: bytes, filename: str = "workbook"
    ) -> ImportSummary:
        with self._log.timed_step(PipelineStage.READ, f"Reading {filename}"):
            rows = self._reader(content)
        self._log.detail("Rows found", count=len(rows))

        summary = ImportSummary()
        with self._log.timed_step(PipelineStage.PERSIST, "Adding records", rows=len(rows)):
            for row in rows:
                row_number = row.get("_row", 0)
                try:
                    new = row_to_new_record(row)
                    await store.add(new)
                except (ValidationError, PersistenceError) as exc:
                    summary.errors.append(ImportRowError(row=row_number, message=str(exc)))
                    self._log.step_error(PipelineStage.VALIDATE, f"Row {row_number} rejected", error=exc)
                else:
                    summary.imported += 1

        with self._log.timed_step(PipelineStage.RELOAD, "Reloading records"):
            await store.load_all()

        self._log.stats(imported=summary.imported, rejected=len(summary.errors))
        self._log.step_complete(PipelineStage.COMPLETE, f"Import of {filename} finished")
        return summary
