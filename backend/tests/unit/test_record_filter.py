"""Unit tests for record filtering and pagination."""

from datetime import date

import pytest

from app.application.services import PAGE_SIZES, Pagination, RecordFilter
from app.domain.entities import FileRecord, FileStatus, StorageUnit
from app.domain.exceptions import ValidationError


def _record(item: int, name: str, **overrides) -> FileRecord:
    values = dict(
        id=f"rec-{item}",
        item_number=item,
        name=name,
        storage_unit=StorageUnit.CAJA,
        support="PAPEL",
        folio_start=1,
        folio_end=10,
    )
    values.update(overrides)
    return FileRecord(**values)


@pytest.fixture
def records() -> list[FileRecord]:
    return [
        _record(1, "Actas de Consejo", code="DOC001", start_date=date(2020, 1, 1)),
        _record(2, "Correspondencia", status=FileStatus.PRESTADO, borrowed_to="Ana Ruiz"),
        _record(3, "Actas de Comité", storage_unit=StorageUnit.TOMO, block="A1"),
        _record(4, "Informes", status=FileStatus.RETENIDO, retention_reason="Auditoría"),
    ]


def test_empty_filter_keeps_everything(records):
    flt = RecordFilter()
    assert flt.is_empty
    assert flt.apply(records) == records


def test_substring_match_is_case_insensitive(records):
    flt = RecordFilter()
    flt.set("name", "ACTAS")
    assert [r.item_number for r in flt.apply(records)] == [1, 3]


def test_status_filter_returns_only_borrowed(records):
    flt = RecordFilter()
    flt.set("status", "PRESTADO")
    assert [r.id for r in flt.apply(records)] == ["rec-2"]


def test_filters_are_anded(records):
    flt = RecordFilter()
    flt.set("name", "actas")
    flt.set("storage_unit", "tomo")
    assert [r.item_number for r in flt.apply(records)] == [3]


def test_adding_a_filter_never_grows_the_result(records):
    flt = RecordFilter()
    flt.set("name", "a")
    before = flt.apply(records)
    flt.set("block", "a1")
    after = flt.apply(records)
    assert set(r.id for r in after) <= set(r.id for r in before)


def test_empty_value_removes_filter(records):
    flt = RecordFilter()
    flt.set("name", "Actas")
    flt.set("name", "  ")
    assert flt.filters == {}
    assert len(flt.apply(records)) == len(records)


def test_missing_value_never_matches(records):
    flt = RecordFilter()
    flt.set("code", "doc")
    assert [r.item_number for r in flt.apply(records)] == [1]


def test_numeric_and_date_fields_match_as_text(records):
    flt = RecordFilter()
    flt.set("start_date", "2020-01")
    assert [r.item_number for r in flt.apply(records)] == [1]
    flt.clear()
    flt.set("item_number", "4")
    assert [r.item_number for r in flt.apply(records)] == [4]


def test_unknown_field_is_rejected():
    with pytest.raises(ValidationError):
        RecordFilter().set("colour", "red")


def test_search_matches_any_field_and_ands_with_filters(records):
    flt = RecordFilter()
    flt.set_search("auditoría")
    assert [r.item_number for r in flt.apply(records)] == [4]
    flt.set_search("ana")
    flt.set("status", "disponible")
    assert flt.apply(records) == []


def test_clear_drops_filters_and_search(records):
    flt = RecordFilter()
    flt.set("name", "x")
    flt.set_search("y")
    flt.clear()
    assert flt.is_empty


def test_page_count_and_slice():
    items = [_record(i, f"Serie {i}") for i in range(1, 26)]
    pagination = Pagination(page_size=10)
    assert pagination.page_count(25) == 3
    assert pagination.page_count(0) == 0

    pagination.page_index = 2
    page = pagination.slice(items)
    assert [r.item_number for r in page.items] == [21, 22, 23, 24, 25]
    assert page.has_previous and not page.has_next


def test_clamp_keeps_index_in_range():
    pagination = Pagination(page_size=10, page_index=5)
    assert pagination.clamp(15) == 1
    assert pagination.clamp(0) == 0
    pagination.page_index = -3
    assert pagination.clamp(30) == 0


def test_set_size_keeps_first_visible_row():
    pagination = Pagination(page_size=10, page_index=3)
    pagination.set_size(20, 100)
    assert pagination.page_size == 20
    assert pagination.page_index == 1


def test_page_size_must_be_allowed():
    assert PAGE_SIZES == (10, 20, 30, 40, 50)
    with pytest.raises(ValidationError):
        Pagination(page_size=15)
    pagination = Pagination()
    with pytest.raises(ValidationError):
        pagination.set_size(7, 10)


def test_status_filter_with_two_borrowed_of_five():
    records = [
        _record(i, f"Serie {i}", status=status, borrowed_to="Ana" if status is FileStatus.PRESTADO else None)
        for i, status in enumerate(
            [FileStatus.PRESTADO, FileStatus.DISPONIBLE, FileStatus.PRESTADO,
             FileStatus.DISPONIBLE, FileStatus.DISPONIBLE],
            start=1,
        )
    ]
    flt = RecordFilter()
    flt.set("status", "PRESTADO")
    assert [r.item_number for r in flt.apply(records)] == [1, 3]
