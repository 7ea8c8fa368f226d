"""Unit tests for the RecordStore."""

from datetime import date, datetime, timezone

import pytest

from app.application.services import RecordStore
from app.domain.entities import FileStatus, NewFileRecord, StorageUnit
from app.domain.exceptions import (
    AlreadyBorrowedError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.domain.status_transitions import StatusTransitionEngine

NOW = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def _new(name: str = "Actas", **overrides) -> NewFileRecord:
    values = dict(
        name=name,
        storage_unit=StorageUnit.CAJA,
        support="PAPEL",
        folio_start=1,
        folio_end=10,
    )
    values.update(overrides)
    return NewFileRecord(**values)


@pytest.fixture
def store(repository) -> RecordStore:
    return RecordStore(
        repository,
        transitions=StatusTransitionEngine(clock=lambda: NOW),
        clock=lambda: NOW,
    )


# ── Loading ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_load_all_on_empty_collection(store: RecordStore):
    assert await store.load_all() == []
    assert store.loaded
    page = store.page()
    assert page.items == [] and page.page_count == 0 and page.page_index == 0


@pytest.mark.asyncio
async def test_load_all_failure_keeps_previous_state(store, repository):
    await store.add(_new("Actas"))
    repository.fail_on.add(("list_all", None))
    with pytest.raises(PersistenceError):
        await store.load_all()
    assert [r.name for r in store.records] == ["Actas"]


# ── Add ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_add_starts_available_and_is_visible(store: RecordStore):
    record = await store.add(
        _new("Actas", storage_unit=StorageUnit.CARPETA, item_number=1, folio_start=1, folio_end=10)
    )
    assert record.id
    assert record.status is FileStatus.DISPONIBLE
    assert store.records == [record]
    assert store.page().items == [record]


@pytest.mark.asyncio
async def test_add_then_reload_round_trip(store: RecordStore):
    created = await store.add(_new("Actas", code="DOC001", start_date=date(2020, 1, 1)))
    reloaded = await store.load_all()
    assert reloaded == [created]


@pytest.mark.asyncio
async def test_add_defaults_item_number_to_next(store: RecordStore):
    await store.add(_new("A", item_number=7))
    second = await store.add(_new("B"))
    assert second.item_number == 8


@pytest.mark.asyncio
async def test_add_keeps_item_number_order(store: RecordStore):
    await store.add(_new("Tercero", item_number=3))
    await store.add(_new("Primero", item_number=1))
    assert [r.item_number for r in store.records] == [1, 3]


@pytest.mark.asyncio
async def test_add_ignores_lending_fields(store: RecordStore):
    record = await store.add(_new(status=FileStatus.PRESTADO, borrowed_to="Ana"))
    assert record.status is FileStatus.DISPONIBLE
    assert record.borrowed_to is None


@pytest.mark.asyncio
async def test_add_missing_required_field(store, repository):
    with pytest.raises(ValidationError) as exc_info:
        await store.add(_new(name="  ", support=""))
    assert set(exc_info.value.fields) == {"name", "support"}
    assert store.records == []
    assert await repository.list_all() == []


@pytest.mark.asyncio
async def test_add_rejects_reversed_ranges(store: RecordStore):
    with pytest.raises(ValidationError):
        await store.add(_new(folio_start=20, folio_end=5))
    with pytest.raises(ValidationError):
        await store.add(_new(start_date=date(2021, 1, 1), end_date=date(2020, 1, 1)))


@pytest.mark.asyncio
async def test_add_rejects_unknown_storage_unit(store: RecordStore):
    with pytest.raises(ValidationError):
        await store.add(_new(storage_unit="BOLSA"))


@pytest.mark.asyncio
async def test_add_failure_leaves_state_unchanged(store, repository):
    repository.fail_on.add(("create", None))
    with pytest.raises(PersistenceError):
        await store.add(_new())
    assert store.records == []


# ── Update ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_update_changes_only_patched_fields(store: RecordStore):
    record = await store.add(_new("Actas", block="A1"))
    updated = await store.update(record.id, {"name": "Actas de Consejo"})
    assert updated.name == "Actas de Consejo"
    assert updated.block == "A1"
    assert updated.updated_at == NOW
    assert store.get(record.id) == updated


@pytest.mark.asyncio
async def test_update_rejects_lending_and_id_fields(store: RecordStore):
    record = await store.add(_new())
    with pytest.raises(ValidationError):
        await store.update(record.id, {"status": "PRESTADO"})
    with pytest.raises(ValidationError):
        await store.update(record.id, {"id": "other"})
    assert store.get(record.id).status is FileStatus.DISPONIBLE


@pytest.mark.asyncio
async def test_update_checks_merged_folio_range(store: RecordStore):
    record = await store.add(_new(folio_start=1, folio_end=10))
    with pytest.raises(ValidationError):
        await store.update(record.id, {"folio_start": 11})


@pytest.mark.asyncio
async def test_update_unknown_record(store: RecordStore):
    with pytest.raises(NotFoundError):
        await store.update("missing", {"name": "x"})


@pytest.mark.asyncio
async def test_update_failure_leaves_state_unchanged(store, repository):
    record = await store.add(_new("Actas"))
    repository.fail_on.add(("update", record.id))
    with pytest.raises(PersistenceError):
        await store.update(record.id, {"name": "Otro"})
    assert store.get(record.id).name == "Actas"


@pytest.mark.asyncio
async def test_update_item_number_resorts(store: RecordStore):
    first = await store.add(_new("A", item_number=1))
    await store.add(_new("B", item_number=2))
    await store.update(first.id, {"item_number": 5})
    assert [r.name for r in store.records] == ["B", "A"]


@pytest.mark.asyncio
async def test_update_of_record_deleted_elsewhere_drops_local_copy(repository):
    first = RecordStore(repository, clock=lambda: NOW)
    second = RecordStore(repository, clock=lambda: NOW)
    record = await first.add(_new())
    await second.load_all()
    await first.remove(record.id)

    with pytest.raises(NotFoundError):
        await second.update(record.id, {"name": "Otro"})
    assert record.id not in [r.id for r in second.records]
    assert second.page().total == 0
    with pytest.raises(NotFoundError):
        await second.borrow(record.id, "Juan")


# ── Remove ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_remove_drops_record(store, repository):
    record = await store.add(_new())
    assert await store.remove(record.id) is True
    assert store.records == []
    assert await repository.list_all() == []


@pytest.mark.asyncio
async def test_remove_failure_keeps_record(store, repository):
    record = await store.add(_new())
    repository.fail_on.add(("delete", record.id))
    with pytest.raises(PersistenceError):
        await store.remove(record.id)
    assert store.records == [record]


@pytest.mark.asyncio
async def test_remove_many_reports_partial_failure(store, repository):
    a = await store.add(_new("A"))
    b = await store.add(_new("B"))
    c = await store.add(_new("C"))
    repository.fail_on.add(("delete", b.id))

    result = await store.remove_many([a.id, b.id, c.id])

    assert sorted(result.succeeded) == sorted([a.id, c.id])
    assert list(result.failed) == [b.id]
    assert result.summary() == {"succeeded": 2, "failed": 1, "not_found": 0}
    assert [r.id for r in store.records] == [b.id]


@pytest.mark.asyncio
async def test_remove_many_reports_unknown_ids(store: RecordStore):
    a = await store.add(_new("A"))
    result = await store.remove_many([a.id, "ghost"])
    assert result.succeeded == [a.id]
    assert result.not_found == ["ghost"]
    assert result.failed == {}


# ── Status transitions ───────────────────────────────────────────────

@pytest.mark.asyncio
async def test_borrow_and_return(store: RecordStore):
    record = await store.add(_new())
    borrowed = await store.borrow(record.id, "Juan")
    assert borrowed.status is FileStatus.PRESTADO
    assert borrowed.borrowed_to == "Juan"
    assert borrowed.borrowed_date == NOW
    assert not store.transitions.can_borrow(borrowed)

    returned = await store.return_record(record.id)
    assert returned.status is FileStatus.DISPONIBLE
    assert returned.borrowed_to is None
    assert returned.return_date == NOW
    assert returned.borrowed_date == NOW
    assert store.transitions.can_borrow(returned)


@pytest.mark.asyncio
async def test_borrow_twice_raises_already_borrowed(store: RecordStore):
    record = await store.add(_new())
    await store.borrow(record.id, "Juan")
    with pytest.raises(AlreadyBorrowedError):
        await store.borrow(record.id, "Ana")
    assert store.get(record.id).borrowed_to == "Juan"


@pytest.mark.asyncio
async def test_borrow_retained_record_is_rejected(store: RecordStore):
    record = await store.add(_new())
    await store.retain(record.id, "Auditoría")
    with pytest.raises(InvalidTransitionError):
        await store.borrow(record.id, "Juan")
    assert store.get(record.id).status is FileStatus.RETENIDO


@pytest.mark.asyncio
async def test_retain_and_release(store, repository):
    record = await store.add(_new())
    retained = await store.retain(record.id, "Auditoría")
    assert retained.retention_reason == "Auditoría"
    released = await store.release(record.id)
    assert released.status is FileStatus.DISPONIBLE
    assert released.retention_reason is None
    persisted = await repository.list_all()
    assert persisted[0].status is FileStatus.DISPONIBLE


@pytest.mark.asyncio
async def test_transition_failure_leaves_state_unchanged(store, repository):
    record = await store.add(_new())
    repository.fail_on.add(("update", record.id))
    with pytest.raises(PersistenceError):
        await store.borrow(record.id, "Juan")
    assert store.get(record.id).status is FileStatus.DISPONIBLE


# ── Filtering & pagination ───────────────────────────────────────────

@pytest.mark.asyncio
async def test_filter_by_status_shows_only_borrowed(store: RecordStore):
    records = [await store.add(_new(f"Serie {i}")) for i in range(3)]
    await store.borrow(records[1].id, "Juan")
    store.set_filter("status", "PRESTADO")
    assert [r.id for r in store.filtered_records()] == [records[1].id]
    store.clear_filters()
    assert len(store.filtered_records()) == 3


@pytest.mark.asyncio
async def test_page_navigation_and_clamping(store: RecordStore):
    for i in range(1, 24):
        await store.add(_new(f"Serie {i}"))

    assert store.last_page().page_index == 2
    assert store.next_page().page_index == 2
    assert store.previous_page().page_index == 1
    assert store.first_page().page_index == 0

    store.last_page()
    store.set_filter("name", "Serie 1")  # 1, 10-19 → 11 records, 2 pages
    assert store.page().page_index == 1
    store.set_search("Serie 19")
    assert store.page().page_index == 0


@pytest.mark.asyncio
async def test_set_page_size(store: RecordStore):
    for i in range(1, 46):
        await store.add(_new(f"Serie {i}"))
    store.set_page(2)  # rows 21-30
    page = store.set_page_size(20)
    assert page.page_index == 1
    assert page.page_count == 3
    with pytest.raises(ValidationError):
        store.set_page_size(25)
