"""Integration tests for the SQLAlchemy-backed repositories (SQLite file database)."""

from datetime import date, datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.domain.entities import FileStatus, NewFileRecord, StorageUnit, UserAccount, UserRole
from app.domain.exceptions import NotFoundError, PersistenceError
from app.infrastructure.database import Base, create_engine_for, create_session_factory
from app.infrastructure.database.repositories import (
    SQLAlchemyFileRecordRepository,
    SQLAlchemyUserRepository,
)


@pytest.fixture
async def session_factory(tmp_path) -> async_sessionmaker[AsyncSession]:
    engine = create_engine_for(f"sqlite:///{tmp_path / 'registry.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def repository(session_factory) -> SQLAlchemyFileRecordRepository:
    return SQLAlchemyFileRecordRepository(session_factory)


def _new(item: int, name: str, **overrides) -> NewFileRecord:
    values = dict(
        item_number=item,
        name=name,
        storage_unit=StorageUnit.CAJA,
        support="PAPEL",
        folio_start=1,
        folio_end=10,
    )
    values.update(overrides)
    return NewFileRecord(**values)


@pytest.mark.asyncio
async def test_create_and_list_ordered_by_item_number(repository):
    await repository.create(_new(2, "Correspondencia"))
    first_id = await repository.create(
        _new(1, "Actas", code="DOC001", start_date=date(2020, 1, 1), block="A1")
    )

    records = await repository.list_all()
    assert [r.item_number for r in records] == [1, 2]
    actas = records[0]
    assert actas.id == first_id
    assert actas.code == "DOC001"
    assert actas.start_date == date(2020, 1, 1)
    assert actas.storage_unit is StorageUnit.CAJA
    assert actas.status is FileStatus.DISPONIBLE


@pytest.mark.asyncio
async def test_update_persists_changes(repository):
    record_id = await repository.create(_new(1, "Actas"))
    borrowed_at = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
    await repository.update(
        record_id,
        {"status": FileStatus.PRESTADO, "borrowed_to": "Ana", "borrowed_date": borrowed_at},
    )

    [record] = await repository.list_all()
    assert record.status is FileStatus.PRESTADO
    assert record.borrowed_to == "Ana"
    assert record.borrowed_date is not None
    assert record.updated_at is not None


@pytest.mark.asyncio
async def test_update_missing_record(repository):
    with pytest.raises(NotFoundError):
        await repository.update("missing", {"name": "x"})


@pytest.mark.asyncio
async def test_delete(repository):
    record_id = await repository.create(_new(1, "Actas"))
    assert await repository.delete(record_id) is True
    assert await repository.delete(record_id) is False
    assert await repository.list_all() == []


@pytest.mark.asyncio
async def test_backend_failure_is_wrapped(tmp_path):
    engine = create_engine_for(f"sqlite:///{tmp_path / 'empty.db'}")
    repository = SQLAlchemyFileRecordRepository(create_session_factory(engine))
    try:
        with pytest.raises(PersistenceError) as exc_info:
            await repository.list_all()  # no tables created
        assert exc_info.value.operation == "list_all"
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_user_repository_round_trip(session_factory):
    async with session_factory() as session:
        repository = SQLAlchemyUserRepository(session)
        created = await repository.create(
            UserAccount(email="admin@archivo.local", password_hash="x", role=UserRole.ADMIN)
        )
        await session.commit()

    async with session_factory() as session:
        repository = SQLAlchemyUserRepository(session)
        by_email = await repository.get_by_email("ADMIN@archivo.local")
        by_id = await repository.get_by_id(created.id)
        assert by_email is not None and by_email.role is UserRole.ADMIN
        assert by_id is not None and by_id.email == "admin@archivo.local"
        assert await repository.get_by_email("ghost@archivo.local") is None
