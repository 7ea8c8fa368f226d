"""SQLAlchemy ORM model for the ``files`` collection."""

from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.database.base import Base


class FileRecordModel(Base):
    """ORM model — maps to the 'files' table."""

    __tablename__ = "files"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    item_number: Mapped[int] = mapped_column(Integer, nullable=False)
    code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Physical location
    storage_unit: Mapped[str] = mapped_column(String(20), nullable=False)
    support: Mapped[str] = mapped_column(String(50), nullable=False)
    folio_start: Mapped[int] = mapped_column(Integer, nullable=False)
    folio_end: Mapped[int] = mapped_column(Integer, nullable=False)
    block: Mapped[str | None] = mapped_column(String(50), nullable=True)
    shelf: Mapped[str | None] = mapped_column(String(50), nullable=True)
    box_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    folder_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    volume_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Lending / retention
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="DISPONIBLE")
    borrowed_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
    borrowed_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    return_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    retention_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_files_item_number", "item_number"),
        Index("ix_files_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<FileRecordModel(id={self.id}, item={self.item_number}, status='{self.status}')>"
