"""Lending state machine for file records.

States are DISPONIBLE, PRESTADO and RETENIDO::

    DISPONIBLE --borrow--> PRESTADO --return--> DISPONIBLE
    DISPONIBLE --retain--> RETENIDO --release--> DISPONIBLE
    RETENIDO   --retain--> RETENIDO   (reason update)

Each transition returns the change set that has to be persisted; the engine
never mutates the record it is given.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from app.domain.entities.file_record import FileRecord, FileStatus
from app.domain.exceptions import AlreadyBorrowedError, InvalidTransitionError, ValidationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StatusTransitionEngine:
    """Validates status transitions and computes their side effects."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock

    # ── Queries ──────────────────────────────────────────────────────

    def can_borrow(self, record: FileRecord) -> bool:
        return record.status is FileStatus.DISPONIBLE

    def can_return(self, record: FileRecord) -> bool:
        return record.status is FileStatus.PRESTADO

    def can_retain(self, record: FileRecord) -> bool:
        # A lent-out record has to come back before it can be put on hold.
        return record.status is not FileStatus.PRESTADO

    def can_release(self, record: FileRecord) -> bool:
        return record.status is FileStatus.RETENIDO

    # ── Transitions ──────────────────────────────────────────────────

    def borrow(self, record: FileRecord, borrower: str) -> dict[str, Any]:
        """DISPONIBLE → PRESTADO. Stamps the borrower and the borrow date."""
        if record.status is FileStatus.PRESTADO:
            raise AlreadyBorrowedError(record.id, record.borrowed_to)
        borrower = (borrower or "").strip()
        if not borrower:
            raise ValidationError("Borrower name is required", fields=["borrowed_to"])
        if not self.can_borrow(record):
            raise InvalidTransitionError(
                "borrow",
                record.status.value,
                f"Record '{record.id}' is retained and cannot be borrowed",
            )
        return {
            "status": FileStatus.PRESTADO,
            "borrowed_to": borrower,
            "borrowed_date": self._clock(),
            "return_date": None,
        }

    def return_record(self, record: FileRecord) -> dict[str, Any]:
        """PRESTADO → DISPONIBLE. ``borrowed_date`` is kept as history."""
        if not self.can_return(record):
            raise InvalidTransitionError("return", record.status.value)
        return {
            "status": FileStatus.DISPONIBLE,
            "borrowed_to": None,
            "return_date": self._clock(),
        }

    def retain(self, record: FileRecord, reason: str) -> dict[str, Any]:
        """DISPONIBLE/RETENIDO → RETENIDO with a mandatory reason."""
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Retention reason is required", fields=["retention_reason"])
        if not self.can_retain(record):
            raise InvalidTransitionError(
                "retain",
                record.status.value,
                f"Record '{record.id}' is borrowed; return it before retaining",
            )
        return {
            "status": FileStatus.RETENIDO,
            "retention_reason": reason,
        }

    def release(self, record: FileRecord) -> dict[str, Any]:
        """RETENIDO → DISPONIBLE."""
        if not self.can_release(record):
            raise InvalidTransitionError("release", record.status.value)
        return {
            "status": FileStatus.DISPONIBLE,
            "retention_reason": None,
        }
