"""Filtering and pagination over an in-memory list of file records.

Filters are substring predicates keyed by field name: the field value is
rendered as text, lower-cased, and must contain the (lower-cased) filter
value. Active filters are ANDed; an empty value imposes no constraint.
"""

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from app.domain.entities import FileRecord
from app.domain.exceptions import ValidationError

# Filter key → typed getter. Only these keys can be filtered on.
FILTER_FIELDS: dict[str, Callable[[FileRecord], Any]] = {
    "item_number": lambda r: r.item_number,
    "code": lambda r: r.code,
    "name": lambda r: r.name,
    "start_date": lambda r: r.start_date,
    "end_date": lambda r: r.end_date,
    "storage_unit": lambda r: r.storage_unit,
    "block": lambda r: r.block,
    "shelf": lambda r: r.shelf,
    "folio_start": lambda r: r.folio_start,
    "folio_end": lambda r: r.folio_end,
    "support": lambda r: r.support,
    "status": lambda r: r.status,
    "borrowed_to": lambda r: r.borrowed_to,
    "retention_reason": lambda r: r.retention_reason,
    "box_number": lambda r: r.box_number,
    "folder_number": lambda r: r.folder_number,
    "volume_number": lambda r: r.volume_number,
}

PAGE_SIZES = (10, 20, 30, 40, 50)


def as_text(value: Any) -> str | None:
    """Render a field value the way the filter compares it."""
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _contains(value: Any, needle: str) -> bool:
    text = as_text(value)
    return text is not None and needle in text.lower()


class RecordFilter:
    """Active per-field filters plus the free-text search box."""

    def __init__(self) -> None:
        self._filters: dict[str, str] = {}
        self._search: str = ""

    @property
    def filters(self) -> dict[str, str]:
        return dict(self._filters)

    @property
    def search(self) -> str:
        return self._search

    @property
    def is_empty(self) -> bool:
        return not self._filters and not self._search

    def set(self, field_name: str, value: str | None) -> None:
        if field_name not in FILTER_FIELDS:
            raise ValidationError(f"Unknown filter field '{field_name}'", fields=[field_name])
        value = (value or "").strip()
        if value:
            self._filters[field_name] = value
        else:
            self._filters.pop(field_name, None)

    def set_search(self, text: str | None) -> None:
        self._search = (text or "").strip()

    def clear(self) -> None:
        self._filters.clear()
        self._search = ""

    def matches(self, record: FileRecord) -> bool:
        for key, value in self._filters.items():
            if not _contains(FILTER_FIELDS[key](record), value.lower()):
                return False
        if self._search:
            needle = self._search.lower()
            if not any(_contains(getter(record), needle) for getter in FILTER_FIELDS.values()):
                return False
        return True

    def apply(self, records: Iterable[FileRecord]) -> list[FileRecord]:
        return [r for r in records if self.matches(r)]


@dataclass
class Page:
    """One page of the filtered view."""

    items: list[FileRecord]
    page_index: int
    page_size: int
    page_count: int
    total: int

    @property
    def has_previous(self) -> bool:
        return self.page_index > 0

    @property
    def has_next(self) -> bool:
        return self.page_index < self.page_count - 1


@dataclass
class Pagination:
    """0-based page cursor, kept inside ``[0, page_count - 1]``."""

    page_size: int = 10
    page_index: int = 0
    allowed_sizes: tuple[int, ...] = field(default=PAGE_SIZES)

    def __post_init__(self) -> None:
        self._check_size(self.page_size)

    def _check_size(self, size: int) -> None:
        if size not in self.allowed_sizes:
            raise ValidationError(
                f"Page size must be one of {list(self.allowed_sizes)}", fields=["page_size"]
            )

    def page_count(self, total: int) -> int:
        return math.ceil(total / self.page_size) if total > 0 else 0

    def clamp(self, total: int) -> int:
        last = max(self.page_count(total) - 1, 0)
        self.page_index = min(max(self.page_index, 0), last)
        return self.page_index

    def set_size(self, size: int, total: int) -> None:
        self._check_size(size)
        # Keep the first visible row on screen.
        first_row = self.page_index * self.page_size
        self.page_size = size
        self.page_index = first_row // size
        self.clamp(total)

    def slice(self, records: list[FileRecord]) -> Page:
        total = len(records)
        self.clamp(total)
        start = self.page_index * self.page_size
        return Page(
            items=records[start : start + self.page_size],
            page_index=self.page_index,
            page_size=self.page_size,
            page_count=self.page_count(total),
            total=total,
        )
