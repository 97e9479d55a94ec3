"""Ordering policy shared by both study log stores."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional

from .models import StudyLog

__all__ = ["Ordering", "SortDirection", "SortField"]


class SortField(str, Enum):
    CREATED_AT = "created_at"
    ID = "id"
    TITLE = "title"
    STUDY_TIME = "study_time"
    STUDY_DATE = "study_date"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["SortField"]:
        if value is None:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["SortDirection"]:
        if value is None:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class Ordering:
    """Single sort key plus direction; ties always break on id ascending."""

    field: SortField = SortField.CREATED_AT
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def default(cls) -> "Ordering":
        return cls(SortField.CREATED_AT, SortDirection.ASC)

    @classmethod
    def page_default(cls) -> "Ordering":
        return cls(SortField.ID, SortDirection.DESC)

    @classmethod
    def resolve(
        cls, sort_by: Optional[str] = None, sort_dir: Optional[str] = None
    ) -> "Ordering":
        """Build an ordering from request parameters.

        Unknown names fall back to created_at / ascending; when neither
        parameter is given the paged default (newest id first) applies.
        """

        if sort_by is None and sort_dir is None:
            return cls.page_default()
        return cls(
            SortField.parse(sort_by) or SortField.CREATED_AT,
            SortDirection.parse(sort_dir) or SortDirection.ASC,
        )

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC

    def sort_value(self, entry: StudyLog) -> Any:
        return getattr(entry, self.field.value)

    def sort(self, entries: Iterable[StudyLog]) -> List[StudyLog]:
        # list.sort is stable even with reverse=True, so the id pre-sort
        # survives as the tie-break in both directions.
        ordered = sorted(entries, key=lambda entry: entry.id or 0)
        ordered.sort(key=self.sort_value, reverse=self.descending)
        return ordered
