"""Study log data models."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from .types import Category, Understanding, utcnow

__all__ = [
    "DeletionReceipt",
    "StudyLog",
]

TITLE_MAX_LENGTH = 100
CONTENT_MAX_LENGTH = 1000
MIN_STUDY_TIME = 1


@dataclass(frozen=True)
class StudyLog:
    """A single study log record.

    Instances are immutable: the store keeps its own copy and changes only
    become durable when a replaced value is passed back through ``update``.
    """

    id: Optional[int]
    title: str
    content: str
    category: Category
    understanding: Understanding
    study_time: int
    study_date: date
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def new(
        cls,
        *,
        title: str,
        content: str,
        category: Category,
        understanding: Understanding,
        study_time: int,
        study_date: date,
    ) -> "StudyLog":
        return cls(
            id=None,
            title=title,
            content=content,
            category=category,
            understanding=understanding,
            study_time=study_time,
            study_date=study_date,
        )

    def stamped(self, log_id: int, timestamp: datetime) -> "StudyLog":
        """Return the persisted form of a freshly inserted record."""

        return replace(self, id=log_id, created_at=timestamp, updated_at=timestamp)


@dataclass(frozen=True)
class DeletionReceipt:
    """Confirmation returned once a study log has been removed."""

    id: int
    message: str
    deleted_at: datetime

    @classmethod
    def of(cls, log_id: int) -> "DeletionReceipt":
        return cls(
            id=log_id,
            message=f"Study log {log_id} deleted",
            deleted_at=utcnow(),
        )
