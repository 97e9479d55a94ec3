"""Filter criteria for study log queries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from .models import StudyLog
from .types import Category

__all__ = ["StudyLogCriteria", "matches"]


@dataclass(frozen=True)
class StudyLogCriteria:
    """Normalized, all-optional filter set applied with AND semantics.

    ``category_unresolved`` marks a category filter that named no known
    category; such criteria match nothing rather than raising.
    """

    title_keyword: Optional[str] = None
    category: Optional[Category] = None
    category_unresolved: bool = False
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def build(
        cls,
        *,
        title: Optional[str] = None,
        category: Any = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> "StudyLogCriteria":
        keyword = title if isinstance(title, str) and title.strip() else None
        resolved: Optional[Category] = None
        unresolved = False
        if category is not None and not (
            isinstance(category, str) and not category.strip()
        ):
            resolved = Category.parse(category)
            unresolved = resolved is None
        return cls(
            title_keyword=keyword,
            category=resolved,
            category_unresolved=unresolved,
            start_date=start_date,
            end_date=end_date,
        )


def matches(entry: StudyLog, criteria: StudyLogCriteria) -> bool:
    if criteria.category_unresolved:
        return False
    if criteria.title_keyword is not None and criteria.title_keyword not in entry.title:
        return False
    if criteria.category is not None and entry.category is not criteria.category:
        return False
    if criteria.start_date is not None and entry.study_date < criteria.start_date:
        return False
    if criteria.end_date is not None and entry.study_date > criteria.end_date:
        return False
    return True
