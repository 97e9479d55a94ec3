"""Study log service orchestrating validation + persistence."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from ...infra.logging import get_logger
from ...infra.metrics import MetricsClient, get_metrics_client
from .criteria import StudyLogCriteria
from .models import (
    CONTENT_MAX_LENGTH,
    MIN_STUDY_TIME,
    TITLE_MAX_LENGTH,
    DeletionReceipt,
    StudyLog,
)
from .ordering import Ordering
from .pagination import DEFAULT_PAGE_SIZE, Page, PageRequest
from .repository import InMemoryStudyLogRepository, StudyLogRepository
from .types import (
    Category,
    StudyLogNotFoundError,
    StudyLogValidationError,
    Understanding,
)

logger = get_logger(__name__)

UPDATABLE_FIELDS = (
    "title",
    "content",
    "category",
    "understanding",
    "study_time",
    "study_date",
)


class StudyLogService:
    """Validation + query layer over study log persistence.

    Writes resolve category/understanding strictly and reject bad values;
    reads resolve categories leniently and return empty results instead.
    """

    def __init__(
        self,
        *,
        repository: StudyLogRepository | None = None,
        metrics: MetricsClient | None = None,
    ) -> None:
        self._repository = repository or InMemoryStudyLogRepository()
        self._metrics = metrics or get_metrics_client()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def create(self, payload: Dict[str, Any]) -> StudyLog:
        try:
            log = StudyLog.new(
                title=self._require_text(
                    payload.get("title"), "title", TITLE_MAX_LENGTH
                ),
                content=self._require_text(
                    payload.get("content"), "content", CONTENT_MAX_LENGTH
                ),
                category=self._require_enum(
                    Category, payload.get("category"), "category"
                ),
                understanding=self._require_enum(
                    Understanding, payload.get("understanding"), "understanding"
                ),
                study_time=self._require_study_time(payload.get("study_time")),
                study_date=self._coerce_date(payload.get("study_date"))
                or date.today(),
            )
        except StudyLogValidationError as exc:
            self._record_validation_failure("create", exc)
            raise
        saved = self._repository.insert(log)
        self._safe_metrics_increment("study_log_created_total")
        logger.info(
            "study_log_create",
            extra={"id": saved.id, "category": saved.category.name},
        )
        return saved

    def update(self, log_id: int, payload: Dict[str, Any]) -> StudyLog:
        current = self.get(log_id)
        try:
            changes = self._normalize_update(payload)
        except StudyLogValidationError as exc:
            self._record_validation_failure("update", exc)
            raise
        updated = self._repository.update(replace(current, **changes))
        self._safe_metrics_increment("study_log_updated_total")
        logger.info(
            "study_log_update",
            extra={"id": log_id, "fields": sorted(changes)},
        )
        return updated

    def delete(self, log_id: int) -> DeletionReceipt:
        self.get(log_id)
        self._repository.delete_by_id(log_id)
        self._safe_metrics_increment("study_log_deleted_total")
        logger.warning("study_log_delete", extra={"id": log_id})
        return DeletionReceipt.of(log_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, log_id: int) -> StudyLog:
        log = self._repository.get_by_id(log_id)
        if log is None:
            raise StudyLogNotFoundError(log_id)
        return log

    def list_all(self) -> List[StudyLog]:
        return self._repository.list_all()

    def list_by_category(self, category: Any) -> List[StudyLog]:
        return self._repository.list_by_category(category)

    def list_by_date(self, study_date: Any) -> List[StudyLog]:
        resolved = self._coerce_date(study_date)
        if resolved is None:
            raise StudyLogValidationError("study_date is required", field="study_date")
        return self._repository.list_by_date(resolved)

    def get_page(
        self,
        page: int = 0,
        size: int = DEFAULT_PAGE_SIZE,
        *,
        sort_by: Optional[str] = None,
        sort_dir: Optional[str] = None,
    ) -> Page[StudyLog]:
        return self._query(StudyLogCriteria(), page, size, sort_by, sort_dir)

    def get_page_by_category(
        self,
        category: Any,
        page: int = 0,
        size: int = DEFAULT_PAGE_SIZE,
        *,
        sort_by: Optional[str] = None,
        sort_dir: Optional[str] = None,
    ) -> Page[StudyLog]:
        request = PageRequest(page, size).normalized()
        if category is None or (isinstance(category, str) and not category.strip()):
            return Page.empty(request)
        criteria = StudyLogCriteria.build(category=category)
        return self._query(criteria, page, size, sort_by, sort_dir)

    def search(
        self,
        *,
        title: Optional[str] = None,
        category: Any = None,
        start_date: Any = None,
        end_date: Any = None,
        page: int = 0,
        size: int = DEFAULT_PAGE_SIZE,
        sort_by: Optional[str] = None,
        sort_dir: Optional[str] = None,
    ) -> Page[StudyLog]:
        if title is not None and not isinstance(title, str):
            raise StudyLogValidationError("title must be a string", field="title")
        criteria = StudyLogCriteria.build(
            title=title,
            category=category,
            start_date=self._coerce_date(start_date, field="start_date"),
            end_date=self._coerce_date(end_date, field="end_date"),
        )
        return self._query(criteria, page, size, sort_by, sort_dir)

    def _query(
        self,
        criteria: StudyLogCriteria,
        page: int,
        size: int,
        sort_by: Optional[str],
        sort_dir: Optional[str],
    ) -> Page[StudyLog]:
        request = PageRequest(page, size).normalized()
        if criteria.category_unresolved:
            logger.debug(
                "study_log_query_unknown_category",
                extra={"page": request.page_index, "size": request.page_size},
            )
            return Page.empty(request)
        return self._repository.query_paged(
            criteria,
            Ordering.resolve(sort_by, sort_dir),
            request.page_index,
            request.page_size,
        )

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------
    def _normalize_update(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        present = {
            key: payload[key]
            for key in UPDATABLE_FIELDS
            if payload.get(key) is not None
        }
        if not present:
            raise StudyLogValidationError("No fields to update")
        changes: Dict[str, Any] = {}
        if "title" in present:
            changes["title"] = self._require_text(
                present["title"], "title", TITLE_MAX_LENGTH
            )
        if "content" in present:
            changes["content"] = self._require_text(
                present["content"], "content", CONTENT_MAX_LENGTH
            )
        if "category" in present:
            changes["category"] = self._require_enum(
                Category, present["category"], "category"
            )
        if "understanding" in present:
            changes["understanding"] = self._require_enum(
                Understanding, present["understanding"], "understanding"
            )
        if "study_time" in present:
            changes["study_time"] = self._require_study_time(present["study_time"])
        if "study_date" in present:
            study_date = self._coerce_date(present["study_date"])
            if study_date is not None and study_date > date.today():
                raise StudyLogValidationError(
                    "study_date cannot be in the future", field="study_date"
                )
            changes["study_date"] = study_date
        return changes

    @staticmethod
    def _require_text(value: Any, field: str, max_length: int) -> str:
        if not isinstance(value, str) or not value.strip():
            raise StudyLogValidationError(f"{field} is required", field=field)
        if len(value) > max_length:
            raise StudyLogValidationError(
                f"{field} must be at most {max_length} characters", field=field
            )
        return value

    @staticmethod
    def _require_enum(enum_cls: Any, value: Any, field: str) -> Any:
        resolved = enum_cls.parse(value)
        if resolved is None:
            raise StudyLogValidationError(
                f"Invalid {field} {value!r}; expected one of {enum_cls.names()}",
                field=field,
            )
        return resolved

    @staticmethod
    def _require_study_time(value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise StudyLogValidationError(
                "study_time must be an integer number of minutes", field="study_time"
            )
        if value < MIN_STUDY_TIME:
            raise StudyLogValidationError(
                f"study_time must be at least {MIN_STUDY_TIME} minute",
                field="study_time",
            )
        return value

    @staticmethod
    def _coerce_date(value: Any, *, field: str = "study_date") -> Optional[date]:
        if value is None:
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return date.fromisoformat(value.strip())
            except ValueError:
                pass
        raise StudyLogValidationError(
            f"{field} must be an ISO date (YYYY-MM-DD)", field=field
        )

    def _record_validation_failure(
        self, operation: str, exc: StudyLogValidationError
    ) -> None:
        self._safe_metrics_increment("study_log_validation_failed_total")
        logger.info(
            "study_log_validation_failed",
            extra={"operation": operation, "field": exc.details.get("field")},
        )

    def _safe_metrics_increment(self, metric: str, value: int = 1) -> None:
        try:
            self._metrics.increment(metric, value)
        except Exception:  # pragma: no cover - defensive
            logger.exception(
                "metrics_increment_failed",
                extra={"metric": metric, "value": value},
            )
