"""Persistence adapters for study log records."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, timezone
from threading import RLock
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    delete,
    false,
    func,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from ...config import Settings, load_settings
from ...infra.db import build_engine, get_engine
from ...infra.logging import get_logger
from .criteria import StudyLogCriteria, matches
from .models import StudyLog
from .ordering import Ordering, SortField
from .pagination import Page, PageRequest, paginate
from .types import (
    Category,
    StudyLogNotFoundError,
    StudyLogStorageError,
    Understanding,
    utcnow,
)

__all__ = [
    "InMemoryStudyLogRepository",
    "SqlStudyLogRepository",
    "StudyLogRepository",
    "build_study_log_repository",
    "study_logs_table",
]

logger = get_logger(__name__)

TABLE_NAME = "study_logs"


class StudyLogRepository(Protocol):  # pragma: no cover - interface only
    """Persistence abstraction consumed by :class:`StudyLogService`."""

    def insert(self, log: StudyLog) -> StudyLog: ...

    def get_by_id(self, log_id: int) -> Optional[StudyLog]: ...

    def list_all(self) -> List[StudyLog]: ...

    def list_by_category(self, category: Any) -> List[StudyLog]: ...

    def list_by_date(self, study_date: date) -> List[StudyLog]: ...

    def update(self, log: StudyLog) -> StudyLog: ...

    def delete_by_id(self, log_id: int) -> bool: ...

    def delete_all(self) -> None: ...

    def exists(self, log_id: int) -> bool: ...

    def count(self) -> int: ...

    def query_paged(
        self,
        criteria: StudyLogCriteria,
        ordering: Ordering,
        page_index: int,
        page_size: int,
    ) -> Page[StudyLog]: ...


class InMemoryStudyLogRepository(StudyLogRepository):
    """Dict-backed store for local development and tests.

    Every read and write holds the lock, and stored values are frozen
    dataclasses, so readers never see a partially written record.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._logs: Dict[int, StudyLog] = {}
        self._next_id = 1

    def insert(self, log: StudyLog) -> StudyLog:
        with self._lock:
            if log.id is None:
                log_id = self._next_id
            else:
                log_id = log.id
                if log_id in self._logs:
                    raise StudyLogStorageError(
                        f"Study log '{log_id}' already exists", operation="insert"
                    )
            self._next_id = max(self._next_id, log_id + 1)
            record = log.stamped(log_id, utcnow())
            self._logs[log_id] = record
            return record

    def get_by_id(self, log_id: int) -> Optional[StudyLog]:
        with self._lock:
            return self._logs.get(log_id)

    def list_all(self) -> List[StudyLog]:
        return Ordering.default().sort(self._snapshot())

    def list_by_category(self, category: Any) -> List[StudyLog]:
        resolved = Category.parse(category)
        if resolved is None:
            return []
        return Ordering.default().sort(
            log for log in self._snapshot() if log.category is resolved
        )

    def list_by_date(self, study_date: date) -> List[StudyLog]:
        return Ordering.default().sort(
            log for log in self._snapshot() if log.study_date == study_date
        )

    def update(self, log: StudyLog) -> StudyLog:
        with self._lock:
            current = self._logs.get(log.id) if log.id is not None else None
            if current is None:
                raise StudyLogNotFoundError(log.id)
            record = StudyLog(
                id=current.id,
                title=log.title,
                content=log.content,
                category=log.category,
                understanding=log.understanding,
                study_time=log.study_time,
                study_date=log.study_date,
                created_at=current.created_at,
                updated_at=utcnow(),
            )
            self._logs[current.id] = record
            return record

    def delete_by_id(self, log_id: int) -> bool:
        with self._lock:
            return self._logs.pop(log_id, None) is not None

    def delete_all(self) -> None:
        with self._lock:
            self._logs.clear()
            self._next_id = 1

    def exists(self, log_id: int) -> bool:
        with self._lock:
            return log_id in self._logs

    def count(self) -> int:
        with self._lock:
            return len(self._logs)

    def query_paged(
        self,
        criteria: StudyLogCriteria,
        ordering: Ordering,
        page_index: int,
        page_size: int,
    ) -> Page[StudyLog]:
        request = PageRequest(page_index, page_size).normalized()
        matching = ordering.sort(
            log for log in self._snapshot() if matches(log, criteria)
        )
        start, end = paginate(len(matching), request.page_index, request.page_size)
        return Page(
            content=matching[start:end],
            page_index=request.page_index,
            page_size=request.page_size,
            total_elements=len(matching),
        )

    def _snapshot(self) -> List[StudyLog]:
        with self._lock:
            return list(self._logs.values())


def study_logs_table(metadata: MetaData) -> Table:
    """Declare the ``study_logs`` table on ``metadata``."""

    return Table(
        TABLE_NAME,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("title", String(100), nullable=False),
        Column("content", String(1000), nullable=False),
        Column("category", String(32), nullable=False),
        Column("understanding", String(32), nullable=False),
        Column("study_time", Integer, nullable=False),
        Column("study_date", Date, nullable=False),
        Column("created_at", DateTime(timezone=True), nullable=False),
        Column("updated_at", DateTime(timezone=True), nullable=False),
        Index("ix_study_logs_category_study_date", "category", "study_date"),
    )


class SqlStudyLogRepository(StudyLogRepository):
    """SQLAlchemy Core adapter over the ``study_logs`` table.

    ``query_paged`` issues a count and a bounded fetch over the same WHERE
    clause. The two statements are not isolated from concurrent writers, so
    ``total_elements`` can briefly disagree with the page content.
    """

    def __init__(
        self,
        engine: Optional[Engine] = None,
        *,
        table: Optional[Table] = None,
        create_schema: bool = False,
    ) -> None:
        self._engine = engine or get_engine()
        if table is not None:
            self._logs = table
            self._metadata = table.metadata
        else:
            self._metadata = MetaData()
            self._logs = study_logs_table(self._metadata)
        if create_schema:
            try:
                self._metadata.create_all(self._engine, tables=[self._logs])
            except SQLAlchemyError as exc:
                raise StudyLogStorageError(
                    "Failed to create study log schema", operation="create_schema"
                ) from exc

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    def insert(self, log: StudyLog) -> StudyLog:
        timestamp = utcnow()
        values = self._coerce_values(log)
        values["created_at"] = timestamp
        values["updated_at"] = timestamp
        if log.id is not None:
            values["id"] = log.id
        stmt = insert(self._logs).values(**values).returning(self._logs)
        with self._begin("insert") as conn:
            row = conn.execute(stmt).mappings().first()
        if row is None:  # pragma: no cover - defensive
            raise StudyLogStorageError("Insert returned no row", operation="insert")
        return _row_to_log(row)

    def get_by_id(self, log_id: int) -> Optional[StudyLog]:
        stmt = select(self._logs).where(self._logs.c.id == log_id)
        with self._begin("get_by_id") as conn:
            row = conn.execute(stmt).mappings().first()
        if row is None:
            return None
        return _row_to_log(row)

    def list_all(self) -> List[StudyLog]:
        return self._select_ordered([], Ordering.default(), "list_all")

    def list_by_category(self, category: Any) -> List[StudyLog]:
        resolved = Category.parse(category)
        if resolved is None:
            return []
        return self._select_ordered(
            [self._logs.c.category == resolved.name],
            Ordering.default(),
            "list_by_category",
        )

    def list_by_date(self, study_date: date) -> List[StudyLog]:
        return self._select_ordered(
            [self._logs.c.study_date == study_date],
            Ordering.default(),
            "list_by_date",
        )

    def update(self, log: StudyLog) -> StudyLog:
        if log.id is None:
            raise StudyLogNotFoundError(None)
        values = self._coerce_values(log)
        values["updated_at"] = utcnow()
        stmt = (
            update(self._logs)
            .where(self._logs.c.id == log.id)
            .values(**values)
            .returning(self._logs)
        )
        with self._begin("update") as conn:
            row = conn.execute(stmt).mappings().first()
        if row is None:
            raise StudyLogNotFoundError(log.id)
        return _row_to_log(row)

    def delete_by_id(self, log_id: int) -> bool:
        stmt = delete(self._logs).where(self._logs.c.id == log_id)
        with self._begin("delete_by_id") as conn:
            result = conn.execute(stmt)
        return result.rowcount > 0

    def delete_all(self) -> None:
        dialect = self._engine.dialect
        table_name = dialect.identifier_preparer.format_table(self._logs)
        with self._begin("delete_all") as conn:
            if dialect.name == "postgresql":
                conn.execute(text(f"TRUNCATE TABLE {table_name} RESTART IDENTITY"))
                return
            conn.execute(delete(self._logs))
            if dialect.name in {"mysql", "mariadb"}:
                conn.execute(text(f"ALTER TABLE {table_name} AUTO_INCREMENT = 1"))

    def exists(self, log_id: int) -> bool:
        stmt = select(self._logs.c.id).where(self._logs.c.id == log_id).limit(1)
        with self._begin("exists") as conn:
            return conn.execute(stmt).first() is not None

    def count(self) -> int:
        stmt = select(func.count()).select_from(self._logs)
        with self._begin("count") as conn:
            return int(conn.execute(stmt).scalar_one())

    # ------------------------------------------------------------------
    # Paged queries
    # ------------------------------------------------------------------
    def query_paged(
        self,
        criteria: StudyLogCriteria,
        ordering: Ordering,
        page_index: int,
        page_size: int,
    ) -> Page[StudyLog]:
        request = PageRequest(page_index, page_size).normalized()
        conditions = self._build_conditions(criteria)

        count_stmt = select(func.count()).select_from(self._logs)
        stmt = select(self._logs)
        if conditions:
            count_stmt = count_stmt.where(*conditions)
            stmt = stmt.where(*conditions)
        stmt = (
            stmt.order_by(*self._order_columns(ordering))
            .offset(request.offset)
            .limit(request.page_size)
        )

        with self._begin("query_paged") as conn:
            total = int(conn.execute(count_stmt).scalar_one())
            rows = conn.execute(stmt).mappings().all()
        return Page(
            content=[_row_to_log(row) for row in rows],
            page_index=request.page_index,
            page_size=request.page_size,
            total_elements=total,
        )

    def _build_conditions(self, criteria: StudyLogCriteria) -> list[Any]:
        c = self._logs.c
        conditions: list[Any] = []
        if criteria.category_unresolved:
            conditions.append(false())
        if criteria.title_keyword is not None:
            conditions.append(self._title_contains(criteria.title_keyword))
        if criteria.category is not None:
            conditions.append(c.category == criteria.category.name)
        if criteria.start_date is not None:
            conditions.append(c.study_date >= criteria.start_date)
        if criteria.end_date is not None:
            conditions.append(c.study_date <= criteria.end_date)
        return conditions

    def _title_contains(self, keyword: str) -> Any:
        title = self._logs.c.title
        # SQLite's LIKE ignores ASCII case; instr() is case-sensitive.
        if self._engine.dialect.name == "sqlite":
            return func.instr(title, keyword) > 0
        return title.contains(keyword, autoescape=True)

    def _order_columns(self, ordering: Ordering) -> list[Any]:
        c = self._logs.c
        columns = {
            SortField.CREATED_AT: c.created_at,
            SortField.ID: c.id,
            SortField.TITLE: c.title,
            SortField.STUDY_TIME: c.study_time,
            SortField.STUDY_DATE: c.study_date,
        }
        column = columns[ordering.field]
        primary = column.desc() if ordering.descending else column.asc()
        if ordering.field is SortField.ID:
            return [primary]
        return [primary, c.id.asc()]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _select_ordered(
        self, conditions: list[Any], ordering: Ordering, operation: str
    ) -> List[StudyLog]:
        stmt = select(self._logs)
        if conditions:
            stmt = stmt.where(*conditions)
        stmt = stmt.order_by(*self._order_columns(ordering))
        with self._begin(operation) as conn:
            rows = conn.execute(stmt).mappings().all()
        return [_row_to_log(row) for row in rows]

    @contextmanager
    def _begin(self, operation: str) -> Iterator[Connection]:
        try:
            with self._engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            logger.error(
                "study_log_storage_failure",
                extra={"operation": operation, "table": self._logs.name},
                exc_info=True,
            )
            raise StudyLogStorageError(
                f"Study log storage failed during {operation}",
                operation=operation,
            ) from exc

    @staticmethod
    def _coerce_values(log: StudyLog) -> Dict[str, Any]:
        return {
            "title": log.title,
            "content": log.content,
            "category": log.category.name,
            "understanding": log.understanding.name,
            "study_time": log.study_time,
            "study_date": log.study_date,
        }


def build_study_log_repository(
    settings: Optional[Settings] = None,
) -> StudyLogRepository:
    """Factory that returns the configured study log store."""

    settings = settings or load_settings()
    if settings.store.backend == "memory":
        return InMemoryStudyLogRepository()
    try:
        return SqlStudyLogRepository(
            build_engine(settings.database_url),
            create_schema=settings.store.create_schema,
        )
    except Exception:
        if not settings.store.fallback_to_memory:
            raise
        logger.warning(
            "sql_study_log_store_unavailable_falling_back",
            exc_info=True,
        )
    return InMemoryStudyLogRepository()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _row_to_log(row: Mapping[str, Any]) -> StudyLog:
    return StudyLog(
        id=int(row["id"]),
        title=row["title"],
        content=row["content"],
        category=Category[row["category"]],
        understanding=Understanding[row["understanding"]],
        study_time=int(row["study_time"]),
        study_date=row["study_date"],
        created_at=_as_utc(row["created_at"]),
        updated_at=_as_utc(row["updated_at"]),
    )
