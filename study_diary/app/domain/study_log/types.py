"""Shared study log domain types."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from http import HTTPStatus
from typing import Any, Dict, Optional, Type, TypeVar

_E = TypeVar("_E", bound="_ParsableEnum")


class _ParsableEnum(str, Enum):
    @classmethod
    def parse(cls: Type[_E], value: Any) -> Optional[_E]:
        """Resolve ``value`` to a member, or ``None`` when it does not name one.

        Strings are trimmed and matched case-insensitively against member names.
        """

        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        candidate = value.strip().upper()
        if not candidate:
            return None
        return cls.__members__.get(candidate)

    @classmethod
    def names(cls) -> list[str]:
        return list(cls.__members__)


class Category(_ParsableEnum):
    """Topic tag attached to every study log."""

    SPRING = "SPRING"
    JAVA = "JAVA"
    DATABASE = "DATABASE"
    JPA = "JPA"
    ALGORITHM = "ALGORITHM"
    NETWORK = "NETWORK"
    OS = "OS"
    DEVOPS = "DEVOPS"
    ETC = "ETC"


class Understanding(_ParsableEnum):
    """Self-assessed understanding level."""

    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    NORMAL = "NORMAL"
    POOR = "POOR"
    CONFUSED = "CONFUSED"


class StudyLogServiceError(Exception):
    """Domain exception propagated to API handlers."""

    def __init__(
        self,
        *,
        status_code: HTTPStatus,
        error_code: str,
        message: str,
        details: Dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.details = details or {}


class StudyLogValidationError(StudyLogServiceError):
    """Malformed or out-of-range input; never retried."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            error_code="STUDYLOG-INVALID-REQUEST",
            message=message,
            details={"field": field} if field else {},
        )


class StudyLogNotFoundError(StudyLogServiceError):
    def __init__(self, log_id: Any) -> None:
        super().__init__(
            status_code=HTTPStatus.NOT_FOUND,
            error_code="STUDYLOG-NOT-FOUND",
            message=f"Study log '{log_id}' not found",
            details={"id": log_id},
        )


class StudyLogStorageError(StudyLogServiceError):
    """Backend failure (connectivity, driver errors) surfaced to the caller."""

    def __init__(self, message: str, *, operation: str) -> None:
        super().__init__(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            error_code="STUDYLOG-STORAGE-FAILURE",
            message=message,
            details={"operation": operation},
        )


def utcnow() -> datetime:
    """UTC timestamp helper shared across implementations."""

    return datetime.now(timezone.utc)
