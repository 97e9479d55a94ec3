"""Shared API dependencies."""

from __future__ import annotations

from functools import lru_cache

from ..config import Settings, load_settings
from ..domain.study_log import (
    StudyLogRepository,
    StudyLogService,
    build_study_log_repository,
)

__all__ = [
    "get_settings",
    "get_study_log_repository",
    "get_study_log_service",
]


@lru_cache()
def _settings_singleton() -> Settings:
    return load_settings()


def get_settings() -> Settings:
    """Return the settings loaded for this process."""

    return _settings_singleton()


@lru_cache()
def _repository_singleton() -> StudyLogRepository:
    return build_study_log_repository(get_settings())


def get_study_log_repository() -> StudyLogRepository:
    """Return the process-wide study log store."""

    return _repository_singleton()


@lru_cache()
def _study_log_service_singleton() -> StudyLogService:
    return StudyLogService(repository=get_study_log_repository())


def get_study_log_service() -> StudyLogService:
    """Return the study log service singleton."""

    return _study_log_service_singleton()
