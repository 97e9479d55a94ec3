"""System health endpoints for frontend polling."""

from typing import Any

from fastapi import APIRouter, Depends

from ...api.dependencies import get_settings, get_study_log_repository
from ...config import Settings
from ...domain.study_log import StudyLogRepository

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/healthz")
def healthcheck(
    settings: Settings = Depends(get_settings),
    repository: StudyLogRepository = Depends(get_study_log_repository),
) -> dict[str, Any]:
    """Return coarse-grained backend readiness information."""

    return {
        "status": "ok",
        "environment": settings.environment,
        "studyLogStore": type(repository).__name__,
    }
