"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from study_diary.app.domain.study_log import StudyLogRepository
from tests.helpers.study_logs import STORE_KINDS, build_repository


@pytest.fixture(params=STORE_KINDS)
def repository(request: pytest.FixtureRequest) -> StudyLogRepository:
    """Run the requesting test once per store backend."""

    return build_repository(request.param)
