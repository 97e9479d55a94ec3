"""Tests for the profile-based settings loader and store factory."""

# Coverage: config

from __future__ import annotations

import pytest

from study_diary.app.config import Settings, StoreConfig, load_settings
from study_diary.app.domain.study_log import (
    InMemoryStudyLogRepository,
    SqlStudyLogRepository,
    StudyLogStorageError,
    build_study_log_repository,
)

pytestmark = [pytest.mark.config]


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for name in (
        "STUDY_DIARY_CONFIG_PROFILE",
        "STUDY_DIARY_CONFIG_DIR",
        "STUDY_DIARY_STORE_BACKEND",
        "DATABASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_load_settings_falls_back_to_defaults(monkeypatch, tmp_path):
    """Missing profiles should default to the built-in dev configuration."""

    monkeypatch.setenv("STUDY_DIARY_CONFIG_PROFILE", "missing")
    monkeypatch.setenv("STUDY_DIARY_CONFIG_DIR", str(tmp_path))

    settings = load_settings()

    assert settings.environment == "dev"
    assert settings.database_url.startswith("sqlite+pysqlite:///")
    assert settings.store == StoreConfig(
        backend="sql", fallback_to_memory=False, create_schema=True
    )
    assert settings.logging == {"level": "INFO"}


def test_load_settings_reads_yaml_profile(tmp_path):
    """Config loader should parse YAML profiles and expose store settings."""

    (tmp_path / "staging.yml").write_text(
        """
environment: staging

database:
  url: "postgresql+psycopg://postgres:pw@db:5432/study_diary"

store:
  backend: MEMORY
  fallback_to_memory: true
  create_schema: false

logging:
  level: DEBUG
""",
        encoding="utf-8",
    )

    settings = load_settings("staging", tmp_path)

    assert settings.environment == "staging"
    assert settings.database_url.endswith("/study_diary")
    assert settings.store.backend == "memory"
    assert settings.store.fallback_to_memory is True
    assert settings.store.create_schema is False
    assert settings.logging["level"] == "DEBUG"
    assert settings.raw["environment"] == "staging"


def test_environment_overrides_profile(monkeypatch, tmp_path):
    (tmp_path / "dev.yaml").write_text(
        "database:\n  url: sqlite+pysqlite:///profile.db\nstore:\n  backend: sql\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("STUDY_DIARY_CONFIG_DIR", str(tmp_path))
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///override.db")
    monkeypatch.setenv("STUDY_DIARY_STORE_BACKEND", "memory")

    settings = load_settings()

    assert settings.database_url == "sqlite+pysqlite:///override.db"
    assert settings.store.backend == "memory"


def test_unknown_store_backend_is_rejected(monkeypatch, tmp_path):
    monkeypatch.setenv("STUDY_DIARY_STORE_BACKEND", "redis")

    with pytest.raises(RuntimeError, match="Unsupported store backend"):
        load_settings("missing", tmp_path)


def test_malformed_profile_raises(tmp_path):
    (tmp_path / "dev.yaml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(RuntimeError, match="mapping"):
        load_settings("dev", tmp_path)


def test_repository_factory_builds_memory_store():
    settings = Settings(store=StoreConfig(backend="memory"))

    assert isinstance(build_study_log_repository(settings), InMemoryStudyLogRepository)


def test_repository_factory_builds_sql_store(tmp_path):
    settings = Settings(
        database_url=f"sqlite+pysqlite:///{tmp_path / 'diary.db'}",
        store=StoreConfig(backend="sql", create_schema=True),
    )

    repository = build_study_log_repository(settings)

    assert isinstance(repository, SqlStudyLogRepository)
    assert repository.count() == 0


def test_repository_factory_falls_back_to_memory(tmp_path):
    settings = Settings(
        database_url=f"sqlite+pysqlite:///{tmp_path / 'missing' / 'dir' / 'diary.db'}",
        store=StoreConfig(backend="sql", fallback_to_memory=True),
    )

    repository = build_study_log_repository(settings)

    assert isinstance(repository, InMemoryStudyLogRepository)


def test_repository_factory_raises_without_fallback(tmp_path):
    settings = Settings(
        database_url=f"sqlite+pysqlite:///{tmp_path / 'missing' / 'dir' / 'diary.db'}",
        store=StoreConfig(backend="sql", fallback_to_memory=False),
    )

    with pytest.raises(StudyLogStorageError):
        build_study_log_repository(settings)
