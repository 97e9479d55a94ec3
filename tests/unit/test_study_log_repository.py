"""Conformance tests shared by the in-memory and SQL study log stores."""

# Coverage: study log store

from __future__ import annotations

import dataclasses
import threading
from datetime import date

import pytest
import sqlalchemy as sa

from study_diary.app.domain.study_log import (
    Category,
    InMemoryStudyLogRepository,
    Ordering,
    SqlStudyLogRepository,
    StudyLogCriteria,
    StudyLogNotFoundError,
    StudyLogStorageError,
    Understanding,
)
from tests.helpers.study_logs import build_sqlite_engine, make_log

pytestmark = [pytest.mark.studylog_store]


def test_insert_assigns_id_and_timestamps(repository):
    saved = repository.insert(make_log())

    assert saved.id is not None
    assert saved.created_at is not None
    assert saved.created_at.tzinfo is not None
    assert saved.created_at == saved.updated_at


def test_insert_then_get_round_trips_every_field(repository):
    draft = make_log(
        title="TCP handshake",
        content="SYN, SYN-ACK, ACK",
        category=Category.NETWORK,
        understanding=Understanding.NORMAL,
        study_time=30,
        study_date=date(2026, 2, 1),
    )

    saved = repository.insert(draft)
    fetched = repository.get_by_id(saved.id)

    assert fetched == saved
    assert fetched.title == "TCP handshake"
    assert fetched.content == "SYN, SYN-ACK, ACK"
    assert fetched.category is Category.NETWORK
    assert fetched.understanding is Understanding.NORMAL
    assert fetched.study_time == 30
    assert fetched.study_date == date(2026, 2, 1)


def test_get_unknown_id_returns_none(repository):
    assert repository.get_by_id(404) is None


def test_insert_with_duplicate_explicit_id_raises_storage_error(repository):
    saved = repository.insert(make_log())

    with pytest.raises(StudyLogStorageError) as excinfo:
        repository.insert(dataclasses.replace(make_log(), id=saved.id))

    assert excinfo.value.details == {"operation": "insert"}


def test_list_all_is_deterministic_and_ordered_by_creation(repository):
    for index in range(5):
        repository.insert(make_log(title=f"Entry {index}"))

    first = repository.list_all()
    second = repository.list_all()

    assert [log.id for log in first] == [log.id for log in second]
    assert [log.title for log in first] == [f"Entry {index}" for index in range(5)]


def test_list_by_category_is_lenient(repository):
    repository.insert(make_log(category=Category.SPRING))
    repository.insert(make_log(category=Category.JAVA))
    repository.insert(make_log(category=Category.SPRING))

    assert len(repository.list_by_category(Category.SPRING)) == 2
    assert len(repository.list_by_category(" spring ")) == 2
    assert repository.list_by_category("KOTLIN") == []
    assert repository.list_by_category("") == []
    assert repository.list_by_category(None) == []


def test_list_by_date_filters_exact_day(repository):
    repository.insert(make_log(study_date=date(2026, 3, 14)))
    repository.insert(make_log(study_date=date(2026, 3, 15)))

    result = repository.list_by_date(date(2026, 3, 14))

    assert [log.study_date for log in result] == [date(2026, 3, 14)]


def test_update_replaces_fields_and_keeps_created_at(repository):
    saved = repository.insert(make_log())

    updated = repository.update(
        dataclasses.replace(saved, title="Bean scopes", study_time=90)
    )

    assert updated.id == saved.id
    assert updated.title == "Bean scopes"
    assert updated.study_time == 90
    assert updated.created_at == saved.created_at
    assert updated.created_at <= updated.updated_at
    assert repository.get_by_id(saved.id).title == "Bean scopes"


def test_update_unknown_id_raises_not_found(repository):
    with pytest.raises(StudyLogNotFoundError):
        repository.update(dataclasses.replace(make_log(), id=999))


def test_update_without_id_raises_not_found(repository):
    with pytest.raises(StudyLogNotFoundError):
        repository.update(make_log())


def test_mutating_a_returned_record_is_rejected(repository):
    saved = repository.insert(make_log())

    with pytest.raises(dataclasses.FrozenInstanceError):
        saved.title = "changed"  # type: ignore[misc]
    assert repository.get_by_id(saved.id).title == "Spring Bean Lifecycle"


def test_delete_by_id_is_idempotent(repository):
    saved = repository.insert(make_log())

    assert repository.delete_by_id(saved.id) is True
    assert repository.delete_by_id(saved.id) is False
    assert repository.exists(saved.id) is False


def test_exists_and_count(repository):
    assert repository.count() == 0
    saved = repository.insert(make_log())
    repository.insert(make_log())

    assert repository.exists(saved.id) is True
    assert repository.exists(saved.id + 100) is False
    assert repository.count() == 2


def test_delete_all_resets_identity(repository):
    repository.insert(make_log())
    repository.insert(make_log())

    repository.delete_all()

    assert repository.count() == 0
    assert repository.insert(make_log()).id == 1


def test_query_paged_returns_last_partial_page(repository):
    for index in range(25):
        repository.insert(make_log(title=f"Spring {index}", category=Category.SPRING))
    for index in range(4):
        repository.insert(make_log(title=f"Java {index}", category=Category.JAVA))

    page = repository.query_paged(
        StudyLogCriteria.build(category="SPRING"), Ordering.page_default(), 2, 10
    )

    assert len(page.content) == 5
    assert page.total_elements == 25
    assert page.total_pages == 3
    assert page.has_next is False
    assert page.has_previous is True
    assert all(log.category is Category.SPRING for log in page.content)


def test_query_paged_past_the_end_is_empty(repository):
    for _ in range(3):
        repository.insert(make_log())

    page = repository.query_paged(StudyLogCriteria(), Ordering.page_default(), 5, 10)

    assert page.content == []
    assert page.total_elements == 3


def test_query_paged_with_unresolved_category_matches_nothing(repository):
    repository.insert(make_log())

    page = repository.query_paged(
        StudyLogCriteria.build(category="KOTLIN"), Ordering.page_default(), 0, 10
    )

    assert page.content == []
    assert page.total_elements == 0


def test_query_paged_title_match_is_case_sensitive(repository):
    repository.insert(make_log(title="Spring Security"))
    repository.insert(make_log(title="spring boot"))

    page = repository.query_paged(
        StudyLogCriteria.build(title="Spring"), Ordering.page_default(), 0, 10
    )

    assert [log.title for log in page.content] == ["Spring Security"]


def test_query_paged_treats_wildcards_literally(repository):
    repository.insert(make_log(title="100% coverage"))
    repository.insert(make_log(title="1000 coverage"))

    page = repository.query_paged(
        StudyLogCriteria.build(title="0%"), Ordering.page_default(), 0, 10
    )

    assert [log.title for log in page.content] == ["100% coverage"]


def test_in_memory_ids_stay_unique_under_concurrent_inserts():
    repository = InMemoryStudyLogRepository()
    per_thread = 50

    def worker() -> None:
        for _ in range(per_thread):
            repository.insert(make_log())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    ids = [log.id for log in repository.list_all()]
    assert len(ids) == 8 * per_thread
    assert len(set(ids)) == len(ids)


def test_sql_store_wraps_driver_errors():
    repository = SqlStudyLogRepository(build_sqlite_engine(), create_schema=False)

    with pytest.raises(StudyLogStorageError) as excinfo:
        repository.get_by_id(1)

    assert excinfo.value.error_code == "STUDYLOG-STORAGE-FAILURE"
    assert excinfo.value.details == {"operation": "get_by_id"}


def test_sql_store_returns_utc_timestamps():
    repository = SqlStudyLogRepository(build_sqlite_engine(), create_schema=True)

    saved = repository.insert(make_log())
    fetched = repository.get_by_id(saved.id)

    assert fetched.created_at.utcoffset().total_seconds() == 0


def test_sql_paged_count_and_fetch_are_not_isolated(tmp_path):
    engine = sa.create_engine(f"sqlite+pysqlite:///{tmp_path / 'logs.db'}")
    repository = SqlStudyLogRepository(engine, create_schema=True)
    for _ in range(3):
        repository.insert(make_log())
    state = {"armed": False}

    @sa.event.listens_for(engine, "before_cursor_execute")
    def _insert_between_count_and_fetch(conn, cursor, statement, *args):
        if state["armed"] and "LIMIT" in statement and "count(" not in statement:
            state["armed"] = False
            repository.insert(make_log(title="Concurrent"))

    state["armed"] = True
    page = repository.query_paged(StudyLogCriteria(), Ordering.page_default(), 0, 100)

    assert page.total_elements == 3
    assert len(page.content) == 4
    assert page.content[0].title == "Concurrent"
    engine.dispose()
