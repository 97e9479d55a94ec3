"""Tests for page arithmetic and the page envelope."""

from __future__ import annotations

import pytest

from study_diary.app.domain.study_log import (
    MAX_PAGE_SIZE,
    Page,
    PageRequest,
    paginate,
)

pytestmark = [pytest.mark.studylog_query]


@pytest.mark.parametrize("total", [0, 1, 7, 10, 25, 101])
@pytest.mark.parametrize("size", [1, 3, 10, 100])
@pytest.mark.parametrize("index", [0, 1, 2, 9, 50])
def test_paginate_window_length_matches_remaining_elements(total, size, index):
    start, end = paginate(total, index, size)

    assert end - start == min(size, max(0, total - index * size))
    assert 0 <= start <= end <= total


def test_paginate_past_the_end_is_empty_not_an_error():
    assert paginate(25, 3, 10) == (25, 25)
    assert paginate(0, 0, 10) == (0, 0)


def test_paginate_last_partial_page():
    assert paginate(25, 2, 10) == (20, 25)


@pytest.mark.parametrize(
    ("index", "size", "expected"),
    [
        (-4, 10, (0, 10)),
        (2, 0, (2, 1)),
        (0, -5, (0, 1)),
        (1, 1000, (1, MAX_PAGE_SIZE)),
        (3, 100, (3, 100)),
    ],
)
def test_page_request_normalization_clamps(index, size, expected):
    request = PageRequest(index, size).normalized()

    assert (request.page_index, request.page_size) == expected


def test_page_request_offset():
    assert PageRequest(3, 20).offset == 60


def test_page_derived_counts():
    page = Page(content=[1, 2, 3, 4, 5], page_index=2, page_size=10, total_elements=25)

    assert page.total_pages == 3
    assert page.has_next is False
    assert page.has_previous is True


def test_page_derived_counts_for_empty_result():
    page = Page.empty(PageRequest(0, 10))

    assert page.total_pages == 0
    assert page.has_next is False
    assert page.has_previous is False


def test_page_map_keeps_counts():
    page = Page(content=[1, 2], page_index=0, page_size=2, total_elements=5)

    mapped = page.map(str)

    assert mapped.content == ["1", "2"]
    assert mapped.total_elements == 5
    assert mapped.has_next is True
