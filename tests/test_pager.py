import math

import pytest

from ethdash.core.pager import paginate


@pytest.mark.parametrize("n", [0, 1, 2, 5, 7, 20, 21])
@pytest.mark.parametrize("page_size", [1, 2, 3, 20])
def test_pages_cover_entries_in_order(n, page_size):
    entries = list(range(n))
    _, first = paginate(entries, 1, page_size)
    assert first.total_pages == (math.ceil(n / page_size) if n else 0)
    assert first.total_transactions == n

    collected = []
    for page in range(1, first.total_pages + 1):
        window, _ = paginate(entries, page, page_size)
        assert 0 < len(window) <= page_size
        collected.extend(window)
    assert collected == entries


def test_second_page_of_five():
    window, pagination = paginate(["a", "b", "c", "d", "e"], 2, 2)
    assert window == ["c", "d"]
    assert pagination.model_dump(by_alias=True) == {
        "currentPage": 2,
        "totalPages": 3,
        "totalTransactions": 5,
        "pageSize": 2,
        "hasNextPage": True,
        "hasPreviousPage": True,
    }


def test_flags_at_bounds():
    _, first = paginate(list(range(5)), 1, 2)
    assert (first.has_previous_page, first.has_next_page) == (False, True)
    _, last = paginate(list(range(5)), 3, 2)
    assert (last.has_previous_page, last.has_next_page) == (True, False)


def test_page_past_the_end_is_empty():
    window, pagination = paginate(list(range(5)), 9, 2)
    assert window == []
    assert pagination.current_page == 9  # noqa: PLR2004
    assert pagination.has_next_page is False
    assert pagination.has_previous_page is True


def test_empty_list_has_no_pages():
    window, pagination = paginate([], 1, 20)
    assert window == []
    assert pagination.total_pages == 0
    assert pagination.has_next_page is False
    assert pagination.has_previous_page is False


@pytest.mark.parametrize("page", [0, -1, -5])
def test_non_positive_page_never_wraps(page):
    window, pagination = paginate(list(range(10)), page, 3)
    assert window == []
    assert pagination.current_page == page


def test_page_size_must_be_positive():
    with pytest.raises(ValueError, match="page_size"):
        paginate([1, 2], 1, 0)
