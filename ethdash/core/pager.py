from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TypeVar

from ethdash.core.models import Pagination

T = TypeVar("T")


def paginate(entries: Sequence[T], page: int, page_size: int) -> tuple[list[T], Pagination]:
    """Slice one page out of ``entries`` and describe where it sits.

    Pages past the end give an empty slice. ``page`` is echoed back as-is.
    Callers are expected to reject ``page < 1``; if one slips through it gets
    an empty slice rather than wrapping around to the tail of the list.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")

    total = len(entries)
    total_pages = math.ceil(total / page_size) if total else 0

    window: list[T] = []
    if page >= 1:
        start = (page - 1) * page_size
        window = list(entries[start : start + page_size])

    return window, Pagination(
        current_page=page,
        total_pages=total_pages,
        total_transactions=total,
        page_size=page_size,
        has_next_page=page < total_pages,
        has_previous_page=page > 1,
    )
