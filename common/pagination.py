import math
from dataclasses import dataclass
from typing import Any, Sequence


@dataclass
class Page:
    items: list
    page: int
    per_page: int
    total: int
    total_pages: int


def paginate(items: Sequence[Any], page: int = 1, per_page: int = 10) -> Page:
    """Slice an already-loaded list into one page.

    An empty list yields an empty first page with zero pages; pages past
    the end yield an empty slice.
    """
    if page < 1:
        raise ValueError("page must be greater than or equal to 1")
    if per_page < 1:
        raise ValueError("per_page must be greater than or equal to 1")

    total = len(items)
    start = (page - 1) * per_page
    return Page(
        items=list(items[start:start + per_page]),
        page=page,
        per_page=per_page,
        total=total,
        total_pages=math.ceil(total / per_page),
    )
