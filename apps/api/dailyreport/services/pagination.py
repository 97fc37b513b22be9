import math

from dailyreport.schemas.common import PaginationInfo


def calculate_offset(page: int, per_page: int) -> int:
    return (page - 1) * per_page


def calculate_pagination(total: int, page: int, per_page: int) -> PaginationInfo:
    """Build the pagination envelope.

    There is always at least one page, and a page past the end is pulled
    back to the last one; callers take their offset from
    ``current_page``. ``from``/``to`` are 1-based inclusive item
    positions, both 0 when there is nothing to show.
    """
    last_page = max(1, math.ceil(total / per_page))
    current_page = min(page, last_page)
    offset = calculate_offset(current_page, per_page)
    return PaginationInfo(
        total=total,
        per_page=per_page,
        current_page=current_page,
        last_page=last_page,
        from_=offset + 1 if total > 0 else 0,
        to=min(offset + per_page, total),
    )
