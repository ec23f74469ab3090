"""1-indexed page arithmetic shared by every listing."""

import math
from dataclasses import dataclass

from storerate.services.errors import ValidationError


@dataclass(frozen=True)
class PageInfo:
    """Pagination metadata for one page of a listing."""

    current_page: int
    page_size: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    @property
    def offset(self) -> int:
        return (self.current_page - 1) * self.page_size


def page_offset(page: int, page_size: int, max_page_size: int | None = None) -> int:
    """Validate a page request and return its row offset.

    Raises:
        ValidationError: page < 1, page_size < 1 or page_size above the maximum.
    """
    if page < 1:
        raise ValidationError("Page must be 1 or greater", detail={"page": page})
    if page_size < 1:
        raise ValidationError("Page size must be 1 or greater", detail={"page_size": page_size})
    if max_page_size is not None and page_size > max_page_size:
        raise ValidationError(
            f"Page size must not exceed {max_page_size}",
            detail={"page_size": page_size},
        )
    return (page - 1) * page_size


def page_info(total_count: int, page: int, page_size: int) -> PageInfo:
    """Derive page metadata.

    Example: total_count=25, page_size=10 gives 3 pages; page 3 has a previous
    page and no next page.
    """
    offset = (page - 1) * page_size
    return PageInfo(
        current_page=page,
        page_size=page_size,
        total_count=total_count,
        total_pages=math.ceil(total_count / page_size),
        has_next_page=offset + page_size < total_count,
        has_prev_page=page > 1,
    )
