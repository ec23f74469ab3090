"""Common schemas used across the API."""

from typing import Any

from pydantic import BaseModel, Field

from storerate.services.pagination import PageInfo


class ErrorDetail(BaseModel):
    """Structured error detail."""

    code: str
    message: str
    detail: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standard error response format.

    Format: { "error": { "code": str, "message": str, "detail": object } }
    """

    error: ErrorDetail


class Pagination(BaseModel):
    """Pagination block attached to every listing."""

    current_page: int = Field(alias="currentPage", ge=1)
    page_size: int = Field(alias="pageSize", ge=1)
    total_count: int = Field(alias="totalCount", ge=0)
    total_pages: int = Field(alias="totalPages", ge=0)
    has_next_page: bool = Field(alias="hasNextPage")
    has_prev_page: bool = Field(alias="hasPrevPage")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_page(cls, page: PageInfo) -> "Pagination":
        return cls(
            current_page=page.current_page,
            page_size=page.page_size,
            total_count=page.total_count,
            total_pages=page.total_pages,
            has_next_page=page.has_next_page,
            has_prev_page=page.has_prev_page,
        )


class Histogram(BaseModel):
    """Rating distribution; keys are star values 1..5."""

    one: int = Field(alias="1", ge=0)
    two: int = Field(alias="2", ge=0)
    three: int = Field(alias="3", ge=0)
    four: int = Field(alias="4", ge=0)
    five: int = Field(alias="5", ge=0)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_counts(cls, counts: dict[int, int]) -> "Histogram":
        return cls(one=counts[1], two=counts[2], three=counts[3], four=counts[4], five=counts[5])
