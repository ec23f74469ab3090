"""Pydantic schemas for API request/response validation."""

from storerate.schemas.common import ErrorDetail, ErrorResponse, Histogram, Pagination
from storerate.schemas.dashboard import AdminDashboardResponse, OwnerDashboardResponse
from storerate.schemas.ratings import (
    MyRatingsResponse,
    RatingResponse,
    SubmitRatingRequest,
    UpdateRatingRequest,
)
from storerate.schemas.stores import (
    CreateStoreRequest,
    DeleteStoreResponse,
    OwnerStoresResponse,
    StoreDetailResponse,
    StoreListResponse,
    StoreRatingsResponse,
    StoreResponse,
    UpdateStoreRequest,
)
from storerate.schemas.users import (
    DeleteUserResponse,
    UpdateUserRequest,
    UserListResponse,
    UserResponse,
)

__all__ = [
    "AdminDashboardResponse",
    "CreateStoreRequest",
    "DeleteStoreResponse",
    "DeleteUserResponse",
    "ErrorDetail",
    "ErrorResponse",
    "Histogram",
    "MyRatingsResponse",
    "OwnerDashboardResponse",
    "OwnerStoresResponse",
    "Pagination",
    "RatingResponse",
    "StoreDetailResponse",
    "StoreListResponse",
    "StoreRatingsResponse",
    "StoreResponse",
    "SubmitRatingRequest",
    "UpdateRatingRequest",
    "UpdateStoreRequest",
    "UpdateUserRequest",
    "UserListResponse",
    "UserResponse",
]
