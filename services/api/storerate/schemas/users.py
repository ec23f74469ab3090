"""Schemas for account management (/v1/admin/users)."""

from datetime import datetime

from pydantic import BaseModel, Field

from storerate.models import Role, User
from storerate.schemas.common import Pagination


class UserBrief(BaseModel):
    """Name and email only, as shown next to stores and ratings."""

    id: int
    name: str
    email: str

    @classmethod
    def from_model(cls, user: User) -> "UserBrief":
        return cls(id=user.id, name=user.name, email=user.email)


class UserOut(BaseModel):
    """Account as listed to administrators. Never includes credentials."""

    id: int
    name: str
    email: str
    role: Role
    address: str | None = None
    created_at: datetime = Field(alias="createdAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_model(cls, user: User) -> "UserOut":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            address=user.address,
            created_at=user.created_at,
        )


class UserListResponse(BaseModel):
    """Paginated account listing."""

    users: list[UserOut]
    pagination: Pagination


class UpdateUserRequest(BaseModel):
    """Request body for PUT /v1/admin/users/{id}. Omitted fields stay unchanged."""

    name: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=255)
    role: Role | None = None
    address: str | None = Field(default=None, max_length=400)


class UserResponse(BaseModel):
    """Single-account envelope."""

    message: str | None = None
    user: UserOut


class DeleteUserResponse(BaseModel):
    """Outcome of an account deletion, with cascade counts."""

    message: str
    ratings_removed: int = Field(alias="ratingsRemoved", ge=0)
    stores_removed: int = Field(alias="storesRemoved", ge=0)
    store_ratings_removed: int = Field(alias="storeRatingsRemoved", ge=0)

    model_config = {"populate_by_name": True}
