"""Schemas for ratings (/v1/user/ratings, store rating listings)."""

from datetime import datetime

from pydantic import BaseModel, Field, StrictInt

from storerate.models import Rating
from storerate.schemas.users import UserBrief
from storerate.services.query import RatingRow, UserRatingRow


class SubmitRatingRequest(BaseModel):
    """Request body for POST /v1/user/ratings.

    The value range is enforced by the rating ledger so every entry point
    reports the same error.
    """

    store_id: int = Field(alias="storeId")
    rating: StrictInt

    model_config = {"populate_by_name": True}


class UpdateRatingRequest(BaseModel):
    """Request body for PUT /v1/user/ratings/{id}."""

    rating: StrictInt


class RatingOut(BaseModel):
    """A rating record."""

    id: int
    user_id: int = Field(alias="userId")
    store_id: int = Field(alias="storeId")
    rating: int = Field(ge=1, le=5)
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime | None = Field(alias="updatedAt", default=None)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_model(cls, rating: Rating) -> "RatingOut":
        return cls(
            id=rating.id,
            user_id=rating.user_id,
            store_id=rating.store_id,
            rating=rating.rating,
            created_at=rating.created_at,
            updated_at=rating.updated_at,
        )


class RatingWithRater(RatingOut):
    """A rating plus who wrote it."""

    rater: UserBrief | None = None

    @classmethod
    def from_row(cls, row: RatingRow) -> "RatingWithRater":
        base = RatingOut.from_model(row.rating)
        return cls(
            **base.model_dump(),
            rater=UserBrief.from_model(row.rater) if row.rater else None,
        )


class RatedStore(BaseModel):
    """Store fields shown next to a user's own rating."""

    id: int
    name: str
    address: str | None = None


class MyRating(RatingOut):
    """One of the caller's ratings."""

    store: RatedStore | None = None

    @classmethod
    def from_row(cls, row: UserRatingRow) -> "MyRating":
        base = RatingOut.from_model(row.rating)
        store = row.store
        return cls(
            **base.model_dump(),
            store=RatedStore(id=store.id, name=store.name, address=store.address) if store else None,
        )


class RatingResponse(BaseModel):
    """Envelope for rating mutations."""

    message: str
    rating: RatingOut


class MyRatingsResponse(BaseModel):
    """Response for GET /v1/user/my-ratings."""

    ratings: list[MyRating]
