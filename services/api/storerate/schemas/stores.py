"""Schemas for store listings and store management."""

from datetime import datetime

from pydantic import BaseModel, Field

from storerate.models import Store
from storerate.schemas.common import Histogram, Pagination
from storerate.schemas.ratings import RatingWithRater
from storerate.schemas.users import UserBrief
from storerate.services.aggregation import RatingSummary, display_average
from storerate.services.query import OwnerStoreRow, StoreDetail, StoreRatingsPage, StoreRow


class CreateStoreRequest(BaseModel):
    """Request body for POST /v1/owner/stores."""

    name: str = Field(max_length=200)
    email: str = Field(max_length=255)
    address: str | None = Field(default=None, max_length=400)


class UpdateStoreRequest(BaseModel):
    """Request body for PUT .../stores/{id}. Omitted fields stay unchanged."""

    name: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=255)
    address: str | None = Field(default=None, max_length=400)


class StoreOut(BaseModel):
    """Store record without statistics."""

    id: int
    name: str
    email: str
    address: str | None = None
    owner_id: int = Field(alias="ownerId")
    created_at: datetime = Field(alias="createdAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_model(cls, store: Store) -> "StoreOut":
        return cls(
            id=store.id,
            name=store.name,
            email=store.email,
            address=store.address,
            owner_id=store.owner_id,
            created_at=store.created_at,
        )


class StoreWithStats(StoreOut):
    """Store annotated with live statistics (average rounded for display)."""

    average_rating: float = Field(alias="averageRating", ge=0, le=5)
    total_ratings: int = Field(alias="totalRatings", ge=0)

    @classmethod
    def build(cls, store: Store, summary: RatingSummary, **extra: object) -> "StoreWithStats":
        return cls(
            **StoreOut.from_model(store).model_dump(),
            average_rating=display_average(summary.average),
            total_ratings=summary.count,
            **extra,
        )


class StoreListItem(StoreWithStats):
    """Row of a store listing."""

    owner: UserBrief | None = None

    @classmethod
    def from_row(cls, row: StoreRow) -> "StoreListItem":
        return cls.build(
            row.store,
            row.summary,
            owner=UserBrief.from_model(row.owner) if row.owner else None,
        )


class StoreListResponse(BaseModel):
    """Paginated store listing."""

    stores: list[StoreListItem]
    pagination: Pagination


class StoreDetailOut(StoreListItem):
    """Single-store view with distribution and ratings."""

    rating_distribution: Histogram = Field(alias="ratingDistribution")
    ratings: list[RatingWithRater] = Field(default_factory=list)

    @classmethod
    def from_detail(cls, detail: StoreDetail) -> "StoreDetailOut":
        return cls.build(
            detail.store,
            detail.summary,
            owner=UserBrief.from_model(detail.owner) if detail.owner else None,
            rating_distribution=Histogram.from_counts(detail.summary.histogram),
            ratings=[RatingWithRater.from_row(r) for r in detail.ratings],
        )


class StoreDetailResponse(BaseModel):
    """Response for GET /v1/user/stores/{id}."""

    store: StoreDetailOut


class StoreSummaryOut(BaseModel):
    """Store id/name with its statistics."""

    id: int
    name: str
    average_rating: float = Field(alias="averageRating", ge=0, le=5)
    total_ratings: int = Field(alias="totalRatings", ge=0)

    model_config = {"populate_by_name": True}


class StoreRatingsResponse(BaseModel):
    """Response for GET /v1/owner/stores/{id}/ratings."""

    store: StoreSummaryOut
    ratings: list[RatingWithRater]
    pagination: Pagination

    @classmethod
    def from_page(cls, result: StoreRatingsPage) -> "StoreRatingsResponse":
        return cls(
            store=StoreSummaryOut(
                id=result.store.id,
                name=result.store.name,
                average_rating=display_average(result.summary.average),
                total_ratings=result.summary.count,
            ),
            ratings=[RatingWithRater.from_row(r) for r in result.ratings.rows],
            pagination=Pagination.from_page(result.ratings.page),
        )


class OwnerStoreItem(StoreWithStats):
    """Owner's store with distribution and every rating it received."""

    rating_distribution: Histogram = Field(alias="ratingDistribution")
    ratings: list[RatingWithRater] = Field(default_factory=list)

    @classmethod
    def from_row(cls, row: OwnerStoreRow) -> "OwnerStoreItem":
        return cls.build(
            row.store,
            row.summary,
            rating_distribution=Histogram.from_counts(row.summary.histogram),
            ratings=[RatingWithRater.from_row(r) for r in row.ratings],
        )


class OwnerStoresResponse(BaseModel):
    """Response for GET /v1/owner/my-stores."""

    stores: list[OwnerStoreItem]


class StoreResponse(BaseModel):
    """Envelope for store mutations."""

    message: str
    store: StoreOut


class DeleteStoreResponse(BaseModel):
    """Outcome of a store deletion."""

    message: str
    ratings_removed: int = Field(alias="ratingsRemoved", ge=0)

    model_config = {"populate_by_name": True}
