"""Schemas for the admin and owner dashboards."""

from datetime import datetime

from pydantic import BaseModel, Field

from storerate.schemas.common import Histogram
from storerate.services.aggregation import FeedEntry, display_average
from storerate.services.query import AdminDashboard, OwnerDashboard


class FeedItem(BaseModel):
    """Entry of a recent-ratings feed."""

    id: int
    user_id: int = Field(alias="userId")
    store_id: int = Field(alias="storeId")
    store_name: str = Field(alias="storeName")
    rating: int = Field(ge=1, le=5)
    created_at: datetime = Field(alias="createdAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_entry(cls, entry: FeedEntry) -> "FeedItem":
        return cls(
            id=entry.rating_id,
            user_id=entry.user_id,
            store_id=entry.store_id,
            store_name=entry.store_name,
            rating=entry.rating,
            created_at=entry.created_at,
        )


class RoleCount(BaseModel):
    """Number of accounts with a role."""

    role: str
    count: int = Field(ge=0)


class AdminStats(BaseModel):
    """Platform-wide figures."""

    total_users: int = Field(alias="totalUsers", ge=0)
    total_stores: int = Field(alias="totalStores", ge=0)
    total_ratings: int = Field(alias="totalRatings", ge=0)
    average_rating: float = Field(alias="averageRating", ge=0, le=5)
    rating_distribution: Histogram = Field(alias="ratingDistribution")
    users_by_role: list[RoleCount] = Field(alias="usersByRole")
    recent_ratings: list[FeedItem] = Field(alias="recentRatings")

    model_config = {"populate_by_name": True}


class AdminDashboardResponse(BaseModel):
    """Response for GET /v1/admin/dashboard."""

    stats: AdminStats

    @classmethod
    def from_dashboard(cls, dashboard: AdminDashboard) -> "AdminDashboardResponse":
        return cls(
            stats=AdminStats(
                total_users=dashboard.total_users,
                total_stores=dashboard.total_stores,
                total_ratings=dashboard.total_ratings,
                average_rating=display_average(dashboard.summary.average),
                rating_distribution=Histogram.from_counts(dashboard.summary.histogram),
                users_by_role=[
                    RoleCount(role=role.value, count=count)
                    for role, count in dashboard.users_by_role.items()
                ],
                recent_ratings=[FeedItem.from_entry(e) for e in dashboard.recent],
            )
        )


class OwnerStoreStats(BaseModel):
    """Per-store line of the owner dashboard."""

    id: int
    name: str
    total_ratings: int = Field(alias="totalRatings", ge=0)
    average_rating: float = Field(alias="averageRating", ge=0, le=5)
    rating_distribution: Histogram = Field(alias="ratingDistribution")

    model_config = {"populate_by_name": True}


class OwnerStats(BaseModel):
    """Figures pooled across the owner's stores."""

    total_stores: int = Field(alias="totalStores", ge=0)
    total_ratings: int = Field(alias="totalRatings", ge=0)
    overall_average_rating: float = Field(alias="overallAverageRating", ge=0, le=5)
    recent_ratings: list[FeedItem] = Field(alias="recentRatings")
    stores: list[OwnerStoreStats]

    model_config = {"populate_by_name": True}


class OwnerDashboardResponse(BaseModel):
    """Response for GET /v1/owner/dashboard."""

    dashboard: OwnerStats

    @classmethod
    def from_dashboard(cls, dashboard: OwnerDashboard) -> "OwnerDashboardResponse":
        rollup = dashboard.rollup
        return cls(
            dashboard=OwnerStats(
                total_stores=rollup.total_stores,
                total_ratings=rollup.total_ratings,
                overall_average_rating=display_average(rollup.overall_average),
                recent_ratings=[FeedItem.from_entry(e) for e in dashboard.recent],
                stores=[
                    OwnerStoreStats(
                        id=s.store_id,
                        name=s.name,
                        total_ratings=s.total_ratings,
                        average_rating=display_average(s.average),
                        rating_distribution=Histogram.from_counts(s.histogram),
                    )
                    for s in rollup.per_store
                ],
            )
        )
