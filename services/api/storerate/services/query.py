"""Query service: role-scoped listings and dashboards.

Every read:
1. is gated by the access policy
2. fetches rows from the entity store (filtered, sorted, paginated)
3. runs the matching ratings through the aggregation functions

Averages and counts are recomputed on each call and never persisted.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from storerate.models import Rating, Role, Store, User
from storerate.services.aggregation import (
    DEFAULT_FEED_LIMIT,
    FeedEntry,
    OwnerRollup,
    RatingSummary,
    group_by_store,
    owner_rollup,
    recent_feed,
    summarize,
)
from storerate.services.errors import NotFoundError, ValidationError
from storerate.services.pagination import PageInfo, page_info, page_offset
from storerate.services.policy import Action, Principal, Target, enforce, enforce_role
from storerate.stores.entities import STORE_SORT_FIELDS, USER_SORT_FIELDS, EntityStore

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of a listing."""

    rows: list[T]
    page: PageInfo

    @property
    def total_count(self) -> int:
        return self.page.total_count


@dataclass
class StoreRow:
    """A store annotated with its owner and live rating summary."""

    store: Store
    owner: User | None
    summary: RatingSummary


@dataclass
class RatingRow:
    """A rating annotated with the account that wrote it."""

    rating: Rating
    rater: User | None


@dataclass
class StoreDetail:
    """Single-store view."""

    store: Store
    owner: User | None
    summary: RatingSummary
    ratings: list[RatingRow] = field(default_factory=list)


@dataclass
class StoreRatingsPage:
    """Owner/admin view of one store's ratings."""

    store: Store
    summary: RatingSummary
    ratings: Page[RatingRow]


@dataclass
class UserRatingRow:
    """One of the caller's ratings with the store it is about."""

    rating: Rating
    store: Store | None


@dataclass
class AdminDashboard:
    """Platform-wide figures."""

    total_users: int
    total_stores: int
    total_ratings: int
    summary: RatingSummary
    users_by_role: dict[Role, int]
    recent: list[FeedEntry]


@dataclass
class OwnerDashboard:
    """Figures across one owner's stores."""

    rollup: OwnerRollup
    recent: list[FeedEntry]


@dataclass
class OwnerStoreRow:
    """An owner's store with its summary and every rating it received."""

    store: Store
    summary: RatingSummary
    ratings: list[RatingRow]


def parse_sort(sort: str | None, allowed: Sequence[str], default: str = "-created_at") -> tuple[str, bool]:
    """Parse ``"name"`` / ``"-name"`` into (field, descending).

    Raises:
        ValidationError: Unknown sort field.
    """
    raw = (sort or default).strip()
    descending = raw.startswith("-")
    name = raw.lstrip("-+")
    if name not in allowed:
        raise ValidationError(
            "Sort must be one of: " + ", ".join(allowed),
            detail={"sort": sort},
        )
    return name, descending


class QueryService:
    """Read side of the platform."""

    def __init__(
        self,
        entities: EntityStore,
        *,
        default_page_size: int = 10,
        max_page_size: int | None = None,
        feed_limit: int = DEFAULT_FEED_LIMIT,
    ) -> None:
        self._entities = entities
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size
        self._feed_limit = feed_limit

    # ============================================================
    # Stores
    # ============================================================

    async def list_stores(
        self,
        principal: Principal | None,
        *,
        search: str | None = None,
        page: int = 1,
        page_size: int | None = None,
        sort: str | None = None,
        all_stores: bool = False,
    ) -> Page[StoreRow]:
        """Stores matching ``search`` (name or address, case-insensitive).

        ``all_stores`` selects the admin store table; otherwise this is the
        browse listing shared by users and admins.
        """
        enforce(principal, Action.STORE_LIST_ALL if all_stores else Action.STORE_BROWSE)
        page_size = self._default_page_size if page_size is None else page_size
        offset = page_offset(page, page_size, self._max_page_size)
        sort_field, descending = parse_sort(sort, STORE_SORT_FIELDS)
        term = search.strip() if search else None

        stores, total = await self._entities.list_stores(
            search=term or None,
            sort=sort_field,
            descending=descending,
            offset=offset,
            limit=page_size,
        )
        rows = await self._annotate_stores(stores)
        return Page(rows=rows, page=page_info(total, page, page_size))

    async def get_store(self, principal: Principal | None, store_id: int) -> StoreDetail:
        """Single store with summary and its ratings, newest first."""
        enforce(principal, Action.STORE_VIEW)
        store = await self._require_store(store_id)

        ratings, _ = await self._entities.list_ratings(store_ids=[store.id])
        users = await self._entities.get_users([store.owner_id, *(r.user_id for r in ratings)])
        return StoreDetail(
            store=store,
            owner=users.get(store.owner_id),
            summary=summarize(ratings),
            ratings=[RatingRow(rating=r, rater=users.get(r.user_id)) for r in ratings],
        )

    async def list_ratings_for_store(
        self,
        principal: Principal | None,
        store_id: int,
        *,
        page: int = 1,
        page_size: int | None = None,
    ) -> StoreRatingsPage:
        """Paginated ratings of one store, for its owner or an admin.

        The summary covers every rating of the store, not just the page.
        """
        store = await self._entities.get_store(store_id)
        if store is None:
            enforce_role(principal, Action.STORE_READ_OWNED)
            raise NotFoundError("Store not found", detail={"store_id": store_id})
        enforce(principal, Action.STORE_READ_OWNED, Target(owner_id=store.owner_id))

        page_size = self._default_page_size if page_size is None else page_size
        offset = page_offset(page, page_size, self._max_page_size)
        all_ratings, _ = await self._entities.list_ratings(store_ids=[store.id])
        page_rows, total = await self._entities.list_ratings(
            store_ids=[store.id],
            offset=offset,
            limit=page_size,
        )
        raters = await self._entities.get_users(r.user_id for r in page_rows)
        return StoreRatingsPage(
            store=store,
            summary=summarize(all_ratings),
            ratings=Page(
                rows=[RatingRow(rating=r, rater=raters.get(r.user_id)) for r in page_rows],
                page=page_info(total, page, page_size),
            ),
        )

    # ============================================================
    # Ratings
    # ============================================================

    async def list_user_ratings(self, principal: Principal | None) -> list[UserRatingRow]:
        """The caller's own ratings, newest first, with store details."""
        user = enforce(principal, Action.RATING_LIST_OWN)
        ratings, _ = await self._entities.list_ratings(user_id=user.id)
        stores = await self._entities.get_stores(r.store_id for r in ratings)
        return [UserRatingRow(rating=r, store=stores.get(r.store_id)) for r in ratings]

    # ============================================================
    # Users
    # ============================================================

    async def list_users(
        self,
        principal: Principal | None,
        *,
        search: str | None = None,
        role: Role | None = None,
        page: int = 1,
        page_size: int | None = None,
        sort: str | None = None,
    ) -> Page[User]:
        """Accounts matching ``search`` (name, email or address) and ``role``."""
        enforce(principal, Action.USER_LIST)
        page_size = self._default_page_size if page_size is None else page_size
        offset = page_offset(page, page_size, self._max_page_size)
        sort_field, descending = parse_sort(sort, USER_SORT_FIELDS)
        term = search.strip() if search else None

        users, total = await self._entities.list_users(
            search=term or None,
            role=role,
            sort=sort_field,
            descending=descending,
            offset=offset,
            limit=page_size,
        )
        return Page(rows=users, page=page_info(total, page, page_size))

    # ============================================================
    # Dashboards
    # ============================================================

    async def admin_dashboard(self, principal: Principal | None) -> AdminDashboard:
        """Global scope: every store and every rating."""
        enforce(principal, Action.ADMIN_DASHBOARD)
        users_by_role = await self._entities.count_users_by_role()
        stores, total_stores = await self._entities.list_stores()
        ratings, total_ratings = await self._entities.list_ratings()
        return AdminDashboard(
            total_users=sum(users_by_role.values()),
            total_stores=total_stores,
            total_ratings=total_ratings,
            summary=summarize(ratings),
            users_by_role=users_by_role,
            recent=recent_feed(ratings, stores, limit=self._feed_limit),
        )

    async def owner_dashboard(self, principal: Principal | None) -> OwnerDashboard:
        """Owner scope: the caller's stores and their ratings, pooled."""
        owner = enforce(principal, Action.OWNER_DASHBOARD)
        stores, _ = await self._entities.list_stores(owner_id=owner.id)
        ratings, _ = await self._entities.list_ratings(store_ids=[s.id for s in stores])
        return OwnerDashboard(
            rollup=owner_rollup(stores, group_by_store(ratings)),
            recent=recent_feed(ratings, stores, limit=self._feed_limit),
        )

    async def owner_stores(self, principal: Principal | None) -> list[OwnerStoreRow]:
        """The caller's stores, each with summary, histogram and ratings."""
        owner = enforce(principal, Action.OWNER_DASHBOARD)
        stores, _ = await self._entities.list_stores(owner_id=owner.id)
        ratings, _ = await self._entities.list_ratings(store_ids=[s.id for s in stores])
        raters = await self._entities.get_users(r.user_id for r in ratings)
        grouped = group_by_store(ratings)
        return [
            OwnerStoreRow(
                store=store,
                summary=summarize(grouped.get(store.id, [])),
                ratings=[RatingRow(rating=r, rater=raters.get(r.user_id)) for r in grouped.get(store.id, [])],
            )
            for store in stores
        ]

    # ============================================================
    # Helpers
    # ============================================================

    async def _annotate_stores(self, stores: list[Store]) -> list[StoreRow]:
        ratings, _ = await self._entities.list_ratings(store_ids=[s.id for s in stores])
        owners = await self._entities.get_users(s.owner_id for s in stores)
        grouped = group_by_store(ratings)
        return [
            StoreRow(
                store=store,
                owner=owners.get(store.owner_id),
                summary=summarize(grouped.get(store.id, [])),
            )
            for store in stores
        ]

    async def _require_store(self, store_id: int) -> Store:
        store = await self._entities.get_store(store_id)
        if store is None:
            raise NotFoundError("Store not found", detail={"store_id": store_id})
        return store
