"""Rating aggregation.

Pure functions over a supplied collection of ratings. No storage access; the
caller decides the scope (one store, one owner's stores, the whole platform)
purely by what it passes in.

- average: arithmetic mean, 0.0 for no ratings (full precision)
- histogram: counts for stars 1..5, every key always present
- recent_feed: newest first, ties by id, annotated with the store
- owner_rollup: pooled statistics over several stores
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

STARS = (1, 2, 3, 4, 5)
DEFAULT_FEED_LIMIT = 10


class RatingLike(Protocol):
    """What aggregation needs from a rating record."""

    id: int
    user_id: int
    store_id: int
    rating: int
    created_at: datetime


class StoreLike(Protocol):
    """What aggregation needs from a store record."""

    id: int
    name: str


@dataclass
class RatingSummary:
    """Average, count and distribution for one collection of ratings."""

    average: float
    count: int
    histogram: dict[int, int]


@dataclass
class StoreSummary:
    """Per-store line of an owner rollup."""

    store_id: int
    name: str
    total_ratings: int
    average: float
    histogram: dict[int, int]


@dataclass
class OwnerRollup:
    """Pooled statistics over all of an owner's stores."""

    total_stores: int
    total_ratings: int
    overall_average: float
    per_store: list[StoreSummary] = field(default_factory=list)


@dataclass
class FeedEntry:
    """One rating in a recency feed, annotated with its store."""

    rating_id: int
    user_id: int
    store_id: int
    store_name: str
    rating: int
    created_at: datetime


def average(ratings: Iterable[RatingLike]) -> float:
    """Arithmetic mean of the rating values.

    Args:
        ratings: Ratings to average.

    Returns:
        Mean at full precision, or 0.0 when there are no ratings.
    """
    values = [r.rating for r in ratings]
    if not values:
        return 0.0
    return sum(values) / len(values)


def display_average(value: float) -> float:
    """Round an average to one decimal place (half-up) for display."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def histogram(ratings: Iterable[RatingLike]) -> dict[int, int]:
    """Count ratings per star value.

    Returns:
        Mapping with exactly the keys 1..5; values sum to the number of ratings.
    """
    counts = dict.fromkeys(STARS, 0)
    for r in ratings:
        counts[r.rating] += 1
    return counts


def summarize(ratings: Iterable[RatingLike]) -> RatingSummary:
    """Average, count and histogram in one pass over the input."""
    items = list(ratings)
    return RatingSummary(average=average(items), count=len(items), histogram=histogram(items))


def recent_feed(
    ratings: Iterable[RatingLike],
    stores: Iterable[StoreLike],
    limit: int = DEFAULT_FEED_LIMIT,
) -> list[FeedEntry]:
    """Most recent ratings across stores.

    Sorted by created_at descending; equal timestamps keep id order.

    Args:
        ratings: Ratings from any number of stores.
        stores: Stores the ratings belong to (for name annotation).
        limit: Maximum number of entries.

    Returns:
        Up to ``limit`` FeedEntry objects, newest first.
    """
    names = {s.id: s.name for s in stores}
    by_id = sorted(ratings, key=lambda r: r.id)
    ordered = sorted(by_id, key=lambda r: r.created_at, reverse=True)
    return [
        FeedEntry(
            rating_id=r.id,
            user_id=r.user_id,
            store_id=r.store_id,
            store_name=names.get(r.store_id, ""),
            rating=r.rating,
            created_at=r.created_at,
        )
        for r in ordered[: max(limit, 0)]
    ]


def group_by_store(ratings: Iterable[RatingLike]) -> dict[int, list[RatingLike]]:
    """Bucket ratings by store id, preserving input order within each bucket."""
    grouped: dict[int, list[RatingLike]] = {}
    for r in ratings:
        grouped.setdefault(r.store_id, []).append(r)
    return grouped


def owner_rollup(
    stores: Sequence[StoreLike],
    ratings_by_store: Mapping[int, Sequence[RatingLike]],
) -> OwnerRollup:
    """Dashboard rollup over several stores.

    The overall average pools every rating across the stores, so a store
    with many ratings weighs proportionally more than one with few. It is
    not the mean of the per-store averages.
    """
    per_store: list[StoreSummary] = []
    pooled: list[RatingLike] = []
    for store in stores:
        store_ratings = list(ratings_by_store.get(store.id, ()))
        pooled.extend(store_ratings)
        summary = summarize(store_ratings)
        per_store.append(
            StoreSummary(
                store_id=store.id,
                name=store.name,
                total_ratings=summary.count,
                average=summary.average,
                histogram=summary.histogram,
            )
        )

    return OwnerRollup(
        total_stores=len(stores),
        total_ratings=len(pooled),
        overall_average=average(pooled),
        per_store=per_store,
    )
