"""Rating ledger.

Owns the mutation rules for individual ratings:
- one rating per (user, store) pair, checked before insert and backed by the
  storage unique constraint
- values are integers in [1, 5]
- only the rater may change a rating, and only its value
"""

import logging

from storerate.models import Rating
from storerate.models.rating import MAX_RATING, MIN_RATING
from storerate.services.errors import ConflictError, NotFoundError, ValidationError
from storerate.stores.entities import EntityStore

logger = logging.getLogger("uvicorn.error")


def validate_rating_value(value: object) -> int:
    """Check that ``value`` is an integer star rating in range.

    Raises:
        ValidationError: Missing, non-integer or out-of-range value.
    """
    # bool is an int subclass; True must not sneak through as 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"Rating must be a whole number between {MIN_RATING} and {MAX_RATING}",
            detail={"rating": value},
        )
    if value < MIN_RATING or value > MAX_RATING:
        raise ValidationError(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}",
            detail={"rating": value},
        )
    return value


class RatingLedger:
    """Writes to the ratings table go through here."""

    def __init__(self, entities: EntityStore) -> None:
        self._entities = entities

    async def submit(self, user_id: int, store_id: int, value: int) -> Rating:
        """Record a user's first rating of a store.

        Raises:
            ValidationError: Value out of range.
            NotFoundError: Store does not exist.
            ConflictError: The user already rated this store.
        """
        value = validate_rating_value(value)

        store = await self._entities.get_store(store_id)
        if store is None:
            raise NotFoundError("Store not found", detail={"store_id": store_id})

        existing = await self._entities.find_rating(user_id, store_id)
        if existing is not None:
            raise ConflictError(
                "You have already rated this store",
                detail={"store_id": store_id, "rating_id": existing.id},
            )

        rating = await self._entities.create_rating(user_id=user_id, store_id=store_id, value=value)
        logger.info("[ratings] submitted rating_id=%s user_id=%s store_id=%s value=%s",
                    rating.id, user_id, store_id, value)
        return rating

    async def update(self, rating_id: int, requester_id: int, value: int) -> Rating:
        """Overwrite the value of the requester's own rating.

        created_at is left untouched and no new row is created.

        Raises:
            ValidationError: Value out of range.
            NotFoundError: No rating with that id belongs to the requester.
        """
        value = validate_rating_value(value)

        rating = await self._entities.get_rating(rating_id)
        if rating is None or rating.user_id != requester_id:
            raise NotFoundError("Rating not found", detail={"rating_id": rating_id})

        rating = await self._entities.update_rating(rating, value)
        logger.info("[ratings] updated rating_id=%s user_id=%s value=%s", rating_id, requester_id, value)
        return rating

    async def delete_for_store(self, store_id: int) -> int:
        """Remove every rating of a store. Idempotent; returns rows removed."""
        removed = await self._entities.delete_ratings(store_id=store_id)
        if removed:
            logger.info("[ratings] removed %s rating(s) for store_id=%s", removed, store_id)
        return removed

    async def delete_for_user(self, user_id: int) -> int:
        """Remove every rating a user has written. Idempotent; returns rows removed."""
        removed = await self._entities.delete_ratings(user_id=user_id)
        if removed:
            logger.info("[ratings] removed %s rating(s) by user_id=%s", removed, user_id)
        return removed

    async def ratings_for_user(self, user_id: int) -> list[Rating]:
        """The user's own ratings, newest first."""
        rows, _ = await self._entities.list_ratings(user_id=user_id)
        return rows
