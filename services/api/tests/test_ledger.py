"""Tests for the rating ledger."""

import pytest

from storerate.models import Role
from storerate.services.aggregation import summarize
from storerate.services.errors import ConflictError, NotFoundError, ValidationError
from storerate.services.ledger import validate_rating_value


@pytest.fixture
def shop(entities):
    owner = entities.add_user("Olivia Owner", Role.OWNER)
    return entities.add_store("Corner Grocery", owner)


@pytest.fixture
def raters(entities):
    return [entities.add_user(name, Role.USER) for name in ("Uma", "Uri", "Ula")]


async def store_summary(entities, store):
    ratings, _ = await entities.list_ratings(store_ids=[store.id])
    return summarize(ratings)


@pytest.mark.asyncio
async def test_three_users_rate_one_store(entities, ledger, shop, raters):
    for user, value in zip(raters, (5, 5, 4)):
        await ledger.submit(user.id, shop.id, value)

    summary = await store_summary(entities, shop)
    assert summary.count == 3
    assert summary.average == pytest.approx(14 / 3)
    assert summary.histogram == {1: 0, 2: 0, 3: 0, 4: 1, 5: 2}


@pytest.mark.asyncio
async def test_second_submission_is_a_conflict_and_changes_nothing(entities, ledger, shop, raters):
    first = await ledger.submit(raters[0].id, shop.id, 4)

    with pytest.raises(ConflictError) as exc_info:
        await ledger.submit(raters[0].id, shop.id, 1)

    assert exc_info.value.detail == {"store_id": shop.id, "rating_id": first.id}
    assert len(entities.ratings) == 1
    assert entities.ratings[first.id].rating == 4


@pytest.mark.asyncio
async def test_update_overwrites_value_in_place(entities, ledger, shop, raters):
    rating = await ledger.submit(raters[0].id, shop.id, 4)
    created_at = rating.created_at

    updated = await ledger.update(rating.id, raters[0].id, 2)

    assert updated.id == rating.id
    assert updated.rating == 2
    assert updated.created_at == created_at
    assert len(entities.ratings) == 1
    assert (await store_summary(entities, shop)).average == 2.0


@pytest.mark.asyncio
async def test_update_of_someone_elses_rating_is_not_found(ledger, shop, raters):
    rating = await ledger.submit(raters[0].id, shop.id, 4)

    with pytest.raises(NotFoundError):
        await ledger.update(rating.id, raters[1].id, 1)
    assert rating.rating == 4


@pytest.mark.asyncio
async def test_update_of_missing_rating_is_not_found(ledger, raters):
    with pytest.raises(NotFoundError):
        await ledger.update(999, raters[0].id, 3)


@pytest.mark.asyncio
async def test_submit_for_missing_store_is_not_found(ledger, raters):
    with pytest.raises(NotFoundError):
        await ledger.submit(raters[0].id, 404, 3)


@pytest.mark.asyncio
@pytest.mark.parametrize("value", [0, 6, -1, 100])
async def test_out_of_range_values_are_rejected(entities, ledger, shop, raters, value):
    with pytest.raises(ValidationError):
        await ledger.submit(raters[0].id, shop.id, value)
    assert entities.ratings == {}


@pytest.mark.asyncio
async def test_out_of_range_update_leaves_rating_alone(ledger, shop, raters):
    rating = await ledger.submit(raters[0].id, shop.id, 3)
    with pytest.raises(ValidationError):
        await ledger.update(rating.id, raters[0].id, 6)
    assert rating.rating == 3


@pytest.mark.parametrize("value", [3.5, "4", None, True])
def test_non_integer_values_are_rejected(value):
    with pytest.raises(ValidationError):
        validate_rating_value(value)


@pytest.mark.parametrize("value", [1, 2, 3, 4, 5])
def test_every_star_value_is_accepted(value):
    assert validate_rating_value(value) == value


@pytest.mark.asyncio
async def test_delete_for_store_is_idempotent(entities, ledger, shop, raters):
    other = entities.add_store("Book Nook", entities.users[shop.owner_id])
    for user in raters:
        await ledger.submit(user.id, shop.id, 3)
    await ledger.submit(raters[0].id, other.id, 5)

    assert await ledger.delete_for_store(shop.id) == 3
    assert await ledger.delete_for_store(shop.id) == 0
    assert [r.store_id for r in entities.ratings.values()] == [other.id]


@pytest.mark.asyncio
async def test_delete_for_user_and_ratings_for_user(entities, ledger, shop, raters):
    other = entities.add_store("Book Nook", entities.users[shop.owner_id])
    await ledger.submit(raters[0].id, shop.id, 2)
    await ledger.submit(raters[0].id, other.id, 5)
    await ledger.submit(raters[1].id, shop.id, 4)

    mine = await ledger.ratings_for_user(raters[0].id)
    assert [r.store_id for r in mine] == [other.id, shop.id]

    assert await ledger.delete_for_user(raters[0].id) == 2
    assert await ledger.ratings_for_user(raters[0].id) == []
    assert len(entities.ratings) == 1
