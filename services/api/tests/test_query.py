"""Tests for role-scoped listings and dashboards."""

from datetime import datetime, timedelta, timezone

import pytest

from storerate.models import Role
from storerate.services.errors import ForbiddenError, NotFoundError, UnauthenticatedError, ValidationError
from storerate.services.policy import AdminPrincipal, OwnerPrincipal, UserPrincipal
from storerate.services.query import QueryService, parse_sort
from storerate.stores.entities import STORE_SORT_FIELDS

EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def world(entities):
    """Two owners, three raters, three stores with ratings."""
    admin = entities.add_user("Ada Admin", Role.ADMIN)
    olivia = entities.add_user("Olivia", Role.OWNER)
    omar = entities.add_user("Omar", Role.OWNER)
    uma, uri, ula = (entities.add_user(n, Role.USER) for n in ("Uma", "Uri", "Ula"))

    grocery = entities.add_store("Corner Grocery", olivia, address="1 Main St")
    books = entities.add_store("Book Nook", olivia, address="22 Library Way")
    fish = entities.add_store("Harbour Fish", omar, address="5 Pier Rd, Mainport")

    entities.add_rating(uma, grocery, 5, created_at=EPOCH + timedelta(days=1))
    entities.add_rating(uri, grocery, 5, created_at=EPOCH + timedelta(days=2))
    entities.add_rating(uma, books, 1, created_at=EPOCH + timedelta(days=3))
    entities.add_rating(ula, fish, 3, created_at=EPOCH + timedelta(days=4))

    return {
        "admin": admin, "olivia": olivia, "omar": omar,
        "uma": uma, "uri": uri, "ula": ula,
        "grocery": grocery, "books": books, "fish": fish,
    }


@pytest.mark.asyncio
async def test_browse_annotates_average_and_count(queries, world):
    page = await queries.list_stores(UserPrincipal(world["uma"].id), sort="name")

    assert [row.store.name for row in page.rows] == ["Book Nook", "Corner Grocery", "Harbour Fish"]
    stats = {row.store.name: (row.summary.average, row.summary.count) for row in page.rows}
    assert stats == {"Book Nook": (1.0, 1), "Corner Grocery": (5.0, 2), "Harbour Fish": (3.0, 1)}
    assert page.rows[1].owner.id == world["olivia"].id


@pytest.mark.asyncio
async def test_search_matches_name_or_address_case_insensitively(queries, world):
    user = UserPrincipal(world["uma"].id)
    by_name = await queries.list_stores(user, search="nook")
    by_address = await queries.list_stores(user, search="MAIN")

    assert [row.store.id for row in by_name.rows] == [world["books"].id]
    assert {row.store.id for row in by_address.rows} == {world["grocery"].id, world["fish"].id}


@pytest.mark.asyncio
async def test_unrated_store_shows_zero(entities, queries, world):
    entities.add_store("Quiet Corner", world["omar"])
    page = await queries.list_stores(UserPrincipal(world["uma"].id), search="quiet")
    assert page.rows[0].summary.average == 0.0
    assert page.rows[0].summary.count == 0


@pytest.mark.asyncio
async def test_store_listing_pagination(entities, queries, world):
    for i in range(22):
        entities.add_store(f"Extra {i:02d}", world["omar"])

    page = await queries.list_stores(UserPrincipal(world["uma"].id), page=3, page_size=10)

    assert page.total_count == 25
    assert page.page.total_pages == 3
    assert len(page.rows) == 5
    assert page.page.has_next_page is False
    assert page.page.has_prev_page is True


@pytest.mark.asyncio
async def test_default_page_size_applies(entities, world):
    for i in range(12):
        entities.add_store(f"Extra {i:02d}", world["omar"])
    queries = QueryService(entities, default_page_size=4)
    page = await queries.list_stores(UserPrincipal(world["uma"].id))
    assert len(page.rows) == 4
    assert page.page.page_size == 4


@pytest.mark.asyncio
async def test_admin_store_table_is_admin_only(queries, world):
    page = await queries.list_stores(AdminPrincipal(world["admin"].id), all_stores=True)
    assert page.total_count == 3
    with pytest.raises(ForbiddenError):
        await queries.list_stores(UserPrincipal(world["uma"].id), all_stores=True)
    with pytest.raises(ForbiddenError):
        await queries.list_stores(OwnerPrincipal(world["olivia"].id))
    with pytest.raises(UnauthenticatedError):
        await queries.list_stores(None)


@pytest.mark.asyncio
async def test_bad_listing_parameters(queries, world):
    user = UserPrincipal(world["uma"].id)
    with pytest.raises(ValidationError):
        await queries.list_stores(user, page=0)
    with pytest.raises(ValidationError):
        await queries.list_stores(user, page_size=500)
    with pytest.raises(ValidationError):
        await queries.list_stores(user, sort="password")


def test_parse_sort():
    assert parse_sort(None, STORE_SORT_FIELDS) == ("created_at", True)
    assert parse_sort("name", STORE_SORT_FIELDS) == ("name", False)
    assert parse_sort("-address", STORE_SORT_FIELDS) == ("address", True)


@pytest.mark.asyncio
async def test_store_detail(queries, world):
    detail = await queries.get_store(UserPrincipal(world["uri"].id), world["grocery"].id)
    assert detail.summary.histogram == {1: 0, 2: 0, 3: 0, 4: 0, 5: 2}
    assert [row.rater.name for row in detail.ratings] == ["Uri", "Uma"]
    assert detail.owner.name == "Olivia"

    with pytest.raises(NotFoundError):
        await queries.get_store(UserPrincipal(world["uri"].id), 404)


@pytest.mark.asyncio
async def test_owner_sees_ratings_of_own_store_only(queries, world):
    olivia = OwnerPrincipal(world["olivia"].id)
    result = await queries.list_ratings_for_store(olivia, world["grocery"].id, page_size=1)

    assert result.summary.count == 2
    assert result.summary.average == 5.0
    assert len(result.ratings.rows) == 1
    assert result.ratings.page.has_next_page is True

    with pytest.raises(ForbiddenError):
        await queries.list_ratings_for_store(olivia, world["fish"].id)
    with pytest.raises(ForbiddenError):
        await queries.list_ratings_for_store(UserPrincipal(world["uma"].id), world["grocery"].id)
    with pytest.raises(NotFoundError):
        await queries.list_ratings_for_store(AdminPrincipal(world["admin"].id), 404)
    with pytest.raises(NotFoundError):
        await queries.list_ratings_for_store(olivia, 404)
    with pytest.raises(ForbiddenError):
        await queries.list_ratings_for_store(UserPrincipal(world["uma"].id), 404)


@pytest.mark.asyncio
async def test_user_ratings_newest_first_with_store(queries, world):
    rows = await queries.list_user_ratings(UserPrincipal(world["uma"].id))
    assert [(row.store.name, row.rating.rating) for row in rows] == [("Book Nook", 1), ("Corner Grocery", 5)]


@pytest.mark.asyncio
async def test_user_ratings_load_stores_in_one_batch(entities, queries, world, monkeypatch):
    batches = []
    load_batch = entities.get_stores

    async def one_by_one(store_id):
        raise AssertionError(f"store {store_id} fetched individually")

    async def counted(store_ids):
        ids = list(store_ids)
        batches.append(sorted(set(ids)))
        return await load_batch(ids)

    monkeypatch.setattr(entities, "get_store", one_by_one)
    monkeypatch.setattr(entities, "get_stores", counted)

    rows = await queries.list_user_ratings(UserPrincipal(world["uma"].id))

    assert batches == [sorted([world["grocery"].id, world["books"].id])]
    assert {row.store.name for row in rows} == {"Book Nook", "Corner Grocery"}


@pytest.mark.asyncio
async def test_list_users_filters(queries, world):
    admin = AdminPrincipal(world["admin"].id)
    owners = await queries.list_users(admin, role=Role.OWNER, sort="name")
    assert [u.name for u in owners.rows] == ["Olivia", "Omar"]

    found = await queries.list_users(admin, search="ula")
    assert [u.id for u in found.rows] == [world["ula"].id]

    with pytest.raises(ForbiddenError):
        await queries.list_users(OwnerPrincipal(world["olivia"].id))


@pytest.mark.asyncio
async def test_admin_dashboard(queries, world):
    dashboard = await queries.admin_dashboard(AdminPrincipal(world["admin"].id))

    assert dashboard.total_users == 6
    assert dashboard.total_stores == 3
    assert dashboard.total_ratings == 4
    assert dashboard.summary.average == pytest.approx(14 / 4)
    assert dashboard.users_by_role == {Role.USER: 3, Role.OWNER: 2, Role.ADMIN: 1}
    assert [e.store_name for e in dashboard.recent] == ["Harbour Fish", "Book Nook", "Corner Grocery", "Corner Grocery"]


@pytest.mark.asyncio
async def test_owner_dashboard_is_scoped_and_pooled(queries, world):
    dashboard = await queries.owner_dashboard(OwnerPrincipal(world["olivia"].id))

    rollup = dashboard.rollup
    assert rollup.total_stores == 2
    assert rollup.total_ratings == 3
    assert rollup.overall_average == pytest.approx(11 / 3)
    assert {e.store_id for e in dashboard.recent} == {world["grocery"].id, world["books"].id}
    assert dashboard.recent[0].store_name == "Book Nook"

    with pytest.raises(ForbiddenError):
        await queries.owner_dashboard(UserPrincipal(world["uma"].id))


@pytest.mark.asyncio
async def test_owner_stores_carry_their_ratings(queries, world):
    rows = await queries.owner_stores(OwnerPrincipal(world["omar"].id))
    assert [row.store.name for row in rows] == ["Harbour Fish"]
    assert rows[0].summary.histogram[3] == 1
    assert [r.rater.name for r in rows[0].ratings] == ["Ula"]
