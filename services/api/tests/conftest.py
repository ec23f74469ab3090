"""Shared fixtures.

Tests run without PostgreSQL: ``InMemoryEntityStore`` implements the entity
store contract over plain dicts and mimics the constraints the database
enforces (unique emails, unique (user, store) rating pair, foreign keys that
refuse to delete a referenced row).
"""

from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from storerate.main import create_app
from storerate.models import Rating, Role, Store, User
from storerate.routes.deps import get_entities
from storerate.services.accounts import UserDirectory
from storerate.services.catalog import StoreCatalog
from storerate.services.errors import ConflictError
from storerate.services.identity import create_access_token
from storerate.services.ledger import RatingLedger
from storerate.services.query import QueryService
from storerate.settings import Settings, get_settings

EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


class ForeignKeyViolation(Exception):
    """Raised when deleting a row that other rows still reference."""


def _sort_key(value: Any) -> tuple[bool, Any]:
    if isinstance(value, Role):
        value = value.value
    if isinstance(value, str):
        value = value.lower()
    return (value is None, value if value is not None else 0)


class InMemoryEntityStore:
    """Dict-backed EntityStore for tests."""

    def __init__(self) -> None:
        self.users: dict[int, User] = {}
        self.stores: dict[int, Store] = {}
        self.ratings: dict[int, Rating] = {}
        self._user_ids = count(1)
        self._store_ids = count(1)
        self._rating_ids = count(1)
        self._ticks = count(0)

    def _now(self) -> datetime:
        return EPOCH + timedelta(minutes=next(self._ticks))

    # ------------------------------------------------------------
    # Seeding helpers (not part of the contract)
    # ------------------------------------------------------------

    def add_user(self, name: str, role: Role, email: str | None = None, address: str | None = None) -> User:
        user_id = next(self._user_ids)
        now = self._now()
        user = User(
            id=user_id,
            name=name,
            email=email or f"{name.lower().replace(' ', '.')}@example.com",
            role=role,
            address=address,
            created_at=now,
            updated_at=now,
        )
        self.users[user_id] = user
        return user

    def add_store(self, name: str, owner: User, email: str | None = None, address: str | None = None) -> Store:
        store_id = next(self._store_ids)
        now = self._now()
        store = Store(
            id=store_id,
            name=name,
            email=email or f"store{store_id}@example.com",
            address=address,
            owner_id=owner.id,
            created_at=now,
            updated_at=now,
        )
        self.stores[store_id] = store
        return store

    def add_rating(self, user: User, store: Store, value: int, created_at: datetime | None = None) -> Rating:
        rating_id = next(self._rating_ids)
        now = created_at or self._now()
        rating = Rating(
            id=rating_id,
            user_id=user.id,
            store_id=store.id,
            rating=value,
            created_at=now,
            updated_at=now,
        )
        self.ratings[rating_id] = rating
        return rating

    # ------------------------------------------------------------
    # Users
    # ------------------------------------------------------------

    async def get_user(self, user_id: int) -> User | None:
        return self.users.get(user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        return next((u for u in self.users.values() if u.email.lower() == email.lower()), None)

    async def get_users(self, user_ids) -> dict[int, User]:
        return {i: self.users[i] for i in set(user_ids) if i in self.users}

    async def list_users(self, *, search=None, role=None, sort="created_at", descending=True, offset=0, limit=None):
        rows = list(self.users.values())
        if search:
            term = search.lower()
            rows = [
                u for u in rows
                if term in u.name.lower() or term in u.email.lower() or term in (u.address or "").lower()
            ]
        if role is not None:
            rows = [u for u in rows if u.role == role]
        return self._page(rows, sort, descending, offset, limit)

    async def count_users_by_role(self) -> dict[Role, int]:
        counts = {role: 0 for role in Role}
        for user in self.users.values():
            counts[user.role] += 1
        return counts

    async def update_user(self, user: User, changes: dict[str, Any]) -> User:
        email = changes.get("email")
        if email is not None and any(
            u.email.lower() == email.lower() and u.id != user.id for u in self.users.values()
        ):
            raise ConflictError("A user with this email already exists")
        for field, value in changes.items():
            setattr(user, field, value)
        user.updated_at = self._now()
        return user

    async def delete_user(self, user: User) -> None:
        if any(s.owner_id == user.id for s in self.stores.values()) or any(
            r.user_id == user.id for r in self.ratings.values()
        ):
            raise ForeignKeyViolation(f"user {user.id} is still referenced")
        del self.users[user.id]

    # ------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------

    async def get_store(self, store_id: int) -> Store | None:
        return self.stores.get(store_id)

    async def get_store_by_email(self, email: str) -> Store | None:
        return next((s for s in self.stores.values() if s.email.lower() == email.lower()), None)

    async def get_stores(self, store_ids) -> dict[int, Store]:
        return {i: self.stores[i] for i in set(store_ids) if i in self.stores}

    async def list_stores(self, *, search=None, owner_id=None, sort="created_at", descending=True, offset=0, limit=None):
        rows = list(self.stores.values())
        if search:
            term = search.lower()
            rows = [s for s in rows if term in s.name.lower() or term in (s.address or "").lower()]
        if owner_id is not None:
            rows = [s for s in rows if s.owner_id == owner_id]
        return self._page(rows, sort, descending, offset, limit)

    async def create_store(self, *, name: str, email: str, address: str | None, owner_id: int) -> Store:
        if await self.get_store_by_email(email) is not None:
            raise ConflictError("A store with this email already exists")
        return self.add_store(name, self.users[owner_id], email=email, address=address)

    async def update_store(self, store: Store, changes: dict[str, Any]) -> Store:
        email = changes.get("email")
        if email is not None and any(
            s.email.lower() == email.lower() and s.id != store.id for s in self.stores.values()
        ):
            raise ConflictError("A store with this email already exists")
        for field, value in changes.items():
            setattr(store, field, value)
        store.updated_at = self._now()
        return store

    async def delete_store(self, store: Store) -> None:
        if any(r.store_id == store.id for r in self.ratings.values()):
            raise ForeignKeyViolation(f"store {store.id} is still referenced")
        del self.stores[store.id]

    # ------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------

    async def get_rating(self, rating_id: int) -> Rating | None:
        return self.ratings.get(rating_id)

    async def find_rating(self, user_id: int, store_id: int) -> Rating | None:
        return next(
            (r for r in self.ratings.values() if r.user_id == user_id and r.store_id == store_id),
            None,
        )

    async def list_ratings(self, *, store_ids=None, user_id=None, offset=0, limit=None):
        rows = list(self.ratings.values())
        if store_ids is not None:
            wanted = set(store_ids)
            rows = [r for r in rows if r.store_id in wanted]
        if user_id is not None:
            rows = [r for r in rows if r.user_id == user_id]
        rows.sort(key=lambda r: r.id)
        rows.sort(key=lambda r: r.created_at, reverse=True)
        end = None if limit is None else offset + limit
        return rows[offset:end], len(rows)

    async def create_rating(self, *, user_id: int, store_id: int, value: int) -> Rating:
        if await self.find_rating(user_id, store_id) is not None:
            raise ConflictError("You have already rated this store")
        return self.add_rating(self.users[user_id], self.stores[store_id], value)

    async def update_rating(self, rating: Rating, value: int) -> Rating:
        rating.rating = value
        rating.updated_at = self._now()
        return rating

    async def delete_ratings(self, *, store_id=None, user_id=None) -> int:
        doomed = [
            r.id for r in self.ratings.values()
            if (store_id is None or r.store_id == store_id) and (user_id is None or r.user_id == user_id)
        ]
        for rating_id in doomed:
            del self.ratings[rating_id]
        return len(doomed)

    @staticmethod
    def _page(rows, sort, descending, offset, limit):
        rows.sort(key=lambda row: row.id)
        rows.sort(key=lambda row: _sort_key(getattr(row, sort)), reverse=descending)
        end = None if limit is None else offset + limit
        return rows[offset:end], len(rows)


@pytest.fixture
def entities() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture
def ledger(entities: InMemoryEntityStore) -> RatingLedger:
    return RatingLedger(entities)


@pytest.fixture
def catalog(entities: InMemoryEntityStore, ledger: RatingLedger) -> StoreCatalog:
    return StoreCatalog(entities, ledger)


@pytest.fixture
def directory(entities: InMemoryEntityStore, ledger: RatingLedger, catalog: StoreCatalog) -> UserDirectory:
    return UserDirectory(entities, ledger, catalog)


@pytest.fixture
def queries(entities: InMemoryEntityStore) -> QueryService:
    return QueryService(entities, max_page_size=100)


@pytest.fixture
def settings() -> Settings:
    return Settings(jwt_secret="test-secret", cors_origins=["http://test"])


@pytest.fixture
def app(settings: Settings, entities: InMemoryEntityStore):
    """Application wired to the in-memory entity store."""
    application = create_app(settings=settings)
    application.dependency_overrides[get_entities] = lambda: entities
    application.dependency_overrides[get_settings] = lambda: settings
    return application


@pytest.fixture
async def client(app):
    """Create test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def auth_headers(settings: Settings):
    """Build an Authorization header for an account."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role, settings)}"}

    return _headers
