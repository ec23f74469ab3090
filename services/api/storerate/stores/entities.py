"""Entity store: the data-access interface consumed by services.

``EntityStore`` is the contract (CRUD over users, stores and ratings with
filter/sort/paginate). ``SqlEntityStore`` implements it over one async
SQLAlchemy session, so everything a request does through it lands in the same
transaction.
"""

from collections.abc import Iterable, Sequence
from typing import Any, Protocol

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storerate.models import Rating, Role, Store, User
from storerate.services.errors import ConflictError

STORE_SORT_FIELDS = ("name", "email", "address", "created_at")
USER_SORT_FIELDS = ("name", "email", "role", "address", "created_at")

# Unique constraints/indexes whose violation is a domain conflict
UNIQUE_CONSTRAINTS = frozenset({"uq_ratings_user_store", "ix_users_email", "ix_stores_email"})


def is_unique_violation(error: IntegrityError) -> bool:
    """Whether ``error`` comes from one of ``UNIQUE_CONSTRAINTS``.

    asyncpg exposes the constraint name on the driver exception (chained as
    the cause of SQLAlchemy's adapted error); psycopg exposes it on ``diag``.
    SQLite names only the columns, so there the message decides.
    """
    orig = error.orig
    for source in (getattr(orig, "__cause__", None), getattr(orig, "diag", None), orig):
        name = getattr(source, "constraint_name", None)
        if name:
            return name in UNIQUE_CONSTRAINTS
    return "UNIQUE constraint failed" in str(orig)


class EntityStore(Protocol):
    """Data-access contract for the three entities."""

    # Users
    async def get_user(self, user_id: int) -> User | None: ...
    async def get_user_by_email(self, email: str) -> User | None: ...
    async def get_users(self, user_ids: Iterable[int]) -> dict[int, User]: ...
    async def list_users(
        self,
        *,
        search: str | None = None,
        role: Role | None = None,
        sort: str = "created_at",
        descending: bool = True,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[User], int]: ...
    async def count_users_by_role(self) -> dict[Role, int]: ...
    async def update_user(self, user: User, changes: dict[str, Any]) -> User: ...
    async def delete_user(self, user: User) -> None: ...

    # Stores
    async def get_store(self, store_id: int) -> Store | None: ...
    async def get_store_by_email(self, email: str) -> Store | None: ...
    async def get_stores(self, store_ids: Iterable[int]) -> dict[int, Store]: ...
    async def list_stores(
        self,
        *,
        search: str | None = None,
        owner_id: int | None = None,
        sort: str = "created_at",
        descending: bool = True,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[Store], int]: ...
    async def create_store(self, *, name: str, email: str, address: str | None, owner_id: int) -> Store: ...
    async def update_store(self, store: Store, changes: dict[str, Any]) -> Store: ...
    async def delete_store(self, store: Store) -> None: ...

    # Ratings
    async def get_rating(self, rating_id: int) -> Rating | None: ...
    async def find_rating(self, user_id: int, store_id: int) -> Rating | None: ...
    async def list_ratings(
        self,
        *,
        store_ids: Sequence[int] | None = None,
        user_id: int | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[Rating], int]: ...
    async def create_rating(self, *, user_id: int, store_id: int, value: int) -> Rating: ...
    async def update_rating(self, rating: Rating, value: int) -> Rating: ...
    async def delete_ratings(self, *, store_id: int | None = None, user_id: int | None = None) -> int: ...


def _like_pattern(term: str) -> str:
    """Escape LIKE wildcards so the search term matches literally."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SqlEntityStore:
    """``EntityStore`` over an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ============================================================
    # Users
    # ============================================================

    async def get_user(self, user_id: int) -> User | None:
        return await self._session.get(User, user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self._session.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_users(self, user_ids: Iterable[int]) -> dict[int, User]:
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        result = await self._session.execute(select(User).where(User.id.in_(ids)))
        return {user.id: user for user in result.scalars().all()}

    async def list_users(
        self,
        *,
        search: str | None = None,
        role: Role | None = None,
        sort: str = "created_at",
        descending: bool = True,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[User], int]:
        conditions = []
        if search:
            pattern = _like_pattern(search)
            conditions.append(
                or_(
                    User.name.ilike(pattern, escape="\\"),
                    User.email.ilike(pattern, escape="\\"),
                    User.address.ilike(pattern, escape="\\"),
                )
            )
        if role is not None:
            conditions.append(User.role == role)

        column = getattr(User, sort)
        order = column.desc() if descending else column.asc()
        query = select(User).where(*conditions).order_by(order, User.id.asc()).offset(offset)
        if limit is not None:
            query = query.limit(limit)

        rows = (await self._session.execute(query)).scalars().all()
        total = await self._session.scalar(select(func.count(User.id)).where(*conditions))
        return list(rows), total or 0

    async def count_users_by_role(self) -> dict[Role, int]:
        result = await self._session.execute(
            select(User.role, func.count(User.id)).group_by(User.role)
        )
        counts = {role: 0 for role in Role}
        for role, count in result.all():
            counts[role] = count
        return counts

    async def update_user(self, user: User, changes: dict[str, Any]) -> User:
        for field, value in changes.items():
            setattr(user, field, value)
        await self._flush_unique("A user with this email already exists")
        await self._session.refresh(user)
        return user

    async def delete_user(self, user: User) -> None:
        await self._session.delete(user)
        await self._session.flush()

    # ============================================================
    # Stores
    # ============================================================

    async def get_store(self, store_id: int) -> Store | None:
        return await self._session.get(Store, store_id)

    async def get_store_by_email(self, email: str) -> Store | None:
        result = await self._session.execute(
            select(Store).where(func.lower(Store.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_stores(self, store_ids: Iterable[int]) -> dict[int, Store]:
        ids = sorted(set(store_ids))
        if not ids:
            return {}
        result = await self._session.execute(select(Store).where(Store.id.in_(ids)))
        return {store.id: store for store in result.scalars().all()}

    async def list_stores(
        self,
        *,
        search: str | None = None,
        owner_id: int | None = None,
        sort: str = "created_at",
        descending: bool = True,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[Store], int]:
        conditions = []
        if search:
            pattern = _like_pattern(search)
            conditions.append(
                or_(
                    Store.name.ilike(pattern, escape="\\"),
                    Store.address.ilike(pattern, escape="\\"),
                )
            )
        if owner_id is not None:
            conditions.append(Store.owner_id == owner_id)

        column = getattr(Store, sort)
        order = column.desc() if descending else column.asc()
        query = select(Store).where(*conditions).order_by(order, Store.id.asc()).offset(offset)
        if limit is not None:
            query = query.limit(limit)

        rows = (await self._session.execute(query)).scalars().all()
        total = await self._session.scalar(select(func.count(Store.id)).where(*conditions))
        return list(rows), total or 0

    async def create_store(self, *, name: str, email: str, address: str | None, owner_id: int) -> Store:
        store = Store(name=name, email=email, address=address, owner_id=owner_id)
        self._session.add(store)
        await self._flush_unique("A store with this email already exists")
        return store

    async def update_store(self, store: Store, changes: dict[str, Any]) -> Store:
        for field, value in changes.items():
            setattr(store, field, value)
        await self._flush_unique("A store with this email already exists")
        await self._session.refresh(store)
        return store

    async def delete_store(self, store: Store) -> None:
        await self._session.delete(store)
        await self._session.flush()

    # ============================================================
    # Ratings
    # ============================================================

    async def get_rating(self, rating_id: int) -> Rating | None:
        return await self._session.get(Rating, rating_id)

    async def find_rating(self, user_id: int, store_id: int) -> Rating | None:
        result = await self._session.execute(
            select(Rating).where(Rating.user_id == user_id, Rating.store_id == store_id)
        )
        return result.scalar_one_or_none()

    async def list_ratings(
        self,
        *,
        store_ids: Sequence[int] | None = None,
        user_id: int | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[Rating], int]:
        conditions = []
        if store_ids is not None:
            if not store_ids:
                return [], 0
            conditions.append(Rating.store_id.in_(list(store_ids)))
        if user_id is not None:
            conditions.append(Rating.user_id == user_id)

        query = (
            select(Rating)
            .where(*conditions)
            .order_by(Rating.created_at.desc(), Rating.id.asc())
            .offset(offset)
        )
        if limit is not None:
            query = query.limit(limit)

        rows = (await self._session.execute(query)).scalars().all()
        total = await self._session.scalar(select(func.count(Rating.id)).where(*conditions))
        return list(rows), total or 0

    async def create_rating(self, *, user_id: int, store_id: int, value: int) -> Rating:
        rating = Rating(user_id=user_id, store_id=store_id, rating=value)
        self._session.add(rating)
        # uq_ratings_user_store closes the check-then-insert race
        await self._flush_unique("You have already rated this store")
        return rating

    async def update_rating(self, rating: Rating, value: int) -> Rating:
        rating.rating = value
        await self._session.flush()
        # updated_at is server-side; reload it rather than lazy-loading later
        await self._session.refresh(rating)
        return rating

    async def delete_ratings(self, *, store_id: int | None = None, user_id: int | None = None) -> int:
        if store_id is None and user_id is None:
            raise ValueError("delete_ratings requires store_id or user_id")
        query = delete(Rating)
        if store_id is not None:
            query = query.where(Rating.store_id == store_id)
        if user_id is not None:
            query = query.where(Rating.user_id == user_id)
        result = await self._session.execute(query.execution_options(synchronize_session="fetch"))
        return result.rowcount or 0

    async def _flush_unique(self, message: str) -> None:
        """Flush pending writes, translating unique violations into ConflictError.

        Any other integrity failure (foreign key, check) propagates unchanged.
        The enclosing unit of work is rolled back when the error propagates.
        """
        try:
            await self._session.flush()
        except IntegrityError as e:
            if not is_unique_violation(e):
                raise
            raise ConflictError(message) from e
