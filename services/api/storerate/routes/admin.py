"""Admin endpoints: platform dashboard, account and store management.

Routers are thin: the access policy runs inside the services, so every
handler passes the request principal straight through.
"""

from fastapi import APIRouter, Query

from storerate.models import Role
from storerate.routes.deps import Catalog, CurrentPrincipal, Directory, Queries
from storerate.schemas import (
    AdminDashboardResponse,
    DeleteStoreResponse,
    DeleteUserResponse,
    Pagination,
    StoreListResponse,
    StoreResponse,
    UpdateStoreRequest,
    UpdateUserRequest,
    UserListResponse,
    UserResponse,
)
from storerate.schemas.stores import StoreListItem, StoreOut
from storerate.schemas.users import UserOut

router = APIRouter()


@router.get("/dashboard", response_model=AdminDashboardResponse)
async def get_dashboard(principal: CurrentPrincipal, queries: Queries) -> AdminDashboardResponse:
    """Totals, global average and distribution, accounts per role, recent ratings."""
    dashboard = await queries.admin_dashboard(principal)
    return AdminDashboardResponse.from_dashboard(dashboard)


# ============================================================
# Accounts
# ============================================================


@router.get("/users", response_model=UserListResponse)
async def list_users(
    principal: CurrentPrincipal,
    queries: Queries,
    search: str | None = Query(default=None, max_length=100, description="Name, email or address contains"),
    role: Role | None = Query(default=None, description="Only accounts with this role"),
    page: int = Query(default=1, description="1-indexed page number"),
    limit: int | None = Query(default=None, description="Page size (server default when omitted)"),
    sort: str | None = Query(default=None, description="Sort field, prefix with '-' for descending"),
) -> UserListResponse:
    """List accounts, newest first by default."""
    result = await queries.list_users(
        principal,
        search=search,
        role=role,
        page=page,
        page_size=limit,
        sort=sort,
    )
    return UserListResponse(
        users=[UserOut.from_model(u) for u in result.rows],
        pagination=Pagination.from_page(result.page),
    )


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, principal: CurrentPrincipal, directory: Directory) -> UserResponse:
    user = await directory.get_user(principal, user_id)
    return UserResponse(user=UserOut.from_model(user))


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    request: UpdateUserRequest,
    principal: CurrentPrincipal,
    directory: Directory,
) -> UserResponse:
    """Update name, email, role or address of an account."""
    user = await directory.update_user(principal, user_id, request.model_dump(exclude_unset=True))
    return UserResponse(message="User updated successfully", user=UserOut.from_model(user))


@router.delete("/users/{user_id}", response_model=DeleteUserResponse)
async def delete_user(user_id: int, principal: CurrentPrincipal, directory: Directory) -> DeleteUserResponse:
    """Delete an account together with its ratings and owned stores."""
    removed = await directory.delete_user(principal, user_id)
    return DeleteUserResponse(
        message="User deleted successfully",
        ratings_removed=removed["ratings"],
        stores_removed=removed["stores"],
        store_ratings_removed=removed["store_ratings"],
    )


# ============================================================
# Stores
# ============================================================


@router.get("/stores", response_model=StoreListResponse)
async def list_stores(
    principal: CurrentPrincipal,
    queries: Queries,
    search: str | None = Query(default=None, max_length=100, description="Name or address contains"),
    page: int = Query(default=1, description="1-indexed page number"),
    limit: int | None = Query(default=None, description="Page size (server default when omitted)"),
    sort: str | None = Query(default=None, description="Sort field, prefix with '-' for descending"),
) -> StoreListResponse:
    """Every store with owner and live rating statistics."""
    result = await queries.list_stores(
        principal,
        search=search,
        page=page,
        page_size=limit,
        sort=sort,
        all_stores=True,
    )
    return StoreListResponse(
        stores=[StoreListItem.from_row(row) for row in result.rows],
        pagination=Pagination.from_page(result.page),
    )


@router.put("/stores/{store_id}", response_model=StoreResponse)
async def update_store(
    store_id: int,
    request: UpdateStoreRequest,
    principal: CurrentPrincipal,
    catalog: Catalog,
) -> StoreResponse:
    store = await catalog.update_store(principal, store_id, request.model_dump(exclude_unset=True))
    return StoreResponse(message="Store updated successfully", store=StoreOut.from_model(store))


@router.delete("/stores/{store_id}", response_model=DeleteStoreResponse)
async def delete_store(store_id: int, principal: CurrentPrincipal, catalog: Catalog) -> DeleteStoreResponse:
    removed = await catalog.delete_store(principal, store_id)
    return DeleteStoreResponse(message="Store deleted successfully", ratings_removed=removed)
