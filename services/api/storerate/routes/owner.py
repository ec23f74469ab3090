"""Owner endpoints: create and manage own stores, see their ratings.

Ownership is checked by the access policy inside the services; a store that
belongs to someone else is refused with 403.
"""

from fastapi import APIRouter, Query, status

from storerate.routes.deps import Catalog, CurrentPrincipal, Queries
from storerate.schemas import (
    CreateStoreRequest,
    DeleteStoreResponse,
    OwnerDashboardResponse,
    OwnerStoresResponse,
    StoreRatingsResponse,
    StoreResponse,
    UpdateStoreRequest,
)
from storerate.schemas.stores import OwnerStoreItem, StoreOut

router = APIRouter()


@router.post("/stores", response_model=StoreResponse, status_code=status.HTTP_201_CREATED)
async def create_store(request: CreateStoreRequest, principal: CurrentPrincipal, catalog: Catalog) -> StoreResponse:
    store = await catalog.create_store(
        principal,
        name=request.name,
        email=request.email,
        address=request.address,
    )
    return StoreResponse(message="Store created successfully", store=StoreOut.from_model(store))


@router.get("/my-stores", response_model=OwnerStoresResponse)
async def get_my_stores(principal: CurrentPrincipal, queries: Queries) -> OwnerStoresResponse:
    """The caller's stores with average, count, distribution and ratings."""
    rows = await queries.owner_stores(principal)
    return OwnerStoresResponse(stores=[OwnerStoreItem.from_row(row) for row in rows])


@router.get("/dashboard", response_model=OwnerDashboardResponse)
async def get_dashboard(principal: CurrentPrincipal, queries: Queries) -> OwnerDashboardResponse:
    """Totals pooled across the caller's stores plus the recent-ratings feed."""
    dashboard = await queries.owner_dashboard(principal)
    return OwnerDashboardResponse.from_dashboard(dashboard)


@router.get("/stores/{store_id}/ratings", response_model=StoreRatingsResponse)
async def get_store_ratings(
    store_id: int,
    principal: CurrentPrincipal,
    queries: Queries,
    page: int = Query(default=1, description="1-indexed page number"),
    limit: int | None = Query(default=None, description="Page size (server default when omitted)"),
) -> StoreRatingsResponse:
    result = await queries.list_ratings_for_store(principal, store_id, page=page, page_size=limit)
    return StoreRatingsResponse.from_page(result)


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
    """Delete a store; its ratings are removed first in the same transaction."""
    removed = await catalog.delete_store(principal, store_id)
    return DeleteStoreResponse(message="Store deleted successfully", ratings_removed=removed)
