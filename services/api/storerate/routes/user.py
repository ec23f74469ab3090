"""End-user endpoints: browse stores, rate them, review own ratings."""

from fastapi import APIRouter, Query, status

from storerate.routes.deps import CurrentPrincipal, Ledger, Queries
from storerate.schemas import (
    MyRatingsResponse,
    Pagination,
    RatingResponse,
    StoreDetailResponse,
    StoreListResponse,
    SubmitRatingRequest,
    UpdateRatingRequest,
)
from storerate.schemas.ratings import MyRating, RatingOut
from storerate.schemas.stores import StoreDetailOut, StoreListItem
from storerate.services.policy import Action, enforce

router = APIRouter()


@router.get("/stores", response_model=StoreListResponse)
async def list_stores(
    principal: CurrentPrincipal,
    queries: Queries,
    search: str | None = Query(default=None, max_length=100, description="Name or address contains"),
    page: int = Query(default=1, description="1-indexed page number"),
    limit: int | None = Query(default=None, description="Page size (server default when omitted)"),
    sort: str | None = Query(default=None, description="Sort field, prefix with '-' for descending"),
) -> StoreListResponse:
    """Browse stores with live average rating and rating count."""
    result = await queries.list_stores(principal, search=search, page=page, page_size=limit, sort=sort)
    return StoreListResponse(
        stores=[StoreListItem.from_row(row) for row in result.rows],
        pagination=Pagination.from_page(result.page),
    )


@router.get("/stores/{store_id}", response_model=StoreDetailResponse)
async def get_store(store_id: int, principal: CurrentPrincipal, queries: Queries) -> StoreDetailResponse:
    detail = await queries.get_store(principal, store_id)
    return StoreDetailResponse(store=StoreDetailOut.from_detail(detail))


@router.post("/ratings", response_model=RatingResponse, status_code=status.HTTP_201_CREATED)
async def submit_rating(request: SubmitRatingRequest, principal: CurrentPrincipal, ledger: Ledger) -> RatingResponse:
    """Rate a store for the first time. A second submission is a conflict."""
    user = enforce(principal, Action.RATING_SUBMIT)
    rating = await ledger.submit(user.id, request.store_id, request.rating)
    return RatingResponse(message="Rating submitted successfully", rating=RatingOut.from_model(rating))


@router.put("/ratings/{rating_id}", response_model=RatingResponse)
async def update_rating(
    rating_id: int,
    request: UpdateRatingRequest,
    principal: CurrentPrincipal,
    ledger: Ledger,
) -> RatingResponse:
    """Change the value of one of the caller's ratings."""
    user = enforce(principal, Action.RATING_UPDATE)
    rating = await ledger.update(rating_id, user.id, request.rating)
    return RatingResponse(message="Rating updated successfully", rating=RatingOut.from_model(rating))


@router.get("/my-ratings", response_model=MyRatingsResponse)
async def get_my_ratings(principal: CurrentPrincipal, queries: Queries) -> MyRatingsResponse:
    rows = await queries.list_user_ratings(principal)
    return MyRatingsResponse(ratings=[MyRating.from_row(row) for row in rows])
