"""API routes."""

from fastapi import APIRouter

from storerate.routes import admin, owner, user
from storerate.schemas import ErrorResponse

# Structured error body documented for every versioned endpoint
ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponse, "description": "Validation error or conflict"},
    401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
    403: {"model": ErrorResponse, "description": "Role or ownership does not permit this"},
    404: {"model": ErrorResponse, "description": "Record not found"},
}

api_router = APIRouter(responses=ERROR_RESPONSES)

# Administrator endpoints (dashboard, accounts, every store)
api_router.include_router(admin.router, prefix="/v1/admin", tags=["admin"])

# Store owner endpoints (own stores and their ratings)
api_router.include_router(owner.router, prefix="/v1/owner", tags=["owner"])

# End-user endpoints (browse and rate)
api_router.include_router(user.router, prefix="/v1/user", tags=["user"])
