"""
API v1 router setup
Organized into: public (no auth) and internal (X-Internal-Key) routes
"""
from fastapi import APIRouter

from app.api.v1.public import booking
from app.api.v1.internal import operations

api_v1_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (No authentication required)
# ============================================================================
api_v1_router.include_router(
    booking.router,
    prefix="/public",
    tags=["Public"]
)

# ============================================================================
# INTERNAL ROUTES (Internal API key required)
# ============================================================================
api_v1_router.include_router(
    operations.router,
    prefix="/internal",
    tags=["Internal"]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """
    API information and available endpoints.
    """
    return {
        "version": "1.0",
        "authentication": {
            "public": "No authentication required",
            "internal": "X-Internal-Key header required"
        }
    }
