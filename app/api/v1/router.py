"""
API v1 router setup
Organized into: public (customer-facing) and dashboard (business-side) routes
"""
from fastapi import APIRouter

from app.api.v1.public import availability, bookings as public_bookings
from app.api.v1.dashboard import bookings as dashboard_bookings

api_v1_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (No authentication required)
# ============================================================================
api_v1_router.include_router(
    availability.router,
    tags=["Public"]
)

api_v1_router.include_router(
    public_bookings.router,
    tags=["Public"]
)

# ============================================================================
# DASHBOARD ROUTES (caller authorized by the auth layer)
# ============================================================================
api_v1_router.include_router(
    dashboard_bookings.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information and available endpoints."""
    return {
        "version": "1.0",
        "endpoints": {
            "availability": "/api/v1/availability/{business_slug}/{service_id}?date=YYYY-MM-DD",
            "week_availability": "/api/v1/availability/{business_slug}/week?date=YYYY-MM-DD&service_id=...",
            "bookings": "/api/v1/bookings",
            "dashboard_bookings": "/api/v1/dashboard/bookings",
        }
    }
