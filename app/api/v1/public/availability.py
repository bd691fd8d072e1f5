# ============================================================================
# app/api/v1/public/availability.py
# Public availability lookups - thin HTTP layer
# ============================================================================
from datetime import date
from typing import List
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.exceptions import SchedulingError
from app.schemas.availability import DayAvailability
from app.services.availability.availability_service import AvailabilityService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/availability", tags=["public-availability"])


# Declared before /{business_slug}/{service_id} so "week" is not read as a service id
@router.get("/{business_slug}/week", response_model=List[DayAvailability])
async def get_week_availability(
        business_slug: str = Path(..., description="Public booking slug of the business"),
        date: date = Query(..., description="First day of the week (YYYY-MM-DD)"),
        service_id: UUID = Query(..., description="Service to check"),
        db: Session = Depends(get_db)
):
    """
    Availability for seven consecutive days starting at `date`.
    Days that cannot be computed come back with no slots.
    """
    try:
        return AvailabilityService.get_week_availability(db, business_slug, service_id, date)
    except SchedulingError as e:
        raise e.to_http_exception()


@router.get("/{business_slug}/{service_id}")
async def get_day_availability(
        business_slug: str = Path(..., description="Public booking slug of the business"),
        service_id: UUID = Path(..., description="Service to check"),
        date: date = Query(..., description="Day to check (YYYY-MM-DD)"),
        db: Session = Depends(get_db)
):
    """All slots of a service on one day, each flagged available or not."""
    business = AvailabilityService.get_business_by_slug(db, business_slug)
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")

    try:
        availability = AvailabilityService.get_day_availability(db, business.id, service_id, date)
    except SchedulingError as e:
        raise e.to_http_exception()

    service = AvailabilityService.get_service_details(db, service_id, business.id)
    available_count = len(availability.available_slots)
    return {
        "success": True,
        "data": availability.model_dump(mode="json"),
        "service": service.to_dict(),
        "message": f"Found {available_count} available slots"
    }
