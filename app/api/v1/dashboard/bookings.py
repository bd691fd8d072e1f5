# ============================================================================
# app/api/v1/dashboard/bookings.py
# Business-side booking management. Caller identity is established by the
# auth layer in front of this router.
# ============================================================================
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.exceptions import SchedulingError
from app.models.booking import BookingStatus
from app.schemas.booking import BookingResult, BookingUpdate
from app.services.booking.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["dashboard-bookings"])


def _respond(result: BookingResult, message: str):
    if not result.success:
        raise HTTPException(
            status_code=400,
            detail={"message": "Booking update failed", "errors": result.errors}
        )
    return {"success": True, "data": result.data, "message": message}


@router.get("")
async def list_bookings(
        business_id: UUID = Query(..., description="Business whose bookings to list"),
        booking_date: Optional[date] = Query(None, description="Only bookings on this date"),
        status: Optional[BookingStatus] = Query(None, description="Filter by status"),
        db: Session = Depends(get_db)
):
    bookings = BookingService.list_bookings(
        db,
        business_id,
        booking_date=booking_date,
        status=status.value if status else None
    )
    return {
        "success": True,
        "data": [booking.to_dict() for booking in bookings],
        "message": f"Found {len(bookings)} bookings"
    }


@router.put("/{booking_id}")
async def update_booking(
        updates: BookingUpdate,
        booking_id: UUID = Path(..., description="The booking ID"),
        db: Session = Depends(get_db)
):
    """Partial update; date/time/party size changes are re-validated."""
    try:
        result = BookingService.update_booking(db, booking_id, updates)
    except SchedulingError as e:
        raise e.to_http_exception()
    return _respond(result, "Booking updated successfully")


@router.post("/{booking_id}/confirm")
async def confirm_booking(
        booking_id: UUID = Path(..., description="The booking ID"),
        db: Session = Depends(get_db)
):
    try:
        result = BookingService.confirm_booking(db, booking_id)
    except SchedulingError as e:
        raise e.to_http_exception()
    return _respond(result, "Booking confirmed")


@router.post("/{booking_id}/complete")
async def complete_booking(
        booking_id: UUID = Path(..., description="The booking ID"),
        db: Session = Depends(get_db)
):
    try:
        result = BookingService.complete_booking(db, booking_id)
    except SchedulingError as e:
        raise e.to_http_exception()
    return _respond(result, "Booking completed")


@router.post("/{booking_id}/no-show")
async def mark_no_show(
        booking_id: UUID = Path(..., description="The booking ID"),
        db: Session = Depends(get_db)
):
    try:
        result = BookingService.mark_no_show(db, booking_id)
    except SchedulingError as e:
        raise e.to_http_exception()
    return _respond(result, "Booking marked as no-show")
