# ============================================================================
# app/api/v1/public/bookings.py
# Customer-facing booking endpoints - thin HTTP layer
# ============================================================================
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.exceptions import SchedulingError
from app.schemas.booking import BookingCancel, BookingCreate
from app.services.booking.booking_service import BookingService
from app.tasks.notification_tasks import send_booking_confirmation

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bookings", tags=["public-bookings"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_booking(
        booking_data: BookingCreate,
        db: Session = Depends(get_db)
):
    """
    Create a booking. Returns 400 with every validation error when the
    requested slot cannot be booked.
    """
    result = BookingService.create_booking(db, booking_data)

    if not result.success:
        raise HTTPException(
            status_code=400,
            detail={"message": "Booking creation failed", "errors": result.errors}
        )

    # Fire-and-forget; a broker outage must not fail the booking
    try:
        send_booking_confirmation.delay(result.data["id"])
    except Exception as e:
        logger.error(f"Failed to queue confirmation for booking {result.data['id']}: {e}")

    return {
        "success": True,
        "data": result.data,
        "message": "Booking created successfully"
    }


@router.get("/{booking_id}")
async def get_booking(
        booking_id: UUID = Path(..., description="The booking ID"),
        db: Session = Depends(get_db)
):
    try:
        booking = BookingService.get_booking_by_id(db, booking_id)
    except SchedulingError as e:
        raise e.to_http_exception()
    return {"success": True, "data": booking.to_dict()}


@router.delete("/{booking_id}")
async def cancel_booking(
        cancel_data: BookingCancel,
        booking_id: UUID = Path(..., description="The booking ID"),
        db: Session = Depends(get_db)
):
    """
    Customer cancellation, verified by the email on the booking.
    403 on email mismatch, 409 when already cancelled, 422 inside the
    cancellation window.
    """
    try:
        result = BookingService.cancel_booking(
            db, booking_id, cancel_data.customer_email, cancel_data.reason
        )
    except SchedulingError as e:
        raise e.to_http_exception()

    if not result.success:
        raise HTTPException(
            status_code=400,
            detail={"message": "Cancellation failed", "errors": result.errors}
        )

    return {
        "success": True,
        "data": result.data,
        "message": "Booking cancelled successfully"
    }
