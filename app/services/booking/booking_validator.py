# app/services/booking/booking_validator.py
"""Precondition chain for a proposed booking"""
from datetime import date, timedelta
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.models.business import Business
from app.schemas.booking import ValidationResult
from app.services.availability.availability_service import AvailabilityService
from app.utils.time_math import is_valid_time, to_minutes

logger = logging.getLogger(__name__)


class BookingValidator:
    """Checks a proposed booking and reports every problem found"""

    @staticmethod
    def validate(
            db: Session,
            business_id: UUID,
            service_id: UUID,
            staff_member_id: Optional[UUID],
            booking_date: date,
            start_time: str,
            end_time: str,
            party_size: int = 1,
            exclude_booking_id: Optional[UUID] = None,
            today: Optional[date] = None,
            capacity_mode: Optional[str] = None,
            lock_service: bool = False
    ) -> ValidationResult:
        """
        Errors accumulate in order: time format, end after start, not in the
        past, booking horizon, service (stops here if missing), staff
        capability, then slot availability. The availability check only runs
        when everything before it passed.
        """
        errors = []
        today = today or date.today()

        times_valid = is_valid_time(start_time) and is_valid_time(end_time)
        if not times_valid:
            errors.append("Invalid time format. Use HH:MM")
        elif to_minutes(end_time) <= to_minutes(start_time):
            errors.append("End time must be after start time")

        if booking_date < today:
            errors.append("Cannot book in the past")

        business = db.get(Business, business_id)
        if business and business.booking_advance_days and \
                booking_date > today + timedelta(days=business.booking_advance_days):
            errors.append(f"Bookings can be made at most {business.booking_advance_days} days in advance")

        service = AvailabilityService.get_service_details(db, service_id, business_id, for_update=lock_service)
        if not service:
            errors.append("Service not found or inactive")
            return ValidationResult(valid=False, errors=errors)

        if service.requires_staff:
            if not staff_member_id:
                errors.append("Staff member is required for this service")
            elif not AvailabilityService.can_staff_perform_service(db, staff_member_id, service_id):
                errors.append("Selected staff member cannot perform this service")

        if not errors:
            result = AvailabilityService.is_time_slot_available(
                db,
                business_id,
                service_id,
                staff_member_id,
                booking_date,
                start_time,
                end_time,
                party_size=party_size,
                exclude_booking_id=exclude_booking_id,
                capacity_mode=capacity_mode,
                service=service
            )
            if not result.available:
                errors.append(result.reason or "Time slot not available")

        if errors:
            logger.info(f"Booking request for service {service_id} on {booking_date} rejected: {errors}")

        return ValidationResult(valid=not errors, errors=errors)
