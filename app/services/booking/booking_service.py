# ============================================================================
# app/services/booking/booking_service.py
# Booking lifecycle: create, update, cancel and status transitions
# ============================================================================
from datetime import date, datetime, time, timezone
from typing import Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, PolicyError
from app.models.booking import Booking, BookingStatus, PaymentStatus
from app.models.business import Business
from app.schemas.booking import BookingCreate, BookingResult, BookingUpdate
from app.services.availability.availability_service import AvailabilityService
from app.services.booking.booking_validator import BookingValidator
from app.utils.time_math import minutes_to_time, to_minutes

logger = logging.getLogger(__name__)


def normalize_time(hhmm: str) -> str:
    """Zero-padded "HH:MM", so stored times sort and compare as text"""
    return minutes_to_time(to_minutes(hhmm))

# Fields a caller may change through update()
ALLOWED_UPDATE_FIELDS = (
    "customer_name", "customer_email", "customer_phone", "booking_date",
    "start_time", "end_time", "party_size", "special_requests", "status",
    "payment_status", "cancellation_reason",
)

# Changing any of these re-runs availability validation
TIMING_FIELDS = ("booking_date", "start_time", "end_time", "party_size")

# Fields that may be explicitly cleared with null
NULLABLE_FIELDS = ("customer_phone", "special_requests", "cancellation_reason")

STATUS_TRANSITIONS: Dict[str, set] = {
    BookingStatus.PENDING.value: {BookingStatus.CONFIRMED.value, BookingStatus.CANCELLED.value},
    BookingStatus.CONFIRMED.value: {
        BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value, BookingStatus.NO_SHOW.value
    },
    BookingStatus.CANCELLED.value: set(),
    BookingStatus.COMPLETED.value: set(),
    BookingStatus.NO_SHOW.value: set(),
}


def can_transition(current: str, target: str) -> bool:
    return target in STATUS_TRANSITIONS.get(current, set())


def is_terminal(status: str) -> bool:
    return not STATUS_TRANSITIONS.get(status)


class BookingService:
    """Handles booking operations"""

    @staticmethod
    def _commit_or_conflict(db: Session, booking: Booking) -> Optional[BookingResult]:
        """Commit; a constraint violation from the ledger becomes a failed result"""
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Booking write rejected by database constraint: {e.orig}")
            return BookingResult(success=False, errors=["Time slot already booked"])
        db.refresh(booking)
        return None

    @staticmethod
    def get_booking_by_id(db: Session, booking_id: UUID) -> Booking:
        booking = db.get(Booking, booking_id)
        if not booking:
            raise NotFoundError("Booking not found", details={"booking_id": str(booking_id)})
        return booking

    @staticmethod
    def list_bookings(
            db: Session,
            business_id: UUID,
            booking_date: Optional[date] = None,
            status: Optional[str] = None,
            limit: int = 100
    ) -> List[Booking]:
        query = db.query(Booking).filter(Booking.business_id == business_id)
        if booking_date:
            query = query.filter(Booking.booking_date == booking_date)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(
            Booking.booking_date.desc(), Booking.start_time.desc()
        ).limit(limit).all()

    @staticmethod
    def create_booking(db: Session, data: BookingCreate, today: Optional[date] = None) -> BookingResult:
        """
        Validate and insert a new pending booking.

        The service row is locked (SELECT ... FOR UPDATE) before the
        availability check, so the check and the insert run in one
        transaction and concurrent bookings of the same service serialize.
        """
        business = db.query(Business).filter(
            Business.id == data.business_id,
            Business.is_active.is_(True)
        ).first()
        if not business:
            return BookingResult(success=False, errors=["Business not found"])

        if business.require_phone and not data.customer_phone:
            return BookingResult(success=False, errors=["Phone number required"])

        validation = BookingValidator.validate(
            db,
            data.business_id,
            data.service_id,
            data.staff_member_id,
            data.booking_date,
            data.start_time,
            data.end_time,
            party_size=data.party_size,
            today=today,
            lock_service=True
        )
        if not validation.valid:
            db.rollback()
            return BookingResult(success=False, errors=validation.errors)

        service = AvailabilityService.get_service_details(db, data.service_id, data.business_id)
        total_amount = service.price * data.party_size if service.price is not None else None

        booking = Booking(
            business_id=data.business_id,
            service_id=data.service_id,
            # Only staff services hold a staff member's time
            staff_member_id=data.staff_member_id if service.requires_staff else None,
            customer_name=data.customer_name,
            customer_email=data.customer_email,
            customer_phone=data.customer_phone,
            booking_date=data.booking_date,
            start_time=normalize_time(data.start_time),
            end_time=normalize_time(data.end_time),
            party_size=data.party_size,
            special_requests=data.special_requests,
            total_amount=total_amount,
            status=BookingStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
        )

        db.add(booking)
        conflict = BookingService._commit_or_conflict(db, booking)
        if conflict:
            return conflict

        logger.info(
            f"Booking {booking.id} created for service {booking.service_id} "
            f"on {booking.booking_date} {booking.start_time}-{booking.end_time}"
        )
        return BookingResult(success=True, data=booking.to_dict())

    @staticmethod
    def update_booking(
            db: Session,
            booking_id: UUID,
            updates: BookingUpdate,
            today: Optional[date] = None
    ) -> BookingResult:
        """
        Apply a partial update. Re-validates availability (excluding this
        booking) when date, times or party size change. Status changes must
        follow the lifecycle; terminal bookings cannot be changed.
        """
        booking = BookingService.get_booking_by_id(db, booking_id)

        changes = {
            field: value
            for field, value in updates.model_dump(exclude_unset=True).items()
            if field in ALLOWED_UPDATE_FIELDS and (value is not None or field in NULLABLE_FIELDS)
        }
        if not changes:
            return BookingResult(success=False, errors=["No fields to update"])

        if is_terminal(booking.status):
            raise ConflictError(
                f"Booking is {booking.status} and can no longer be changed",
                details={"booking_id": str(booking.id), "status": booking.status}
            )

        new_status = changes.get("status")
        if new_status is not None:
            new_status = BookingStatus(new_status).value
            changes["status"] = new_status
            if new_status != booking.status and not can_transition(booking.status, new_status):
                raise ConflictError(
                    f"Cannot change booking status from {booking.status} to {new_status}",
                    details={"booking_id": str(booking.id), "status": booking.status}
                )
        if changes.get("payment_status") is not None:
            changes["payment_status"] = PaymentStatus(changes["payment_status"]).value

        if any(changes.get(field) is not None for field in TIMING_FIELDS):
            validation = BookingValidator.validate(
                db,
                booking.business_id,
                booking.service_id,
                booking.staff_member_id,
                changes.get("booking_date") or booking.booking_date,
                changes.get("start_time") or booking.start_time,
                changes.get("end_time") or booking.end_time,
                party_size=changes.get("party_size") or booking.party_size,
                exclude_booking_id=booking.id,
                today=today,
                lock_service=True
            )
            if not validation.valid:
                db.rollback()
                return BookingResult(success=False, errors=validation.errors)

            for field in ("start_time", "end_time"):
                if changes.get(field) is not None:
                    changes[field] = normalize_time(changes[field])

        previous_status = booking.status
        for field, value in changes.items():
            setattr(booking, field, value)

        now = datetime.now(timezone.utc)
        if booking.status == BookingStatus.CANCELLED.value and previous_status != BookingStatus.CANCELLED.value:
            booking.cancelled_at = now
        booking.updated_at = now

        conflict = BookingService._commit_or_conflict(db, booking)
        if conflict:
            return conflict

        logger.info(f"Booking {booking.id} updated: {sorted(changes)}")
        return BookingResult(success=True, data=booking.to_dict())

    @staticmethod
    def cancel_booking(
            db: Session,
            booking_id: UUID,
            customer_email: str,
            reason: Optional[str] = None,
            now: Optional[datetime] = None
    ) -> BookingResult:
        """
        Customer cancellation. The requester email must match the booking
        and the booking must start at least `cancellation_hours` from now.
        """
        booking = BookingService.get_booking_by_id(db, booking_id)

        if booking.customer_email.lower() != customer_email.lower():
            raise ForbiddenError("Email does not match booking", details={"booking_id": str(booking.id)})

        if booking.status == BookingStatus.CANCELLED.value:
            raise ConflictError("Booking already cancelled", details={"booking_id": str(booking.id)})

        if is_terminal(booking.status):
            raise ConflictError(
                f"Booking is {booking.status} and can no longer be cancelled",
                details={"booking_id": str(booking.id), "status": booking.status}
            )

        business = db.get(Business, booking.business_id)
        cancellation_hours = business.cancellation_hours if business and business.cancellation_hours is not None \
            else get_settings().DEFAULT_CANCELLATION_HOURS

        start = to_minutes(booking.start_time)
        booking_datetime = datetime.combine(booking.booking_date, time(start // 60, start % 60))
        now = now or datetime.now()
        hours_until_booking = (booking_datetime - now).total_seconds() / 3600

        if hours_until_booking < cancellation_hours:
            raise PolicyError(
                f"Must cancel at least {cancellation_hours} hours before booking",
                details={
                    "cancellation_hours": cancellation_hours,
                    "hours_until_booking": round(hours_until_booking, 2),
                }
            )

        return BookingService.update_booking(
            db,
            booking_id,
            BookingUpdate(
                status=BookingStatus.CANCELLED,
                cancellation_reason=reason or "Customer cancellation"
            )
        )

    @staticmethod
    def _transition(db: Session, booking_id: UUID, target: BookingStatus) -> BookingResult:
        booking = BookingService.get_booking_by_id(db, booking_id)
        if not can_transition(booking.status, target.value):
            raise ConflictError(
                f"Cannot change booking status from {booking.status} to {target.value}",
                details={"booking_id": str(booking.id), "status": booking.status}
            )
        return BookingService.update_booking(db, booking_id, BookingUpdate(status=target))

    @staticmethod
    def confirm_booking(db: Session, booking_id: UUID) -> BookingResult:
        return BookingService._transition(db, booking_id, BookingStatus.CONFIRMED)

    @staticmethod
    def complete_booking(db: Session, booking_id: UUID) -> BookingResult:
        return BookingService._transition(db, booking_id, BookingStatus.COMPLETED)

    @staticmethod
    def mark_no_show(db: Session, booking_id: UUID) -> BookingResult:
        return BookingService._transition(db, booking_id, BookingStatus.NO_SHOW)

    # ------------------------------------------------------------------
    # Notification bookkeeping (sending itself happens in Celery tasks)
    # ------------------------------------------------------------------

    @staticmethod
    def mark_confirmation_sent(db: Session, booking_id: UUID) -> Booking:
        booking = BookingService.get_booking_by_id(db, booking_id)
        booking.confirmation_sent_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def get_bookings_needing_reminder(db: Session, booking_date: date) -> List[Booking]:
        return db.query(Booking).filter(
            Booking.booking_date == booking_date,
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.reminder_sent_at.is_(None)
        ).order_by(Booking.start_time).all()

    @staticmethod
    def mark_reminder_sent(db: Session, booking_id: UUID) -> Booking:
        booking = BookingService.get_booking_by_id(db, booking_id)
        booking.reminder_sent_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(booking)
        return booking
