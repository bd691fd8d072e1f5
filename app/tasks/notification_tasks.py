# ===== app/tasks/notification_tasks.py =====
from datetime import date, timedelta
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.config.celery_config import celery_app
from app.config.database import SessionLocal
from app.config.settings import get_settings
from app.core.exceptions import NotFoundError
from app.services.booking.booking_service import BookingService

logger = logging.getLogger(__name__)


def dispatch_confirmation(db: Session, booking_id: str) -> dict:
    """Record that the confirmation for a booking went out"""
    booking = BookingService.mark_confirmation_sent(db, UUID(booking_id))
    logger.info(
        f"Confirmation sent for booking {booking.id} to {booking.customer_email} "
        f"({booking.booking_date} {booking.start_time})"
    )
    return {"status": "success", "booking_id": str(booking.id)}


def dispatch_reminders(db: Session, booking_date: date) -> dict:
    """Remind every confirmed booking on `booking_date` that has not been reminded yet"""
    bookings = BookingService.get_bookings_needing_reminder(db, booking_date)
    for booking in bookings:
        BookingService.mark_reminder_sent(db, booking.id)
        logger.info(f"Reminder sent for booking {booking.id} to {booking.customer_email}")
    return {"status": "success", "date": booking_date.isoformat(), "reminders_sent": len(bookings)}


@celery_app.task(bind=True, max_retries=3)
def send_booking_confirmation(self, booking_id: str):
    """Fire-and-forget confirmation after a booking is created"""
    db = SessionLocal()
    try:
        return dispatch_confirmation(db, booking_id)
    except NotFoundError:
        logger.error(f"Booking {booking_id} not found, confirmation skipped")
        return {"status": "failed", "reason": "booking_not_found"}
    except Exception as exc:
        logger.error(f"Failed to send confirmation for booking {booking_id}: {exc}")
        raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))
    finally:
        db.close()


@celery_app.task
def send_booking_reminders(target_date: Optional[str] = None):
    """Periodic: remind confirmed bookings REMINDER_LEAD_DAYS ahead"""
    if target_date:
        booking_date = date.fromisoformat(target_date)
    else:
        booking_date = date.today() + timedelta(days=get_settings().REMINDER_LEAD_DAYS)

    db = SessionLocal()
    try:
        return dispatch_reminders(db, booking_date)
    finally:
        db.close()
