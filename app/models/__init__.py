# app/models/__init__.py
from .base import Base
from .business import Business
from .staff import StaffMember, staff_services
from .service import Service
from .availability import AvailabilityRule, AvailabilityOverride
from .booking import Booking, BookingStatus, PaymentStatus

__all__ = [
    "Base",
    "Business",
    "StaffMember",
    "staff_services",
    "Service",
    "AvailabilityRule",
    "AvailabilityOverride",
    "Booking",
    "BookingStatus",
    "PaymentStatus",
]
