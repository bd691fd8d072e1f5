# app/schemas/__init__.py
from .availability import (
    TimeSlot,
    DayAvailability,
    SlotCheckResult
)

from .booking import (
    BookingCreate,
    BookingUpdate,
    BookingCancel,
    ValidationResult,
    BookingResult
)

__all__ = [
    "TimeSlot",
    "DayAvailability",
    "SlotCheckResult",
    "BookingCreate",
    "BookingUpdate",
    "BookingCancel",
    "ValidationResult",
    "BookingResult",
]
