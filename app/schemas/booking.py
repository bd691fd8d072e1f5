# app/schemas/booking.py
"""
Pydantic schemas for booking requests and results
"""
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.models.booking import BookingStatus, PaymentStatus


# ============================================================================
# Request Schemas
# ============================================================================

class BookingCreate(BaseModel):
    """Public booking request"""
    business_id: UUID
    service_id: UUID
    staff_member_id: Optional[UUID] = None
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: EmailStr
    customer_phone: Optional[str] = Field(None, max_length=50)
    booking_date: date
    # Time format is checked by the validator so every problem is reported together
    start_time: str = Field(..., description="HH:MM")
    end_time: str = Field(..., description="HH:MM")
    party_size: int = Field(1, ge=1)
    special_requests: Optional[str] = None


class BookingUpdate(BaseModel):
    """Partial update; only fields that are set are applied"""
    customer_name: Optional[str] = Field(None, min_length=1, max_length=255)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = Field(None, max_length=50)
    booking_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    party_size: Optional[int] = Field(None, ge=1)
    special_requests: Optional[str] = None
    status: Optional[BookingStatus] = None
    payment_status: Optional[PaymentStatus] = None
    cancellation_reason: Optional[str] = Field(None, max_length=255)


class BookingCancel(BaseModel):
    customer_email: EmailStr
    reason: Optional[str] = Field(None, max_length=255)


# ============================================================================
# Result Schemas
# ============================================================================

class ValidationResult(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)


class BookingResult(BaseModel):
    """Outcome of create/update: the booking, or the reasons it was refused"""
    success: bool
    data: Optional[Dict[str, Any]] = None
    errors: List[str] = Field(default_factory=list)
