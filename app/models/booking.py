# app/models/booking.py
from sqlalchemy import Column, String, Integer, Text, Date, DateTime, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
import uuid
from app.models.base import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


# Bookings in these states occupy their slot
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("party_size >= 1", name="ck_bookings_party_size_min"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    staff_member_id = Column(UUID(as_uuid=True), ForeignKey("staff_members.id", ondelete="SET NULL"), nullable=True)

    # Customer info
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=True)

    # Booking details
    booking_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # HH:MM format
    end_time = Column(String(5), nullable=False)  # HH:MM format
    party_size = Column(Integer, default=1, nullable=False)
    special_requests = Column(Text, nullable=True)

    # Status tracking
    status = Column(String(20), default=BookingStatus.PENDING.value, nullable=False)  # pending, confirmed, cancelled, completed, no_show

    # Money
    total_amount = Column(Numeric(10, 2), nullable=True)
    deposit_paid = Column(Numeric(10, 2), default=0)
    payment_status = Column(String(20), default=PaymentStatus.PENDING.value)

    # Reminders & notifications
    confirmation_sent_at = Column(DateTime(timezone=True), nullable=True)
    reminder_sent_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(String(255), nullable=True)

    business = relationship("Business")
    service = relationship("Service")
    staff_member = relationship("StaffMember")

    def __repr__(self):
        return f"<Booking(id={self.id}, date={self.booking_date}, {self.start_time}-{self.end_time}, status={self.status})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "service_id": str(self.service_id),
            "staff_member_id": str(self.staff_member_id) if self.staff_member_id else None,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "booking_date": self.booking_date.isoformat(),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "party_size": self.party_size,
            "special_requests": self.special_requests,
            "status": self.status,
            "total_amount": float(self.total_amount) if self.total_amount is not None else None,
            "deposit_paid": float(self.deposit_paid) if self.deposit_paid is not None else None,
            "payment_status": self.payment_status,
            "cancellation_reason": self.cancellation_reason,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "confirmation_sent_at": self.confirmation_sent_at.isoformat() if self.confirmation_sent_at else None,
            "reminder_sent_at": self.reminder_sent_at.isoformat() if self.reminder_sent_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
