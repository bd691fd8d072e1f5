# app/models/business.py
"""
Business Model
Holds the booking policy fields the scheduling engine reads
(cancellation window, phone requirement, advance booking horizon).
"""
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Numeric, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from app.models.base import Base


class Business(Base):
    __tablename__ = "businesses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    business_type = Column(String(50), nullable=False, default="other")  # restaurant, hair_salon, beauty_salon, massage, other
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)

    # Public booking link, e.g. /availability/{slug}/...
    booking_link_slug = Column(String(255), nullable=False, unique=True, index=True)

    # Booking policy
    booking_advance_days = Column(Integer, default=30)
    cancellation_hours = Column(Integer, default=24)
    require_phone = Column(Boolean, default=False)
    require_deposit = Column(Boolean, default=False)
    deposit_amount = Column(Numeric(10, 2), nullable=True)

    services = relationship("Service", back_populates="business")
    staff_members = relationship("StaffMember", back_populates="business")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    is_active = Column(Boolean, default=True)

    def __repr__(self):
        return f"<Business(id={self.id}, name={self.name})>"
