# app/models/service.py
"""
Service Model - bookable offerings of a business
Each service belongs to one business and carries the duration, capacity
and buffer settings the slot generator works from.
"""
from sqlalchemy import Column, String, Numeric, Integer, ForeignKey, Boolean, DateTime, Text, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from app.models.base import Base
from app.models.staff import staff_services


class Service(Base):
    """
    A bookable service. Staff-based services (requires_staff=True) book one
    staff member per booking; capacity-based services share a slot up to
    `capacity` guests.
    """
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
        CheckConstraint("capacity >= 1", name="ck_services_capacity_min"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(
        UUID(as_uuid=True),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    duration_minutes = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=True)  # per person; null = no fixed price
    capacity = Column(Integer, nullable=False, default=1)
    requires_staff = Column(Boolean, default=False)
    buffer_before_minutes = Column(Integer, default=0)
    buffer_after_minutes = Column(Integer, default=0)

    is_active = Column(Boolean, default=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    business = relationship("Business", back_populates="services")
    staff_members = relationship(
        "StaffMember",
        secondary=staff_services,
        back_populates="services"
    )

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name}, business_id={self.business_id})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "name": self.name,
            "description": self.description,
            "duration_minutes": self.duration_minutes,
            "price": float(self.price) if self.price is not None else None,
            "capacity": self.capacity,
            "requires_staff": self.requires_staff,
            "buffer_before_minutes": self.buffer_before_minutes,
            "buffer_after_minutes": self.buffer_after_minutes,
            "is_active": self.is_active,
        }
