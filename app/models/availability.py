# ===== app/models/availability.py =====
from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from app.models.base import Base
import uuid

# A rule belongs to a business OR a staff member, never both
_SINGLE_SCOPE = "(business_id IS NULL) <> (staff_member_id IS NULL)"


class AvailabilityRule(Base):
    """Recurring weekly opening hours of a business or a staff member"""
    __tablename__ = "availability_rules"
    __table_args__ = (
        CheckConstraint(_SINGLE_SCOPE, name="ck_availability_rules_single_scope"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_rules_weekday"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=True, index=True)
    staff_member_id = Column(UUID(as_uuid=True), ForeignKey("staff_members.id", ondelete="CASCADE"), nullable=True, index=True)

    day_of_week = Column(Integer, nullable=False)  # 0=Sunday, 6=Saturday
    start_time = Column(String(5), nullable=False)  # HH:MM format
    end_time = Column(String(5), nullable=False)  # HH:MM format

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<AvailabilityRule(day={self.day_of_week}, {self.start_time}-{self.end_time})>"


class AvailabilityOverride(Base):
    """Specific date overrides (holidays, time-off, partial closures)"""
    __tablename__ = "availability_overrides"
    __table_args__ = (
        CheckConstraint(_SINGLE_SCOPE, name="ck_availability_overrides_single_scope"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=True, index=True)
    staff_member_id = Column(UUID(as_uuid=True), ForeignKey("staff_members.id", ondelete="CASCADE"), nullable=True, index=True)

    date = Column(Date, nullable=False, index=True)
    is_available = Column(Boolean, nullable=False)  # False = closed
    start_time = Column(String(5), nullable=True)  # absent = whole day
    end_time = Column(String(5), nullable=True)
    reason = Column(String(255), nullable=True)  # "Holiday", "Vacation", etc.

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_whole_day(self) -> bool:
        return not (self.start_time and self.end_time)
