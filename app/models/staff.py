# app/models/staff.py
from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey, Table, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from app.models.base import Base


# Capability set: which staff member can perform which service
staff_services = Table(
    "staff_services",
    Base.metadata,
    Column("staff_member_id", UUID(as_uuid=True), ForeignKey("staff_members.id", ondelete="CASCADE"), primary_key=True),
    Column("service_id", UUID(as_uuid=True), ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    UniqueConstraint("staff_member_id", "service_id", name="uq_staff_service"),
)


class StaffMember(Base):
    __tablename__ = "staff_members"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(
        UUID(as_uuid=True),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="staff_members")
    services = relationship("Service", secondary=staff_services, back_populates="staff_members")

    def __repr__(self):
        return f"<StaffMember(id={self.id}, name={self.name})>"
