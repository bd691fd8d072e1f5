# app/schemas/availability.py
"""Response schemas for availability queries"""
from datetime import date as date_type
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TimeSlot(BaseModel):
    """One candidate slot; never persisted"""
    model_config = ConfigDict(from_attributes=True)

    start_time: str = Field(..., description="HH:MM")
    end_time: str = Field(..., description="HH:MM")
    available: bool = True
    staff_member_id: Optional[UUID] = None


class DayAvailability(BaseModel):
    date: date_type
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday, 6=Saturday")
    time_slots: List[TimeSlot] = Field(default_factory=list)

    @property
    def available_slots(self) -> List[TimeSlot]:
        return [slot for slot in self.time_slots if slot.available]


class SlotCheckResult(BaseModel):
    available: bool
    reason: Optional[str] = None
