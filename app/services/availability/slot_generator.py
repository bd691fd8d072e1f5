# app/services/availability/slot_generator.py
"""Expands an open window into fixed-length bookable slots"""
from dataclasses import dataclass, asdict
from typing import List, Optional
from uuid import UUID

from app.core.exceptions import FormatError
from app.utils.time_math import minutes_to_time, to_minutes


@dataclass(frozen=True)
class Slot:
    start_time: str
    end_time: str
    available: bool = True
    staff_member_id: Optional[UUID] = None

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end_time)

    @property
    def key(self):
        return self.start_time, self.end_time, self.staff_member_id

    def to_dict(self):
        data = asdict(self)
        data["staff_member_id"] = str(self.staff_member_id) if self.staff_member_id else None
        return data


def generate(
        window_start: int,
        window_end: int,
        duration: int,
        buffer_after: int = 0,
        staff_member_id: Optional[UUID] = None
) -> List[Slot]:
    """
    Emit consecutive slots of `duration` minutes from window_start, stepping
    by duration + buffer_after, while the slot still ends inside the window.

    A window shorter than `duration` yields no slots.
    """
    if duration <= 0:
        raise FormatError("Slot duration must be positive", details={"duration": duration})
    if buffer_after < 0:
        raise FormatError("Buffer cannot be negative", details={"buffer_after": buffer_after})

    slots = []
    step = duration + buffer_after
    cursor = window_start

    while cursor + duration <= window_end:
        slots.append(Slot(
            start_time=minutes_to_time(cursor),
            end_time=minutes_to_time(cursor + duration),
            available=True,
            staff_member_id=staff_member_id,
        ))
        cursor += step

    return slots
