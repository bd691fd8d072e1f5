# app/utils/time_math.py
"""Wall-clock helpers: "HH:MM" <-> minutes since midnight, interval overlap"""
import re
from datetime import date
from typing import Union

from app.core.exceptions import FormatError

TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")

TimeValue = Union[int, str]


def is_valid_time(value) -> bool:
    return isinstance(value, str) and TIME_PATTERN.match(value) is not None


def to_minutes(hhmm: str) -> int:
    """Parse "HH:MM" (24h) into minutes since midnight."""
    if not is_valid_time(hhmm):
        raise FormatError(
            f"Invalid time '{hhmm}'. Use HH:MM",
            details={"value": hhmm},
        )
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Format minutes since midnight as zero-padded "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _as_minutes(value: TimeValue) -> int:
    return value if isinstance(value, int) else to_minutes(value)


def overlaps(a_start: TimeValue, a_end: TimeValue, b_start: TimeValue, b_end: TimeValue) -> bool:
    """
    Half-open interval overlap: [a_start, a_end) and [b_start, b_end).
    Touching endpoints do not overlap.
    """
    return _as_minutes(a_start) < _as_minutes(b_end) and _as_minutes(b_start) < _as_minutes(a_end)


def weekday_index(day: date) -> int:
    """Day of week with 0=Sunday .. 6=Saturday."""
    # date.weekday() is Monday=0
    return (day.weekday() + 1) % 7
