# app/services/availability/rule_resolver.py
"""Resolves weekly rules + date overrides into open intervals for one date"""
from dataclasses import dataclass
from datetime import date
from typing import List, Tuple
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import DataIntegrityError, FormatError
from app.models.availability import AvailabilityRule, AvailabilityOverride
from app.models.business import Business
from app.models.staff import StaffMember
from app.utils.time_math import to_minutes, weekday_index

logger = logging.getLogger(__name__)

Interval = Tuple[int, int]


@dataclass(frozen=True)
class Scope:
    """Owner of availability rules: a whole business or one staff member"""
    kind: str  # "business" | "staff"
    id: UUID

    BUSINESS = "business"
    STAFF = "staff"

    @classmethod
    def business(cls, business_id: UUID) -> "Scope":
        return cls(cls.BUSINESS, business_id)

    @classmethod
    def staff(cls, staff_member_id: UUID) -> "Scope":
        return cls(cls.STAFF, staff_member_id)


def subtract_interval(interval: Interval, block: Interval) -> List[Interval]:
    """
    Remove `block` from `interval`. Returns 0, 1 or 2 intervals.
    """
    start, end = interval
    block_start, block_end = block

    # No overlap
    if block_end <= start or block_start >= end:
        return [interval]

    remaining = []
    if block_start > start:
        remaining.append((start, block_start))
    if block_end < end:
        remaining.append((block_end, end))
    return remaining


class RuleResolver:
    """Stateless lookups of the open intervals of a scope"""

    @staticmethod
    def _scope_filter(model, scope: Scope):
        if scope.kind == Scope.BUSINESS:
            return model.business_id == scope.id
        if scope.kind == Scope.STAFF:
            return model.staff_member_id == scope.id
        raise DataIntegrityError(f"Unknown scope kind: {scope.kind}")

    @staticmethod
    def _ensure_scope_exists(db: Session, scope: Scope) -> None:
        model = Business if scope.kind == Scope.BUSINESS else StaffMember
        if db.get(model, scope.id) is None:
            raise DataIntegrityError(
                f"No {scope.kind} with id {scope.id}",
                details={"scope": scope.kind, "id": str(scope.id)}
            )

    @staticmethod
    def _parse_interval(start_time: str, end_time: str, source: str) -> Interval:
        try:
            start, end = to_minutes(start_time), to_minutes(end_time)
        except FormatError as e:
            raise DataIntegrityError(
                f"Malformed stored time in {source}: {e.message}",
                details={"start_time": start_time, "end_time": end_time}
            ) from e

        if start >= end:
            raise DataIntegrityError(
                f"Stored interval in {source} does not end after it starts",
                details={"start_time": start_time, "end_time": end_time}
            )
        return start, end

    @staticmethod
    def get_weekly_intervals(db: Session, scope: Scope, day: date) -> List[Interval]:
        """Union of all active weekly rules for the weekday of `day`"""
        rules = db.query(AvailabilityRule).filter(
            RuleResolver._scope_filter(AvailabilityRule, scope),
            AvailabilityRule.day_of_week == weekday_index(day),
            AvailabilityRule.is_active.is_(True)
        ).order_by(AvailabilityRule.start_time).all()

        return [
            RuleResolver._parse_interval(rule.start_time, rule.end_time, f"rule {rule.id}")
            for rule in rules
        ]

    @staticmethod
    def get_overrides(db: Session, scope: Scope, day: date) -> List[AvailabilityOverride]:
        return db.query(AvailabilityOverride).filter(
            RuleResolver._scope_filter(AvailabilityOverride, scope),
            AvailabilityOverride.date == day
        ).all()

    @staticmethod
    def apply_closures(intervals: List[Interval], overrides: List[AvailabilityOverride]) -> List[Interval]:
        """Subtract closing overrides; a whole-day closure empties the day"""
        for override in overrides:
            # is_available=True overrides are reserved for special opening hours
            if override.is_available:
                continue

            if override.is_whole_day:
                return []

            block = RuleResolver._parse_interval(
                override.start_time, override.end_time, f"override {override.id}"
            )
            remaining = []
            for interval in intervals:
                remaining.extend(subtract_interval(interval, block))
            intervals = remaining

        return intervals

    @staticmethod
    def resolve_open_intervals(db: Session, scope: Scope, day: date) -> List[Interval]:
        """
        Open intervals of `scope` on `day`, in minutes since midnight.

        An empty list means closed (no weekly rule, or closed by override).
        Raises DataIntegrityError for unknown scopes or corrupt stored times.
        """
        RuleResolver._ensure_scope_exists(db, scope)

        intervals = RuleResolver.get_weekly_intervals(db, scope, day)
        if not intervals:
            return []

        overrides = RuleResolver.get_overrides(db, scope, day)
        if overrides:
            intervals = RuleResolver.apply_closures(intervals, overrides)
            logger.debug(
                f"Applied {len(overrides)} override(s) for {scope.kind} {scope.id} on {day}: "
                f"{len(intervals)} interval(s) remain"
            )

        return intervals
