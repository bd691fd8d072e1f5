# app/services/availability/availability_service.py
from dataclasses import replace
from datetime import date, timedelta
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.core.exceptions import DataIntegrityError, NotFoundError, SchedulingError
from app.models.availability import AvailabilityOverride
from app.models.booking import Booking, ACTIVE_BOOKING_STATUSES
from app.models.business import Business
from app.models.service import Service
from app.models.staff import StaffMember, staff_services
from app.schemas.availability import DayAvailability, SlotCheckResult, TimeSlot
from app.services.availability import slot_generator
from app.services.availability.rule_resolver import RuleResolver, Scope
from app.utils.time_math import overlaps, to_minutes, weekday_index

logger = logging.getLogger(__name__)

CAPACITY_MODE_SUM = "sum"
CAPACITY_MODE_LARGEST = "largest"


class AvailabilityService:
    """Computes bookable slots from availability rules and existing bookings"""

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @staticmethod
    def get_business_by_slug(db: Session, slug: str) -> Optional[Business]:
        return db.query(Business).filter(
            Business.booking_link_slug == slug,
            Business.is_active.is_(True)
        ).first()

    @staticmethod
    def get_service_details(
            db: Session,
            service_id: UUID,
            business_id: UUID,
            for_update: bool = False
    ) -> Optional[Service]:
        """Active service owned by the business, optionally row-locked"""
        query = db.query(Service).filter(
            Service.id == service_id,
            Service.business_id == business_id,
            Service.is_active.is_(True)
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def can_staff_perform_service(db: Session, staff_member_id: UUID, service_id: UUID) -> bool:
        """Active, linked to the service, and employed by the business that owns it"""
        match = db.query(StaffMember.id).join(
            staff_services, staff_services.c.staff_member_id == StaffMember.id
        ).join(
            Service, Service.id == staff_services.c.service_id
        ).filter(
            StaffMember.id == staff_member_id,
            StaffMember.is_active.is_(True),
            staff_services.c.service_id == service_id,
            StaffMember.business_id == Service.business_id
        ).first()
        return match is not None

    @staticmethod
    def get_capable_staff(db: Session, service: Service) -> List[StaffMember]:
        return db.query(StaffMember).join(
            staff_services, staff_services.c.staff_member_id == StaffMember.id
        ).filter(
            staff_services.c.service_id == service.id,
            StaffMember.business_id == service.business_id,
            StaffMember.is_active.is_(True)
        ).order_by(StaffMember.name).all()

    @staticmethod
    def get_active_bookings(
            db: Session,
            business_id: UUID,
            service_id: UUID,
            booking_date: date,
            staff_member_id: Optional[UUID] = None,
            exclude_booking_id: Optional[UUID] = None
    ) -> List[Booking]:
        """Pending and confirmed bookings occupying the service on a date"""
        query = db.query(Booking).filter(
            Booking.business_id == business_id,
            Booking.service_id == service_id,
            Booking.booking_date == booking_date,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES)
        )
        if staff_member_id:
            query = query.filter(Booking.staff_member_id == staff_member_id)
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.all()

    @staticmethod
    def get_staff_bookings(
            db: Session,
            staff_member_ids,
            booking_date: date,
            exclude_booking_id: Optional[UUID] = None
    ) -> List[Booking]:
        """Pending and confirmed bookings of the given staff members on a date, across all services"""
        if not staff_member_ids:
            return []
        query = db.query(Booking).filter(
            Booking.staff_member_id.in_(list(staff_member_ids)),
            Booking.booking_date == booking_date,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES)
        )
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.all()

    @staticmethod
    def _booking_interval(booking: Booking):
        return RuleResolver._parse_interval(booking.start_time, booking.end_time, f"booking {booking.id}")

    @staticmethod
    def _overlapping(start: int, end: int, bookings: List[Booking]) -> List[Booking]:
        """Bookings intersecting [start, end); corrupt stored times raise DataIntegrityError"""
        return [
            b for b in bookings
            if overlaps(start, end, *AvailabilityService._booking_interval(b))
        ]

    # ------------------------------------------------------------------
    # Conflict rules
    # ------------------------------------------------------------------

    @staticmethod
    def _capacity_mode(capacity_mode: Optional[str]) -> str:
        return capacity_mode or get_settings().CAPACITY_CONFLICT_MODE

    @staticmethod
    def is_capacity_full(
            service: Service,
            overlapping: List[Booking],
            party_size: int = 0,
            capacity_mode: Optional[str] = None
    ) -> bool:
        """
        Whether `party_size` more guests no longer fit next to the
        overlapping bookings. With party_size=0 this answers "is the slot
        already full".
        """
        if not overlapping:
            return party_size > service.capacity

        if AvailabilityService._capacity_mode(capacity_mode) == CAPACITY_MODE_LARGEST:
            # Legacy rule: each overlapping booking is compared on its own
            if party_size == 0:
                return any(b.party_size >= service.capacity for b in overlapping)
            return any(b.party_size + party_size > service.capacity for b in overlapping)

        occupied = sum(b.party_size for b in overlapping)
        if party_size == 0:
            return occupied >= service.capacity
        return occupied + party_size > service.capacity

    @staticmethod
    def _mark_slot(
            slot: slot_generator.Slot,
            service: Service,
            bookings: List[Booking],
            capacity_mode: Optional[str]
    ) -> slot_generator.Slot:
        overlapping = AvailabilityService._overlapping(slot.start_minutes, slot.end_minutes, bookings)
        if not overlapping:
            return slot

        if service.requires_staff:
            if any(b.staff_member_id == slot.staff_member_id for b in overlapping):
                return replace(slot, available=False)
            return slot

        if AvailabilityService.is_capacity_full(service, overlapping, capacity_mode=capacity_mode):
            return replace(slot, available=False)
        return slot

    # ------------------------------------------------------------------
    # Slot computation
    # ------------------------------------------------------------------

    @staticmethod
    def _open_intervals(db: Session, scope: Scope, day: date, extra_closures: List[AvailabilityOverride]):
        """Resolved intervals for a scope; corrupt data degrades to closed"""
        try:
            intervals = RuleResolver.resolve_open_intervals(db, scope, day)
            if intervals and extra_closures:
                intervals = RuleResolver.apply_closures(intervals, extra_closures)
            return intervals
        except DataIntegrityError as e:
            logger.error(f"Availability data error for {scope.kind} {scope.id} on {day}: {e.message}")
            return []

    @staticmethod
    def _generate_candidate_slots(db: Session, service: Service, day: date) -> List[slot_generator.Slot]:
        buffer_after = service.buffer_after_minutes or 0
        slots = []

        if service.requires_staff:
            # A business-wide closure also closes every staff member
            business_closures = RuleResolver.get_overrides(db, Scope.business(service.business_id), day)

            for staff in AvailabilityService.get_capable_staff(db, service):
                intervals = AvailabilityService._open_intervals(
                    db, Scope.staff(staff.id), day, business_closures
                )
                for start, end in intervals:
                    slots.extend(slot_generator.generate(
                        start, end, service.duration_minutes, buffer_after, staff_member_id=staff.id
                    ))
        else:
            intervals = AvailabilityService._open_intervals(
                db, Scope.business(service.business_id), day, []
            )
            for start, end in intervals:
                slots.extend(slot_generator.generate(start, end, service.duration_minutes, buffer_after))

        return slots

    @staticmethod
    def get_day_availability(
            db: Session,
            business_id: UUID,
            service_id: UUID,
            day: date,
            capacity_mode: Optional[str] = None
    ) -> DayAvailability:
        """
        All candidate slots of a service on one date, each marked available
        or not. Returns an empty slot list when nothing is open.
        """
        service = AvailabilityService.get_service_details(db, service_id, business_id)
        if not service:
            raise NotFoundError(
                "Service not found or inactive",
                details={"service_id": str(service_id), "business_id": str(business_id)}
            )

        slots = AvailabilityService._generate_candidate_slots(db, service, day)

        if slots:
            if service.requires_staff:
                # A staff member is busy whatever service the other booking is for
                bookings = AvailabilityService.get_staff_bookings(
                    db, {slot.staff_member_id for slot in slots}, day
                )
            else:
                bookings = AvailabilityService.get_active_bookings(db, business_id, service_id, day)
            try:
                slots = [
                    AvailabilityService._mark_slot(slot, service, bookings, capacity_mode)
                    for slot in slots
                ]
            except DataIntegrityError as e:
                logger.error(f"Booking data error for service {service_id} on {day}: {e.message}")
                slots = []

        # Sort, then drop duplicates (overlapping rules can emit the same slot twice)
        slots.sort(key=lambda s: (s.start_minutes, s.end_minutes, str(s.staff_member_id or "")))
        seen = set()
        unique_slots = []
        for slot in slots:
            if slot.key in seen:
                continue
            seen.add(slot.key)
            unique_slots.append(slot)

        logger.info(
            f"Availability for service {service_id} on {day}: "
            f"{sum(1 for s in unique_slots if s.available)}/{len(unique_slots)} slots available"
        )

        return DayAvailability(
            date=day,
            day_of_week=weekday_index(day),
            time_slots=[TimeSlot.model_validate(slot) for slot in unique_slots]
        )

    @staticmethod
    def get_week_availability(
            db: Session,
            business_slug: str,
            service_id: UUID,
            start_date: date,
            capacity_mode: Optional[str] = None
    ) -> List[DayAvailability]:
        """Seven consecutive days; a failing day degrades to an empty day"""
        business = AvailabilityService.get_business_by_slug(db, business_slug)
        if not business:
            raise NotFoundError("Business not found", details={"slug": business_slug})

        week = []
        for offset in range(7):
            current = start_date + timedelta(days=offset)
            try:
                week.append(AvailabilityService.get_day_availability(
                    db, business.id, service_id, current, capacity_mode
                ))
            except SchedulingError as e:
                logger.error(f"Error getting availability for {current.isoformat()}: {e.message}")
                week.append(DayAvailability(date=current, day_of_week=weekday_index(current), time_slots=[]))

        return week

    # ------------------------------------------------------------------
    # Single slot check
    # ------------------------------------------------------------------

    @staticmethod
    def is_time_slot_available(
            db: Session,
            business_id: UUID,
            service_id: UUID,
            staff_member_id: Optional[UUID],
            booking_date: date,
            start_time: str,
            end_time: str,
            party_size: int = 1,
            exclude_booking_id: Optional[UUID] = None,
            capacity_mode: Optional[str] = None,
            service: Optional[Service] = None
    ) -> SlotCheckResult:
        """
        Whether [start_time, end_time) on booking_date can take this booking:
        inside the working hours, not closed by an override, no conflicting
        booking, and within capacity.
        """
        service = service or AvailabilityService.get_service_details(db, service_id, business_id)
        if not service:
            return SlotCheckResult(available=False, reason="Service not found or inactive")

        if party_size > service.capacity:
            return SlotCheckResult(
                available=False, reason=f"Party size exceeds capacity (max: {service.capacity})"
            )

        start, end = to_minutes(start_time), to_minutes(end_time)
        staff_scoped = bool(service.requires_staff and staff_member_id)
        scope = Scope.staff(staff_member_id) if staff_scoped else Scope.business(business_id)
        subject = "Staff" if staff_scoped else "Business"

        try:
            weekly = RuleResolver.get_weekly_intervals(db, scope, booking_date)
            if not weekly:
                reason = "Staff not available on this day" if staff_scoped else "Business closed on this day"
                return SlotCheckResult(available=False, reason=reason)

            if not any(rule_start <= start and end <= rule_end for rule_start, rule_end in weekly):
                hours = "staff working hours" if staff_scoped else "business hours"
                return SlotCheckResult(available=False, reason=f"Requested time is outside {hours}")

            overrides = RuleResolver.get_overrides(db, Scope.business(business_id), booking_date)
            if staff_scoped:
                overrides += RuleResolver.get_overrides(db, scope, booking_date)

            for override in overrides:
                if override.is_available:
                    continue
                if override.is_whole_day:
                    return SlotCheckResult(
                        available=False,
                        reason=override.reason or f"{subject} not available on this date"
                    )
                if RuleResolver.apply_closures([(start, end)], [override]) != [(start, end)]:
                    return SlotCheckResult(
                        available=False,
                        reason=override.reason or "Special closure during requested time"
                    )
        except DataIntegrityError as e:
            logger.error(f"Availability data error for {scope.kind} {scope.id} on {booking_date}: {e.message}")
            return SlotCheckResult(available=False, reason="Availability data unavailable for this date")

        if staff_scoped:
            bookings = AvailabilityService.get_staff_bookings(
                db, [staff_member_id], booking_date, exclude_booking_id=exclude_booking_id
            )
        else:
            bookings = AvailabilityService.get_active_bookings(
                db, business_id, service_id, booking_date, exclude_booking_id=exclude_booking_id
            )
        try:
            overlapping = AvailabilityService._overlapping(start, end, bookings)
        except DataIntegrityError as e:
            logger.error(f"Booking data error for service {service_id} on {booking_date}: {e.message}")
            return SlotCheckResult(available=False, reason="Availability data unavailable for this date")

        if overlapping:
            if service.requires_staff:
                return SlotCheckResult(available=False, reason="Time slot already booked")
            if AvailabilityService.is_capacity_full(service, overlapping, party_size, capacity_mode):
                return SlotCheckResult(available=False, reason="Time slot already booked")

        return SlotCheckResult(available=True)
