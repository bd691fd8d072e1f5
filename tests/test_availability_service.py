from datetime import date, timedelta
from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.core.exceptions import NotFoundError
from app.models import Business
from app.services.availability.availability_service import AvailabilityService
from tests.utils import MONDAY, MONDAY_INDEX, upcoming


def _times(day_availability, available=None):
    return [
        (slot.start_time, slot.end_time)
        for slot in day_availability.time_slots
        if available is None or slot.available == available
    ]


class TestDayAvailability:

    def test_open_morning_gives_three_free_slots(self, db, business, service, monday_hours):
        day = upcoming(MONDAY)
        result = AvailabilityService.get_day_availability(db, business.id, service.id, day)

        assert result.date == day
        assert result.day_of_week == 1
        assert _times(result) == [("09:00", "10:00"), ("10:00", "11:00"), ("11:00", "12:00")]
        assert len(result.available_slots) == 3

    def test_booked_slot_is_unavailable(self, db, business, service, monday_hours, add_booking):
        day = upcoming(MONDAY)
        add_booking(service, day, "10:00", "11:00")

        result = AvailabilityService.get_day_availability(db, business.id, service.id, day)

        assert _times(result, available=False) == [("10:00", "11:00")]
        assert _times(result, available=True) == [("09:00", "10:00"), ("11:00", "12:00")]

    def test_cancelled_booking_frees_slot(self, db, business, service, monday_hours, add_booking):
        day = upcoming(MONDAY)
        add_booking(service, day, "10:00", "11:00", status="cancelled")

        result = AvailabilityService.get_day_availability(db, business.id, service.id, day)
        assert len(result.available_slots) == 3

    def test_closed_weekday_is_empty(self, db, business, service, monday_hours):
        result = AvailabilityService.get_day_availability(db, business.id, service.id, upcoming(2))
        assert result.time_slots == []

    def test_holiday_override_removes_all_slots(self, db, business, service, add_rule, add_override):
        christmas = date(2024, 12, 25)
        add_rule(3, "09:00", "17:00", business=business)
        add_override(christmas, business=business, reason="Christmas")

        result = AvailabilityService.get_day_availability(db, business.id, service.id, christmas)
        assert result.time_slots == []

    def test_buffer_after_spaces_slots(self, db, business, make_service, monday_hours):
        service = make_service(duration_minutes=45, buffer_after_minutes=15)
        result = AvailabilityService.get_day_availability(db, business.id, service.id, upcoming(MONDAY))
        assert _times(result) == [("09:00", "09:45"), ("10:00", "10:45"), ("11:00", "11:45")]

    def test_duplicate_rules_do_not_duplicate_slots(self, db, business, service, monday_hours, add_rule):
        add_rule(MONDAY_INDEX, "09:00", "12:00", business=business)
        result = AvailabilityService.get_day_availability(db, business.id, service.id, upcoming(MONDAY))
        assert len(result.time_slots) == 3

    def test_repeated_queries_are_identical(self, db, business, service, monday_hours, add_booking):
        day = upcoming(MONDAY)
        add_booking(service, day, "09:00", "10:00")

        first = AvailabilityService.get_day_availability(db, business.id, service.id, day)
        second = AvailabilityService.get_day_availability(db, business.id, service.id, day)
        assert first == second

    def test_unknown_service(self, db, business, monday_hours):
        with pytest.raises(NotFoundError):
            AvailabilityService.get_day_availability(db, business.id, uuid4(), upcoming(MONDAY))

    def test_inactive_service(self, db, business, make_service, monday_hours):
        service = make_service(is_active=False)
        with pytest.raises(NotFoundError):
            AvailabilityService.get_day_availability(db, business.id, service.id, upcoming(MONDAY))

    def test_corrupt_rule_degrades_to_closed(self, db, business, service, add_rule):
        add_rule(MONDAY_INDEX, "25:00", "12:00", business=business)
        result = AvailabilityService.get_day_availability(db, business.id, service.id, upcoming(MONDAY))
        assert result.time_slots == []

    def test_corrupt_booking_time_degrades_to_closed(self, db, business, service, monday_hours, add_booking):
        day = upcoming(MONDAY)
        add_booking(service, day, "10:00", "1O:60")

        result = AvailabilityService.get_day_availability(db, business.id, service.id, day)
        assert result.time_slots == []


class TestCapacity:

    def test_sum_mode_counts_every_overlapping_party(self, db, business, make_service, monday_hours, add_booking):
        service = make_service(capacity=4)
        day = upcoming(MONDAY)
        add_booking(service, day, "10:00", "11:00", party_size=2)
        add_booking(service, day, "10:00", "11:00", party_size=2)

        result = AvailabilityService.get_day_availability(db, business.id, service.id, day, capacity_mode="sum")
        assert _times(result, available=False) == [("10:00", "11:00")]

    def test_largest_mode_compares_bookings_individually(self, db, business, make_service, monday_hours,
                                                         add_booking):
        service = make_service(capacity=4)
        day = upcoming(MONDAY)
        add_booking(service, day, "10:00", "11:00", party_size=2)
        add_booking(service, day, "10:00", "11:00", party_size=2)

        result = AvailabilityService.get_day_availability(
            db, business.id, service.id, day, capacity_mode="largest"
        )
        assert _times(result, available=False) == []

    def test_partially_filled_slot_stays_available(self, db, business, make_service, monday_hours, add_booking):
        service = make_service(capacity=4)
        day = upcoming(MONDAY)
        add_booking(service, day, "10:00", "11:00", party_size=3)

        result = AvailabilityService.get_day_availability(db, business.id, service.id, day)
        assert len(result.available_slots) == 3

    @pytest.mark.parametrize("mode,party_sizes,incoming,full", [
        ("sum", [2, 1], 1, False),
        ("sum", [2, 1], 2, True),
        ("sum", [2, 2], 0, True),
        ("largest", [2, 1], 2, False),
        ("largest", [3, 1], 2, True),
        ("largest", [4], 0, True),
    ])
    def test_is_capacity_full(self, mode, party_sizes, incoming, full):
        service = SimpleNamespace(capacity=4)
        bookings = [SimpleNamespace(party_size=size) for size in party_sizes]
        assert AvailabilityService.is_capacity_full(service, bookings, incoming, capacity_mode=mode) is full

    def test_no_overlap_only_checks_party_size(self):
        service = SimpleNamespace(capacity=4)
        assert AvailabilityService.is_capacity_full(service, [], 4) is False
        assert AvailabilityService.is_capacity_full(service, [], 5) is True


class TestStaffServices:

    @pytest.fixture()
    def massage(self, make_service):
        return make_service(name="Massage", requires_staff=True, capacity=1)

    def test_staff_without_weekly_rule_has_no_slots(self, db, business, massage, make_staff, monday_hours):
        make_staff(services=[massage])
        result = AvailabilityService.get_day_availability(db, business.id, massage.id, upcoming(MONDAY))
        assert result.time_slots == []

    def test_slots_per_capable_staff(self, db, business, massage, make_staff, add_rule, add_booking):
        alex = make_staff("Alex", services=[massage])
        blair = make_staff("Blair", services=[massage])
        make_staff("Casey")  # not capable
        for staff in (alex, blair):
            add_rule(MONDAY_INDEX, "09:00", "11:00", staff=staff)

        day = upcoming(MONDAY)
        add_booking(massage, day, "10:00", "11:00", staff=alex)

        result = AvailabilityService.get_day_availability(db, business.id, massage.id, day)

        assert len(result.time_slots) == 4
        assert {slot.staff_member_id for slot in result.time_slots} == {alex.id, blair.id}
        blocked = [(s.start_time, s.staff_member_id) for s in result.time_slots if not s.available]
        assert blocked == [("10:00", alex.id)]

    def test_business_closure_closes_staff(self, db, business, massage, make_staff, add_rule, add_override):
        alex = make_staff("Alex", services=[massage])
        add_rule(MONDAY_INDEX, "09:00", "12:00", staff=alex)
        day = upcoming(MONDAY)
        add_override(day, business=business, reason="Inventory day")

        result = AvailabilityService.get_day_availability(db, business.id, massage.id, day)
        assert result.time_slots == []

    def test_staff_partial_closure(self, db, business, massage, make_staff, add_rule, add_override):
        alex = make_staff("Alex", services=[massage])
        add_rule(MONDAY_INDEX, "09:00", "12:00", staff=alex)
        day = upcoming(MONDAY)
        add_override(day, staff=alex, start_time="10:00", end_time="11:00", reason="Dentist")

        result = AvailabilityService.get_day_availability(db, business.id, massage.id, day)
        assert _times(result) == [("09:00", "10:00"), ("11:00", "12:00")]

    def test_booking_for_another_service_blocks_staff(self, db, business, massage, make_service, make_staff,
                                                      add_rule, add_booking):
        facial = make_service(name="Facial", requires_staff=True)
        alex = make_staff("Alex", services=[massage, facial])
        add_rule(MONDAY_INDEX, "09:00", "12:00", staff=alex)
        day = upcoming(MONDAY)
        add_booking(facial, day, "10:00", "11:00", staff=alex)

        result = AvailabilityService.get_day_availability(db, business.id, massage.id, day)
        assert _times(result, available=False) == [("10:00", "11:00")]

    def test_staff_of_another_business_cannot_perform(self, db, massage, make_staff):
        rival = Business(name="Rival", business_type="salon", email="rival@example.com", booking_link_slug="rival")
        db.add(rival)
        db.commit()
        outsider = make_staff("Drew", services=[massage])
        outsider.business_id = rival.id
        db.commit()

        assert not AvailabilityService.can_staff_perform_service(db, outsider.id, massage.id)

class TestWeekAvailability:

    def test_seven_days_from_start(self, db, business, service, monday_hours):
        start = upcoming(MONDAY)
        week = AvailabilityService.get_week_availability(db, business.booking_link_slug, service.id, start)

        assert [day.date for day in week] == [start + timedelta(days=i) for i in range(7)]
        assert len(week[0].time_slots) == 3
        assert all(day.time_slots == [] for day in week[1:])

    def test_failing_day_does_not_break_week(self, db, business, service, monday_hours, add_rule):
        add_rule(2, "nonsense", "17:00", business=business)  # Tuesday
        start = upcoming(MONDAY)

        week = AvailabilityService.get_week_availability(db, business.booking_link_slug, service.id, start)

        assert len(week) == 7
        assert len(week[0].time_slots) == 3
        assert week[1].time_slots == []

    def test_unknown_service_yields_empty_days(self, db, business, monday_hours):
        week = AvailabilityService.get_week_availability(db, business.booking_link_slug, uuid4(), upcoming(MONDAY))
        assert len(week) == 7
        assert all(day.time_slots == [] for day in week)

    def test_unknown_slug(self, db, service):
        with pytest.raises(NotFoundError):
            AvailabilityService.get_week_availability(db, "nowhere", service.id, upcoming(MONDAY))


class TestSingleSlotCheck:

    def _check(self, db, service, day, start, end, staff_member_id=None, **kwargs):
        return AvailabilityService.is_time_slot_available(
            db, service.business_id, service.id, staff_member_id, day, start, end, **kwargs
        )

    def test_free_slot(self, db, service, monday_hours):
        result = self._check(db, service, upcoming(MONDAY), "09:00", "10:00")
        assert result.available
        assert result.reason is None

    def test_generated_slot_round_trip(self, db, business, service, monday_hours):
        day = upcoming(MONDAY)
        for slot in AvailabilityService.get_day_availability(db, business.id, service.id, day).available_slots:
            assert self._check(db, service, day, slot.start_time, slot.end_time).available

    def test_closed_weekday(self, db, service, monday_hours):
        result = self._check(db, service, upcoming(1), "09:00", "10:00")
        assert not result.available
        assert result.reason == "Business closed on this day"

    def test_outside_hours(self, db, service, monday_hours):
        result = self._check(db, service, upcoming(MONDAY), "11:30", "12:30")
        assert result.reason == "Requested time is outside business hours"

    def test_party_size_over_capacity(self, db, make_service, monday_hours):
        service = make_service(capacity=2)
        result = self._check(db, service, upcoming(MONDAY), "09:00", "10:00", party_size=3)
        assert result.reason == "Party size exceeds capacity (max: 2)"

    def test_whole_day_override_reason(self, db, business, service, monday_hours, add_override):
        day = upcoming(MONDAY)
        add_override(day, business=business, reason="Holiday")
        assert self._check(db, service, day, "09:00", "10:00").reason == "Holiday"

    def test_whole_day_override_default_reason(self, db, business, service, monday_hours, add_override):
        day = upcoming(MONDAY)
        add_override(day, business=business)
        assert self._check(db, service, day, "09:00", "10:00").reason == "Business not available on this date"

    def test_partial_closure(self, db, business, service, monday_hours, add_override):
        day = upcoming(MONDAY)
        add_override(day, business=business, start_time="10:30", end_time="11:00")

        assert self._check(db, service, day, "10:00", "11:00").reason == "Special closure during requested time"
        assert self._check(db, service, day, "09:00", "10:00").available

    def test_conflicting_booking(self, db, service, monday_hours, add_booking):
        day = upcoming(MONDAY)
        add_booking(service, day, "10:00", "11:00")

        assert self._check(db, service, day, "10:30", "11:30").reason == "Time slot already booked"
        assert self._check(db, service, day, "10:00", "11:00").reason == "Time slot already booked"
        assert self._check(db, service, day, "11:00", "12:00").available

    def test_excluded_booking_does_not_conflict(self, db, service, monday_hours, add_booking):
        day = upcoming(MONDAY)
        booking = add_booking(service, day, "10:00", "11:00")
        result = self._check(db, service, day, "10:00", "11:00", exclude_booking_id=booking.id)
        assert result.available

    def test_staff_without_rules(self, db, make_service, make_staff, monday_hours):
        massage = make_service(requires_staff=True)
        alex = make_staff(services=[massage])
        result = self._check(db, massage, upcoming(MONDAY), "09:00", "10:00", staff_member_id=alex.id)
        assert result.reason == "Staff not available on this day"

    def test_other_staff_booking_does_not_conflict(self, db, make_service, make_staff, add_rule, add_booking):
        massage = make_service(requires_staff=True)
        alex = make_staff("Alex", services=[massage])
        blair = make_staff("Blair", services=[massage])
        for staff in (alex, blair):
            add_rule(MONDAY_INDEX, "09:00", "12:00", staff=staff)
        day = upcoming(MONDAY)
        add_booking(massage, day, "10:00", "11:00", staff=alex)

        assert self._check(db, massage, day, "10:00", "11:00", staff_member_id=alex.id).reason == \
            "Time slot already booked"
        assert self._check(db, massage, day, "10:00", "11:00", staff_member_id=blair.id).available

    def test_business_closure_applies_to_staff(self, db, business, make_service, make_staff, add_rule,
                                               add_override):
        massage = make_service(requires_staff=True)
        alex = make_staff(services=[massage])
        add_rule(MONDAY_INDEX, "09:00", "12:00", staff=alex)
        day = upcoming(MONDAY)
        add_override(day, business=business)

        result = self._check(db, massage, day, "09:00", "10:00", staff_member_id=alex.id)
        assert result.reason == "Staff not available on this date"

    def test_corrupt_data_is_unavailable(self, db, service, business, add_rule):
        add_rule(MONDAY_INDEX, "09:00", "99:99", business=business)
        result = self._check(db, service, upcoming(MONDAY), "09:00", "10:00")
        assert result.reason == "Availability data unavailable for this date"

    def test_corrupt_booking_time_is_unavailable(self, db, service, monday_hours, add_booking):
        day = upcoming(MONDAY)
        add_booking(service, day, "10:00", "1O:60")
        result = self._check(db, service, day, "09:00", "10:00")
        assert result.reason == "Availability data unavailable for this date"

    def test_staff_booking_for_another_service_conflicts(self, db, make_service, make_staff, add_rule,
                                                         add_booking):
        massage = make_service(name="Massage", requires_staff=True)
        facial = make_service(name="Facial", requires_staff=True)
        alex = make_staff("Alex", services=[massage, facial])
        add_rule(MONDAY_INDEX, "09:00", "12:00", staff=alex)
        day = upcoming(MONDAY)
        add_booking(facial, day, "10:00", "11:00", staff=alex)

        assert self._check(db, massage, day, "10:00", "11:00", staff_member_id=alex.id).reason == \
            "Time slot already booked"
        assert self._check(db, massage, day, "11:00", "12:00", staff_member_id=alex.id).available
