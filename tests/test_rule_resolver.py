from datetime import date
from uuid import uuid4

import pytest

from app.core.exceptions import DataIntegrityError
from app.services.availability.rule_resolver import RuleResolver, Scope, subtract_interval
from tests.utils import MONDAY, MONDAY_INDEX, upcoming


@pytest.mark.parametrize("block,expected", [
    ((700, 800), [(540, 720)]),  # after
    ((400, 540), [(540, 720)]),  # touching before
    ((600, 660), [(540, 600), (660, 720)]),  # inside
    ((500, 600), [(600, 720)]),  # overlapping start
    ((660, 800), [(540, 660)]),  # overlapping end
    ((540, 720), []),  # exact
    ((0, 1439), []),  # covering
])
def test_subtract_interval(block, expected):
    assert subtract_interval((540, 720), block) == expected


class TestResolveOpenIntervals:

    def test_weekly_rule_for_weekday(self, db, business, monday_hours):
        day = upcoming(MONDAY)
        assert RuleResolver.resolve_open_intervals(db, Scope.business(business.id), day) == [(540, 720)]

    def test_no_rule_for_weekday_is_closed(self, db, business, monday_hours):
        tuesday = upcoming(1)
        assert RuleResolver.resolve_open_intervals(db, Scope.business(business.id), tuesday) == []

    def test_inactive_rule_ignored(self, db, business, add_rule):
        add_rule(MONDAY_INDEX, "09:00", "12:00", business=business, is_active=False)
        assert RuleResolver.resolve_open_intervals(db, Scope.business(business.id), upcoming(MONDAY)) == []

    def test_split_shift_is_union(self, db, business, add_rule):
        add_rule(MONDAY_INDEX, "14:00", "18:00", business=business)
        add_rule(MONDAY_INDEX, "09:00", "12:00", business=business)
        intervals = RuleResolver.resolve_open_intervals(db, Scope.business(business.id), upcoming(MONDAY))
        assert intervals == [(540, 720), (840, 1080)]

    def test_whole_day_closure(self, db, business, monday_hours, add_override):
        day = upcoming(MONDAY)
        add_override(day, business=business, reason="Holiday")
        assert RuleResolver.resolve_open_intervals(db, Scope.business(business.id), day) == []

    def test_partial_closure_splits_interval(self, db, business, monday_hours, add_override):
        day = upcoming(MONDAY)
        add_override(day, business=business, start_time="10:00", end_time="11:00")
        intervals = RuleResolver.resolve_open_intervals(db, Scope.business(business.id), day)
        assert intervals == [(540, 600), (660, 720)]

    def test_available_override_does_not_close(self, db, business, monday_hours, add_override):
        day = upcoming(MONDAY)
        add_override(day, business=business, is_available=True, start_time="13:00", end_time="15:00")
        assert RuleResolver.resolve_open_intervals(db, Scope.business(business.id), day) == [(540, 720)]

    def test_override_on_other_date_ignored(self, db, business, monday_hours, add_override):
        day = upcoming(MONDAY)
        add_override(upcoming(MONDAY, min_days=8), business=business)
        assert RuleResolver.resolve_open_intervals(db, Scope.business(business.id), day) == [(540, 720)]

    def test_staff_scope_uses_staff_rules_only(self, db, business, service, make_staff, add_rule, monday_hours):
        staff = make_staff(services=[service])
        assert RuleResolver.resolve_open_intervals(db, Scope.staff(staff.id), upcoming(MONDAY)) == []

        add_rule(MONDAY_INDEX, "13:00", "15:00", staff=staff)
        assert RuleResolver.resolve_open_intervals(db, Scope.staff(staff.id), upcoming(MONDAY)) == [(780, 900)]

    def test_christmas_closure(self, db, business, add_rule, add_override):
        christmas = date(2024, 12, 25)  # a Wednesday
        add_rule(3, "09:00", "17:00", business=business)
        add_override(christmas, business=business, reason="Christmas")
        assert RuleResolver.resolve_open_intervals(db, Scope.business(business.id), christmas) == []


class TestDataIntegrity:

    def test_unknown_scope(self, db, business):
        with pytest.raises(DataIntegrityError):
            RuleResolver.resolve_open_intervals(db, Scope.staff(uuid4()), upcoming(MONDAY))

    def test_malformed_stored_time(self, db, business, add_rule):
        add_rule(MONDAY_INDEX, "9am", "12:00", business=business)
        with pytest.raises(DataIntegrityError):
            RuleResolver.resolve_open_intervals(db, Scope.business(business.id), upcoming(MONDAY))

    def test_inverted_stored_interval(self, db, business, add_rule):
        add_rule(MONDAY_INDEX, "12:00", "09:00", business=business)
        with pytest.raises(DataIntegrityError):
            RuleResolver.resolve_open_intervals(db, Scope.business(business.id), upcoming(MONDAY))
