"""Tests for the lead-time cutoff and month-visibility rules."""

from datetime import date, datetime

from studio_booking.booking.availability import build_day
from studio_booking.booking.cutoff import DayState, SelectionFilter, next_month, previous_month


class TestSlotCutoff:
    def test_slot_two_days_ahead_after_cutoff_is_offerable(self, selection_filter, now):
        assert selection_filter.is_slot_offerable(date(2024, 5, 20), "11:00", now)

    def test_slot_next_day_is_not_offerable(self, selection_filter, now):
        assert not selection_filter.is_slot_offerable(date(2024, 5, 19), "09:00", now)

    def test_slot_inside_lead_window_is_not_offerable(self, selection_filter, now):
        # 47 hours ahead of 2024-05-18 10:00
        assert not selection_filter.is_slot_offerable(date(2024, 5, 20), "09:00", now)

    def test_slot_exactly_at_cutoff_is_not_offerable(self, selection_filter, now):
        assert not selection_filter.is_slot_offerable(date(2024, 5, 20), "10:00", now)

    def test_zero_lead_time(self, now):
        f = SelectionFilter(lead_hours=0, next_month_open_day=15)
        assert f.is_slot_offerable(date(2024, 5, 18), "10:01", now)
        assert not f.is_slot_offerable(date(2024, 5, 18), "10:00", now)

    def test_offerable_slots_filters_early_slots(self, selection_filter, now):
        day = build_day("2024-05-20", ["09:00", "11:00", "20:00"], set())
        assert selection_filter.offerable_slots(day, now) == ["11:00", "20:00"]

    def test_unloaded_day_has_no_offerable_slots(self, selection_filter, now):
        assert selection_filter.offerable_slots(None, now) == []


class TestDaySelection:
    def test_open_day(self, selection_filter, now):
        day = build_day("2024-05-22", ["11:00", "15:30"], {"11:00"})
        assert selection_filter.classify_day(date(2024, 5, 22), day, now) == DayState.OPEN
        assert selection_filter.is_day_selectable(date(2024, 5, 22), day, now)

    def test_past_day_never_selectable(self, selection_filter, now):
        day = build_day("2024-05-10", ["11:00"], set())
        assert selection_filter.classify_day(date(2024, 5, 10), day, now) == DayState.PAST
        assert selection_filter.offerable_slots(day, now) == []

    def test_closed_day(self, selection_filter, now):
        day = build_day("2024-05-22", [], set())
        assert selection_filter.classify_day(date(2024, 5, 22), day, now) == DayState.CLOSED

    def test_fully_booked_day(self, selection_filter, now):
        day = build_day("2024-05-22", ["11:00"], {"11:00"})
        assert selection_filter.classify_day(date(2024, 5, 22), day, now) == DayState.FULLY_BOOKED

    def test_day_with_only_early_slots_is_too_soon(self, selection_filter, now):
        day = build_day("2024-05-19", ["11:00", "20:00"], set())
        assert selection_filter.classify_day(date(2024, 5, 19), day, now) == DayState.TOO_SOON
        assert not selection_filter.is_day_selectable(date(2024, 5, 19), day, now)

    def test_not_loaded_is_not_closed(self, selection_filter, now):
        state = selection_filter.classify_day(date(2024, 5, 25), None, now)
        assert state == DayState.NOT_LOADED
        assert not selection_filter.is_day_selectable(date(2024, 5, 25), None, now)


class TestMonthWindow:
    def test_only_current_month_before_threshold(self, selection_filter):
        now = datetime(2024, 5, 14, 9, 0)
        assert selection_filter.visible_months(now) == [(2024, 5)]
        assert not selection_filter.can_go_next(2024, 5, now)

    def test_next_month_opens_on_threshold_day(self, selection_filter):
        now = datetime(2024, 5, 15, 0, 0)
        assert selection_filter.visible_months(now) == [(2024, 5), (2024, 6)]
        assert selection_filter.can_go_next(2024, 5, now)
        assert not selection_filter.can_go_next(2024, 6, now)

    def test_year_rollover(self, selection_filter):
        now = datetime(2024, 12, 20, 12, 0)
        assert selection_filter.visible_months(now) == [(2024, 12), (2025, 1)]
        assert selection_filter.max_bookable_date(now) == date(2025, 1, 31)

    def test_cannot_go_before_current_month(self, selection_filter):
        now = datetime(2024, 5, 20, 12, 0)
        assert not selection_filter.can_go_previous(2024, 5, now)
        assert selection_filter.can_go_previous(2024, 6, now)

    def test_max_bookable_date_current_month(self, selection_filter):
        assert selection_filter.max_bookable_date(datetime(2024, 2, 3)) == date(2024, 2, 29)

    def test_month_helpers(self):
        assert next_month(2024, 12) == (2025, 1)
        assert previous_month(2024, 1) == (2023, 12)
