from studio_booking.booking.availability import AvailabilityResolver, CalendarView, month_range
from studio_booking.booking.cutoff import DayState, SelectionFilter
from studio_booking.booking.history import fetch_history
from studio_booking.booking.profile import load_profile
from studio_booking.booking.submission import BookingSubmitter

__all__ = [
    "AvailabilityResolver",
    "CalendarView",
    "month_range",
    "DayState",
    "SelectionFilter",
    "fetch_history",
    "load_profile",
    "BookingSubmitter",
]
