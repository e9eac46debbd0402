"""
Exception hierarchy for the booking system.

Fetch errors are raised while building the calendar, submission errors
while writing a booking. NotificationError never reaches the caller of
a submission; the submitter logs it and moves on.
"""


class BookingSystemError(Exception):
    """Base class for all errors raised by this package."""


class StoreError(BookingSystemError):
    """A data-access call against the store failed."""


class ConfigFetchError(BookingSystemError):
    """Configured slots could not be loaded; the month cannot be rendered."""


class OccupancyFetchError(BookingSystemError):
    """Occupied slots could not be loaded."""


class SubmissionError(BookingSystemError):
    """A booking submission was aborted. Safe to retry."""


class CustomerWriteError(SubmissionError):
    """The customer upsert failed; no booking was written."""


class BookingWriteError(SubmissionError):
    """The booking insert failed after the customer upsert succeeded."""


class NotificationError(BookingSystemError):
    """The outbound booking notification could not be delivered."""


class InvalidTransitionError(BookingSystemError):
    """Raised when a transition is not valid from the current state."""
