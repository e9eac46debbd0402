"""
Booking form with a Collect -> Validate -> Confirm lifecycle per field.

The form refuses to produce a BookingDraft until every required field
has passed validation. Confirmation happens once, for the whole form,
when the customer approves the read-back summary.

Usage:
    form = BookingForm()
    ok, msg = form.set_field("phone", "0912-345-678")
    if form.is_complete():
        print(form.confirmation_summary())
        form.confirm_all()
        draft = form.to_draft(profile)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from studio_booking.config import settings
from studio_booking.schemas.booking_schema import BookingDraft
from studio_booking.schemas.customer_schema import CustomerProfile
from studio_booking.services import get_service_label, match_service
from studio_booking.utils import normalize_phone, parse_date, parse_slot

logger = logging.getLogger(__name__)

YES_WORDS = frozenset({"y", "yes", "true", "1", "是"})
NO_WORDS = frozenset({"n", "no", "false", "0", "否"})


class FieldStatus(str, Enum):
    """Lifecycle status of a form field."""

    EMPTY = "empty"
    COLLECTED = "collected"
    VALIDATED = "validated"
    CONFIRMED = "confirmed"


def _validate_name(value: str) -> bool:
    return bool(value.strip())


def _validate_phone(value: str) -> bool:
    return len(normalize_phone(value)) == settings.rules.phone_digits


def _validate_service(value: str) -> bool:
    return match_service(value) is not None


def _validate_yes_no(value: str) -> bool:
    return value.strip().lower() in YES_WORDS | NO_WORDS


def _validate_agreed(value: str) -> bool:
    return value.strip().lower() in YES_WORDS


def _validate_date(value: str) -> bool:
    """Validate date is in YYYY-MM-DD format."""
    try:
        parse_date(value)
        return True
    except ValueError:
        return False


def _validate_time(value: str) -> bool:
    """Validate time is in HH:MM format."""
    try:
        parse_slot(value)
        return True
    except ValueError:
        return False


@dataclass(frozen=True)
class FieldDefinition:
    """Schema for a single form field."""

    name: str
    display_name: str
    validator: Optional[Callable[[str], bool]] = None
    required: bool = True
    in_summary: bool = True


@dataclass
class FieldValue:
    """Current state of a form field."""

    raw_value: Optional[str] = None
    normalized_value: Optional[str] = None
    status: FieldStatus = FieldStatus.EMPTY
    attempts: int = 0
    history: list[str] = field(default_factory=list)


class BookingForm:
    """Collects and validates the booking details."""

    FIELD_DEFINITIONS: list[FieldDefinition] = [
        FieldDefinition("booking_date", "date", _validate_date),
        FieldDefinition("booking_time", "time", _validate_time),
        FieldDefinition("name", "name", _validate_name),
        FieldDefinition("phone", "phone number", _validate_phone),
        FieldDefinition("service_type", "service", _validate_service),
        FieldDefinition("remove_gel", "gel removal", _validate_yes_no),
        FieldDefinition("agreed_to_terms", "booking terms", _validate_agreed, in_summary=False),
    ]

    def __init__(self) -> None:
        self.fields: dict[str, FieldValue] = {
            defn.name: FieldValue() for defn in self.FIELD_DEFINITIONS
        }

    def _get_definition(self, name: str) -> FieldDefinition:
        for defn in self.FIELD_DEFINITIONS:
            if defn.name == name:
                return defn
        raise ValueError(f"Unknown field: {name}")

    def _normalize(self, name: str, value: str) -> str:
        value = value.strip()
        if name == "phone":
            return normalize_phone(value)
        if name == "service_type":
            return match_service(value) or value
        if name in ("remove_gel", "agreed_to_terms"):
            return "yes" if value.lower() in YES_WORDS else "no"
        return value

    def set_field(self, name: str, raw_value: str) -> tuple[bool, str]:
        """
        Set a field with validation.

        Returns:
            (success, message). success is True if validation passed.
        """
        defn = self._get_definition(name)
        entry = self.fields[name]
        if entry.raw_value is not None:
            entry.history.append(entry.raw_value)
        entry.raw_value = raw_value
        entry.attempts += 1

        if defn.validator and not defn.validator(raw_value):
            entry.status = FieldStatus.COLLECTED
            entry.normalized_value = None
            logger.debug("Field '%s' validation failed: '%s'", name, raw_value)
            return False, f"The {defn.display_name} '{raw_value}' doesn't look right."

        entry.normalized_value = self._normalize(name, raw_value)
        entry.status = FieldStatus.VALIDATED
        logger.debug("Field '%s' set to '%s'", name, entry.normalized_value)
        return True, f"Got {defn.display_name}: {self.display_value(name)}"

    def type_phone(self, current: str, keystrokes: str) -> str:
        """Phone input filter: digits only, never longer than the required length."""
        candidate = normalize_phone(current + keystrokes)
        if len(candidate) > settings.rules.phone_digits:
            return current
        return candidate

    def select_slot(self, day: str, slot: str) -> None:
        """Record a date and time picked from the calendar."""
        self.set_field("booking_date", day)
        self.set_field("booking_time", slot)

    def clear_slot(self) -> None:
        """Forget the picked date and time, e.g. after the slot was taken."""
        for name in ("booking_date", "booking_time"):
            self.fields[name] = FieldValue()

    def prefill(self, profile: CustomerProfile) -> None:
        """Fill name and phone from a stored customer or login display name."""
        if profile.name:
            self.set_field("name", profile.name)
        if profile.phone:
            self.set_field("phone", profile.phone)

    def confirm_all(self) -> None:
        """Mark validated fields as confirmed after the customer approves the summary."""
        for entry in self.fields.values():
            if entry.status == FieldStatus.VALIDATED:
                entry.status = FieldStatus.CONFIRMED
        logger.info("Booking form confirmed")

    def unconfirm_all(self) -> None:
        """Back to editing: confirmed fields return to validated."""
        for entry in self.fields.values():
            if entry.status == FieldStatus.CONFIRMED:
                entry.status = FieldStatus.VALIDATED

    def display_value(self, name: str) -> Optional[str]:
        value = self.fields[name].normalized_value
        if value is not None and name == "service_type":
            return get_service_label(value)
        return value

    def confirmation_summary(self) -> str:
        """Read-back text for the confirmation step."""
        lines = []
        for defn in self.FIELD_DEFINITIONS:
            if not defn.in_summary:
                continue
            value = self.display_value(defn.name)
            if value:
                lines.append(f"  {defn.display_name}: {value}")
        return "Please check your booking:\n" + "\n".join(lines)

    def get_missing_fields(self) -> list[FieldDefinition]:
        """Required fields not yet holding a valid value."""
        filled = {FieldStatus.VALIDATED, FieldStatus.CONFIRMED}
        return [
            defn
            for defn in self.FIELD_DEFINITIONS
            if defn.required and self.fields[defn.name].status not in filled
        ]

    def get_next_missing(self) -> Optional[FieldDefinition]:
        missing = self.get_missing_fields()
        return missing[0] if missing else None

    def is_complete(self) -> bool:
        return not self.get_missing_fields()

    def all_confirmed(self) -> bool:
        return all(
            self.fields[d.name].status == FieldStatus.CONFIRMED
            for d in self.FIELD_DEFINITIONS
            if d.required
        )

    def get_value(self, name: str) -> Optional[str]:
        return self.fields[name].normalized_value

    def to_dict(self) -> dict[str, Any]:
        """Export collected values as a flat dict."""
        return {
            d.name: self.fields[d.name].normalized_value
            for d in self.FIELD_DEFINITIONS
            if self.fields[d.name].normalized_value is not None
        }

    def to_draft(self, profile: CustomerProfile) -> BookingDraft:
        """
        Build the submission draft.

        Raises:
            ValueError: required fields are missing or invalid.
        """
        missing = self.get_missing_fields()
        if missing:
            names = ", ".join(d.display_name for d in missing)
            raise ValueError(f"Booking form incomplete: {names}")
        values = self.to_dict()
        return BookingDraft(
            user_id=profile.user_id,
            member_code=profile.member_code,
            date=values["booking_date"],
            time=values["booking_time"],
            name=values["name"],
            phone=values["phone"],
            service_type=values["service_type"],
            remove_gel=values["remove_gel"] == "yes",
            display_name=profile.display_name or None,
        )
