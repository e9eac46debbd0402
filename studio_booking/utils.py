"""Shared utilities used across the booking package."""

import random
import re
from datetime import date, datetime, time
from typing import Optional

# Confusable characters (I, O, 0, 1) are left out.
MEMBER_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def normalize_phone(value: str) -> str:
    """Keep only the digits of a phone number.

    Examples:
        >>> normalize_phone("0912-345-678")
        '0912345678'
        >>> normalize_phone(" (09) 1234 5678 ")
        '0912345678'
    """
    return re.sub(r"[^\d]", "", value.strip())


def generate_member_code(
    prefix: str = "CN-", length: int = 4, rng: Optional[random.Random] = None
) -> str:
    """Generate a short human-facing member code such as ``CN-7KQ2``."""
    chooser = rng or random
    return prefix + "".join(chooser.choice(MEMBER_CODE_ALPHABET) for _ in range(length))


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` calendar-day identifier."""
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def parse_slot(value: str) -> time:
    """Parse an ``HH:MM`` slot identifier."""
    return datetime.strptime(value.strip(), "%H:%M").time()


def slot_instant(day: date, slot: str) -> datetime:
    """Combine a calendar day and a slot into a naive local datetime."""
    return datetime.combine(day, parse_slot(slot))
