"""Tests for shared utility functions and the service catalog."""

import random
from datetime import date, datetime

import pytest

from studio_booking.services import (
    get_all_services,
    get_service_details,
    get_service_label,
    match_service,
)
from studio_booking.utils import (
    MEMBER_CODE_ALPHABET,
    generate_member_code,
    normalize_phone,
    parse_date,
    slot_instant,
)


class TestNormalizePhone:
    def test_strips_dashes(self):
        assert normalize_phone("0912-345-678") == "0912345678"

    def test_strips_spaces_and_parentheses(self):
        assert normalize_phone(" (09) 1234 5678 ") == "0912345678"

    def test_drops_plus(self):
        assert normalize_phone("+886 912 345 678") == "886912345678"

    def test_clean_number_unchanged(self):
        assert normalize_phone("0912345678") == "0912345678"


class TestMemberCode:
    def test_shape(self):
        code = generate_member_code()
        assert code.startswith("CN-")
        assert len(code) == 7
        assert all(c in MEMBER_CODE_ALPHABET for c in code[3:])

    def test_no_confusable_characters(self):
        assert not set("IO01") & set(MEMBER_CODE_ALPHABET)

    def test_seeded_rng_is_deterministic(self):
        assert generate_member_code(rng=random.Random(7)) == generate_member_code(rng=random.Random(7))

    def test_custom_prefix_and_length(self):
        code = generate_member_code(prefix="VIP", length=6)
        assert code.startswith("VIP") and len(code) == 9


class TestDates:
    def test_parse_date(self):
        assert parse_date("2024-05-20") == date(2024, 5, 20)

    def test_parse_bad_date(self):
        with pytest.raises(ValueError):
            parse_date("2024-02-30")

    def test_slot_instant(self):
        assert slot_instant(date(2024, 5, 20), "15:30") == datetime(2024, 5, 20, 15, 30)


class TestServices:
    def test_catalog_order(self):
        ids = [s["id"] for s in get_all_services()]
        assert ids[0] == "6_finger_creative"
        assert ids[-1] == "magnetic"
        assert len(ids) == 5

    def test_label_lookup(self):
        assert get_service_label("magnetic") == "貓眼"

    def test_unknown_label_is_raw_id(self):
        assert get_service_label("gift_card") == "gift_card"

    def test_details(self):
        details = get_service_details("10_finger_creative")
        assert details["creative"] is True
        assert get_service_details("nope") is None

    @pytest.mark.parametrize("query,expected", [
        ("1", "6_finger_creative"),
        ("magnetic", "magnetic"),
        ("貓眼", "magnetic"),
        ("the monthly one", "monthly_special"),
        ("9", None),
        ("", None),
    ])
    def test_match_service(self, query, expected):
        assert match_service(query) == expected
