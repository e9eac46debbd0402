"""Tests for the customer upsert + booking insert + notification transaction."""

import pytest

from studio_booking.booking.submission import (
    BookingSubmitter,
    build_booking_payload,
    build_customer_payload,
)
from studio_booking.errors import (
    BookingWriteError,
    CustomerWriteError,
    NotificationError,
    SubmissionError,
)
from studio_booking.store.memory import InMemoryStore

from tests.conftest import FailingStore, book, make_draft


class ExplodingNotifier:
    async def send(self, payload):
        raise NotificationError("webhook down")


class TestPayloads:
    def test_customer_payload_with_member_code(self):
        payload = build_customer_payload(make_draft(member_code="CN-ABCD"))
        assert payload["member_code"] == "CN-ABCD"
        assert payload["user_id"] == "U0001"
        assert "updated_at" in payload

    def test_customer_payload_omits_empty_member_code(self):
        payload = build_customer_payload(make_draft(member_code=""))
        assert "member_code" not in payload

    def test_customer_payload_never_touches_blacklist(self):
        assert "is_blacklisted" not in build_customer_payload(make_draft())

    def test_booking_payload(self):
        payload = build_booking_payload(make_draft())
        assert payload["status"] == "confirmed"
        assert payload["modification_count"] == 0
        assert payload["customer_name_snapshot"] == "Lin Mei"
        assert payload["customer_phone_snapshot"] == "0912345678"
        assert payload["booking_date"] == "2024-05-20"
        assert payload["booking_time"] == "15:30"
        assert payload["remove_gel"] is True


class TestSubmit:
    @pytest.mark.asyncio
    async def test_new_customer_and_booking_created(self, store, submitter):
        result = await submitter.submit(make_draft())
        assert result.success is True
        assert result.booking_id

        row = store.customer_row("U0001")
        assert row["member_code"] == "CN-ABCD"
        assert row["is_blacklisted"] is False

        bookings = await store.list_bookings("U0001")
        assert len(bookings) == 1
        assert bookings[0].status == "confirmed"
        assert bookings[0].service_type == "magnetic"

    @pytest.mark.asyncio
    async def test_returning_customer_details_refreshed(self):
        store = InMemoryStore(customers=[
            {"user_id": "U0001", "name": "Old Name", "phone": "0900000000", "member_code": "CN-OLD1"},
        ])
        await BookingSubmitter(store, ExplodingNotifier()).submit(
            make_draft(name="New Name", phone="0911111111", member_code="CN-OLD1")
        )
        row = store.customer_row("U0001")
        assert row["name"] == "New Name"
        assert row["phone"] == "0911111111"
        assert row["member_code"] == "CN-OLD1"

    @pytest.mark.asyncio
    async def test_empty_member_code_never_clears_stored_code(self):
        store = InMemoryStore(customers=[{"user_id": "U0001", "member_code": "CN-KEEP"}])
        submitter = BookingSubmitter(store, ExplodingNotifier())
        await submitter.submit(make_draft(member_code=""))
        assert store.customer_row("U0001")["member_code"] == "CN-KEEP"

    @pytest.mark.asyncio
    async def test_blacklist_flag_untouched(self):
        store = InMemoryStore(customers=[{"user_id": "U0001", "is_blacklisted": True}])
        await BookingSubmitter(store, ExplodingNotifier()).submit(make_draft())
        assert store.customer_row("U0001")["is_blacklisted"] is True

    @pytest.mark.asyncio
    async def test_customer_write_failure_aborts_before_booking(self, notifier):
        store = FailingStore(fail_on=("upsert_customer",))
        submitter = BookingSubmitter(store, notifier)
        with pytest.raises(CustomerWriteError):
            await submitter.submit(make_draft())
        assert await store.list_bookings("U0001") == []
        await submitter.drain_notifications()
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_booking_write_failure_keeps_customer(self, notifier):
        store = FailingStore(fail_on=("insert_booking",))
        submitter = BookingSubmitter(store, notifier)
        with pytest.raises(BookingWriteError):
            await submitter.submit(make_draft())
        assert store.customer_row("U0001") is not None
        await submitter.drain_notifications()
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_taken_slot_rejected_by_store(self, store, submitter):
        await book(store, "2024-05-20", "15:30")
        with pytest.raises(BookingWriteError):
            await submitter.submit(make_draft())

    @pytest.mark.asyncio
    async def test_write_errors_are_submission_errors(self):
        store = FailingStore(fail_on=("upsert_customer",))
        with pytest.raises(SubmissionError):
            await BookingSubmitter(store, ExplodingNotifier()).submit(make_draft())


class TestNotification:
    @pytest.mark.asyncio
    async def test_notification_payload(self, submitter, notifier):
        result = await submitter.submit(make_draft(display_name="Mei ✿"))
        await submitter.drain_notifications()
        assert len(notifier.sent) == 1
        payload = notifier.sent[0]
        assert payload["booking_id"] == result.booking_id
        assert payload["service_label"] == "貓眼"
        assert payload["member_code"] == "CN-ABCD"
        assert payload["display_name"] == "Mei ✿"
        assert payload["remove_gel"] is True

    @pytest.mark.asyncio
    async def test_display_name_falls_back_to_entered_name(self, submitter, notifier):
        await submitter.submit(make_draft(display_name=None))
        await submitter.drain_notifications()
        assert notifier.sent[0]["display_name"] == "Lin Mei"

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_submission(self, store):
        submitter = BookingSubmitter(store, ExplodingNotifier())
        result = await submitter.submit(make_draft())
        await submitter.drain_notifications()
        assert result.success is True
        assert len(await store.list_bookings("U0001")) == 1
