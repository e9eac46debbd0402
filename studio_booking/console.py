"""
Console booking session: the booking page as a text dialogue.

Drives the real identity chain, profile gate, availability resolver,
cutoff filter, form, flow state machine and submitter. With no remote
store configured it runs against a seeded in-memory store and records
notifications instead of sending them.
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Callable, Optional

from studio_booking.booking.availability import AvailabilityResolver, CalendarView
from studio_booking.booking.cutoff import DayState, SelectionFilter, next_month, previous_month
from studio_booking.booking.history import fetch_history
from studio_booking.booking.notification import Notifier, RecordingNotifier
from studio_booking.booking.profile import load_profile, rejection_message
from studio_booking.booking.submission import BookingSubmitter
from studio_booking.config import settings
from studio_booking.errors import SubmissionError
from studio_booking.flow.form import BookingForm
from studio_booking.flow.state_machine import BookingFlowStateMachine, FlowState, FlowTrigger
from studio_booking.identity import IdentityProvider, default_identity_provider
from studio_booking.logging_context import set_session_id
from studio_booking.schemas.customer_schema import CustomerProfile
from studio_booking.services import get_all_services, get_service_details
from studio_booking.store.base import BookingStore
from studio_booking.store.memory import InMemoryStore
from studio_booking.utils import parse_date

logger = logging.getLogger(__name__)

GREEN = "\033[92m"
BLUE = "\033[94m"
RED = "\033[91m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"

DAY_STATE_TEXT = {
    DayState.PAST: "that day has passed",
    DayState.NOT_LOADED: "that day's schedule is not loaded yet",
    DayState.CLOSED: "the studio is closed that day",
    DayState.FULLY_BOOKED: "that day is fully booked",
    DayState.TOO_SOON: "bookings for that day have closed",
}

SET_ALIASES = {
    "name": "name",
    "phone": "phone",
    "service": "service_type",
    "gel": "remove_gel",
    "terms": "agreed_to_terms",
}

FIELD_PROMPTS = {
    "booking_date": "Pick a date (YYYY-MM-DD), 'first' for the earliest open day, or 'next'/'prev' to change month.",
    "booking_time": "Pick a time by number or HH:MM, or 'back' to choose another day.",
    "name": "What name should the booking be under?",
    "phone": "Your mobile number?",
    "service_type": "Which service would you like?",
    "remove_gel": "Do you need existing gel removed? (yes/no)",
    "agreed_to_terms": "Have you read and do you accept the booking terms? (yes)",
}


class ConsoleSession:
    """Runs one visitor's booking page in the terminal."""

    SCENARIOS: dict[str, list[str]] = {
        "booking": [
            "first",
            "1",
            "Lin Mei",
            "0912-345-678",
            "1",
            "no",
            "yes",
            "yes",
            "history",
        ],
        "browse": ["next", "prev", "first", "back", "first", "1"],
    }

    def __init__(
        self,
        store: Optional[BookingStore] = None,
        notifier: Optional[Notifier] = None,
        identity_provider: Optional[IdentityProvider] = None,
        clock: Optional[Callable[[], datetime]] = None,
        selection_filter: Optional[SelectionFilter] = None,
    ) -> None:
        self.clock = clock or datetime.now
        if store is None:
            memory = InMemoryStore()
            memory.seed_demo(self.clock().date())
            store = memory
        self.store = store
        self.notifier = notifier or RecordingNotifier()
        self.identity_provider = identity_provider or default_identity_provider()
        self.resolver = AvailabilityResolver(self.store)
        self.filter = selection_filter or SelectionFilter()
        self.submitter = BookingSubmitter(self.store, self.notifier)
        self.sm = BookingFlowStateMachine()
        self.form = BookingForm()
        self.profile: Optional[CustomerProfile] = None
        now = self.clock()
        self.view = CalendarView(self.resolver, now.year, now.month)
        self.transcript: list[str] = []

    # ------------------------------------------------------------------ #
    # Output
    # ------------------------------------------------------------------ #

    def say(self, text: str) -> None:
        self.transcript.append(text)
        print(f"{GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    # ------------------------------------------------------------------ #
    # Entry points
    # ------------------------------------------------------------------ #

    def run(self) -> None:
        asyncio.run(self._run_interactive())

    def run_scenario(self, scenario: str) -> None:
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return
        asyncio.run(self.play(steps))

    async def play(self, steps: list[str]) -> None:
        """Start the session and feed it scripted input."""
        await self.start()
        for step in steps:
            if self.sm.is_terminal():
                break
            print(f"\n{BLUE}> {RESET}{step}")
            await self.handle(step)
        await self.submitter.drain_notifications()
        self.system_log(f"State trace: {' -> '.join(self.sm.get_state_trace())}")

    async def _run_interactive(self) -> None:
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {settings.studio.name} - Booking{RESET}")
        print(f"{BOLD}  Type 'quit' to exit{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        await self.start()
        while not self.sm.is_terminal():
            text = input(f"\n{BLUE}> {RESET}").strip()
            if not text:
                continue
            if text.lower() in ("quit", "exit", "q"):
                break
            await self.handle(text)
        await self.submitter.drain_notifications()

    # ------------------------------------------------------------------ #
    # Session start
    # ------------------------------------------------------------------ #

    async def start(self) -> None:
        identity = await self.identity_provider.resolve()
        set_session_id(identity.user_id)
        self.system_log(f"Identity: {identity.user_id} (from {identity.source})")

        self.profile = await load_profile(self.store, identity)
        rejection = rejection_message(self.profile)
        if rejection:
            self.sm.transition(FlowTrigger.CUSTOMER_BLACKLISTED)
            self.say(rejection)
            return

        self.form = BookingForm()
        self.form.prefill(self.profile)
        self.sm.transition(FlowTrigger.PROFILE_LOADED)
        greeting = "Welcome back" if self.profile.is_returning else "Welcome"
        self.say(f"{greeting}! Member code: {self.profile.member_code}")

        now = self.clock()
        self.view.show(now.year, now.month)
        await self._load_and_show_calendar()
        self._prompt_next()

    # ------------------------------------------------------------------ #
    # Input dispatch
    # ------------------------------------------------------------------ #

    async def handle(self, text: str) -> None:
        text = text.strip()
        state = self.sm.current_state
        if state == FlowState.BLACKLISTED:
            self.say(settings.studio.rejection_message)
        elif text.lower() == "history":
            await self._show_history()
        elif state == FlowState.FILLING_FORM:
            if text.lower().startswith("set "):
                self._handle_set(text[4:])
            else:
                await self._handle_form_input(text)
        elif state == FlowState.CONFIRMING:
            await self._handle_confirmation(text)
        elif state == FlowState.SUBMITTED:
            if text.lower() in ("again", "new"):
                self.sm.transition(FlowTrigger.START_OVER)
                await self.start()
            else:
                self.say("Type 'history' to see your bookings or 'again' to book another.")
        else:
            self.say("One moment please.")

    # ------------------------------------------------------------------ #
    # Form filling
    # ------------------------------------------------------------------ #

    async def _handle_form_input(self, text: str) -> None:
        nxt = self.form.get_next_missing()
        if nxt is None:
            self._after_field()
            return
        if nxt.name == "booking_date":
            await self._handle_date(text)
        elif nxt.name == "booking_time":
            self._handle_time(text)
        else:
            ok, msg = self._set_form_field(nxt.name, text)
            self.say(msg if ok else f"Sorry, {msg}")
            if ok and nxt.name == "service_type":
                self._show_service_note()
        self._after_field()

    async def _handle_date(self, text: str) -> None:
        lower = text.lower()
        now = self.clock()
        if lower in ("next", "prev"):
            step = next_month if lower == "next" else previous_month
            allowed = (
                self.filter.can_go_next(self.view.year, self.view.month, now)
                if lower == "next"
                else self.filter.can_go_previous(self.view.year, self.view.month, now)
            )
            if not allowed:
                self.say("That month is not open for booking yet." if lower == "next"
                         else "You are already on the current month.")
                return
            self.view.show(*step(self.view.year, self.view.month))
            await self._load_and_show_calendar()
            return

        if lower == "first":
            day = self._first_selectable_day(now)
            if day is None:
                self.say("No open days left this month. Try 'next'.")
                return
        else:
            try:
                day = parse_date(text)
            except ValueError:
                self.say(f"Sorry, '{text}' is not a date like 2024-05-20.")
                return

        state = self.filter.classify_day(day, self.view.get_day(day), now)
        if state != DayState.OPEN:
            self.say(f"Sorry, {DAY_STATE_TEXT[state]}.")
            return
        self.form.set_field("booking_date", day.isoformat())
        slots = self.filter.offerable_slots(self.view.get_day(day), now)
        listed = "  ".join(f"{i}) {s}" for i, s in enumerate(slots, 1))
        self.say(f"{day.isoformat()} available times: {listed}")

    def _handle_time(self, text: str) -> None:
        if text.lower() == "back":
            self.form.clear_slot()
            self._show_calendar()
            return
        day = parse_date(self.form.get_value("booking_date") or "")
        slots = self.filter.offerable_slots(self.view.get_day(day), self.clock())
        choice = text
        if text.isdigit() and 1 <= int(text) <= len(slots):
            choice = slots[int(text) - 1]
        if choice not in slots:
            self.say(f"Sorry, {text} is not one of the available times.")
            return
        self.form.select_slot(day.isoformat(), choice)
        self.say(f"Selected: {day.isoformat()} {choice}")

    def _handle_set(self, text: str) -> None:
        key, _, value = text.strip().partition(" ")
        if key in ("date", "time"):
            self.form.clear_slot()
            self._show_calendar()
            self._prompt_next()
            return
        field_name = SET_ALIASES.get(key)
        if field_name is None:
            valid = ", ".join(sorted(list(SET_ALIASES) + ["date", "time"]))
            self.say(f"Unknown field '{key}'. Valid: {valid}.")
            return
        ok, msg = self._set_form_field(field_name, value)
        self.say(msg if ok else f"Sorry, {msg}")
        self._after_field()

    def _set_form_field(self, name: str, value: str) -> tuple[bool, str]:
        if name == "phone":
            value = self._type_phone(value)
        return self.form.set_field(name, value)

    def _type_phone(self, text: str) -> str:
        """Replay the entry through the phone input filter, one keystroke at a time."""
        typed = ""
        for key in text:
            typed = self.form.type_phone(typed, key)
        return typed

    def _after_field(self) -> None:
        if self.form.is_complete():
            self.sm.transition(FlowTrigger.FORM_COMPLETED)
            self._show_confirmation()
        else:
            self._prompt_next()

    def _prompt_next(self) -> None:
        nxt = self.form.get_next_missing()
        if nxt is None:
            return
        if nxt.name == "service_type":
            listed = "  ".join(f"{i}) {s['label']}" for i, s in enumerate(get_all_services(), 1))
            self.say(f"{FIELD_PROMPTS[nxt.name]} {listed}")
        else:
            self.say(FIELD_PROMPTS[nxt.name])

    def _show_service_note(self) -> None:
        details = get_service_details(self.form.get_value("service_type") or "")
        if details and details.get("note"):
            self.system_log(details["note"])

    # ------------------------------------------------------------------ #
    # Confirmation and submission
    # ------------------------------------------------------------------ #

    def _show_confirmation(self) -> None:
        self.say(self.form.confirmation_summary() + "\n\nSubmit this booking? (yes/no)")

    async def _handle_confirmation(self, text: str) -> None:
        lower = text.lower()
        if lower in ("yes", "y", "ok", "confirm"):
            await self._submit()
            return
        if lower in ("no", "n", "edit"):
            self.sm.transition(FlowTrigger.EDIT_REQUESTED)
            self.form.unconfirm_all()
            self.say("No problem. Use 'set <field> <value>' to change a detail, then send anything to review.")
            return
        self.say("Please answer yes or no.")

    async def _submit(self) -> None:
        if self.profile is None:
            raise RuntimeError("Cannot submit before the session has started")
        self.sm.transition(FlowTrigger.SUBMIT_CONFIRMED)
        self.form.confirm_all()
        draft = self.form.to_draft(self.profile)
        try:
            result = await self.submitter.submit(draft)
        except SubmissionError as e:
            logger.warning("Submission failed: %s", e)
            self.sm.transition(FlowTrigger.SUBMIT_FAILED)
            self.form.unconfirm_all()
            self.form.clear_slot()
            self.say(settings.studio.failure_message)
            await self._load_and_show_calendar()
            self._prompt_next()
            return

        self.sm.transition(FlowTrigger.SUBMIT_SUCCEEDED)
        self.system_log(f"Booking id: {result.booking_id}")
        self.say(
            f"Thank you, your booking on {draft.date} at {draft.time} is confirmed. "
            f"Member code: {draft.member_code}"
        )
        await self.view.load()

    # ------------------------------------------------------------------ #
    # Calendar and history
    # ------------------------------------------------------------------ #

    async def _load_and_show_calendar(self) -> None:
        await self.view.load()
        self._show_calendar()

    def _show_calendar(self) -> None:
        if self.view.load_error:
            self.say(f"Cannot load schedule: {self.view.load_error}")
            return
        now = self.clock()
        lines = [f"{self.view.year:04d}-{self.view.month:02d}"]
        for entry in self.view.month_days():
            if entry is None:
                continue
            day = parse_date(entry.date)
            if self.filter.classify_day(day, entry, now) == DayState.OPEN:
                slots = " ".join(self.filter.offerable_slots(entry, now))
                lines.append(f"  {entry.date} {day.strftime('%a')}  {slots}")
        if len(lines) == 1:
            lines.append("  No bookable days.")
        self.say("\n".join(lines))

    def _first_selectable_day(self, now: datetime) -> Optional[date]:
        for entry in self.view.month_days():
            if entry is None:
                continue
            day = parse_date(entry.date)
            if self.filter.is_day_selectable(day, entry, now):
                return day
        return None

    async def _show_history(self) -> None:
        if self.profile is None:
            return
        entries = await fetch_history(self.store, self.profile.user_id, self.clock().date())
        if not entries:
            self.say("No bookings yet.")
            return
        lines = ["Your bookings:"]
        for e in entries:
            gel = " (gel removal)" if e.booking.remove_gel else ""
            lines.append(
                f"  {e.booking.booking_date} {e.booking.booking_time}  "
                f"{e.service_label}{gel}  [{e.status.value}]"
            )
        self.say("\n".join(lines))
