"""
Finite state machine for the booking page.

LOADING -> BLACKLISTED (terminal) | FILLING_FORM -> CONFIRMING ->
SUBMITTING -> SUBMITTED -> LOADING, with a way back to the form from
confirmation (edit) and from submission (failure, retry).

Usage:
    sm = BookingFlowStateMachine()
    sm.transition(FlowTrigger.PROFILE_LOADED)
    assert sm.current_state == FlowState.FILLING_FORM
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from studio_booking.errors import InvalidTransitionError

logger = logging.getLogger(__name__)


class FlowState(str, Enum):
    """All states of the booking page."""
    LOADING = "loading"
    BLACKLISTED = "blacklisted"
    FILLING_FORM = "filling_form"
    CONFIRMING = "confirming"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


class FlowTrigger(str, Enum):
    """Events that cause state transitions."""
    PROFILE_LOADED = "profile_loaded"
    CUSTOMER_BLACKLISTED = "customer_blacklisted"
    FORM_COMPLETED = "form_completed"
    EDIT_REQUESTED = "edit_requested"
    SUBMIT_CONFIRMED = "submit_confirmed"
    SUBMIT_SUCCEEDED = "submit_succeeded"
    SUBMIT_FAILED = "submit_failed"
    START_OVER = "start_over"


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: FlowState
    to_state: FlowState
    trigger: FlowTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: FlowState
    entered_at: datetime
    trigger: Optional[FlowTrigger] = None


class BookingFlowStateMachine:
    """Deterministic page flow. Unknown transitions raise InvalidTransitionError."""

    TRANSITIONS: list[Transition] = [
        # --- Loading the visitor ---
        Transition(FlowState.LOADING, FlowState.FILLING_FORM, FlowTrigger.PROFILE_LOADED),
        Transition(FlowState.LOADING, FlowState.BLACKLISTED, FlowTrigger.CUSTOMER_BLACKLISTED),

        # --- Form and confirmation gate ---
        Transition(FlowState.FILLING_FORM, FlowState.CONFIRMING, FlowTrigger.FORM_COMPLETED),
        Transition(FlowState.CONFIRMING, FlowState.FILLING_FORM, FlowTrigger.EDIT_REQUESTED),
        Transition(FlowState.CONFIRMING, FlowState.SUBMITTING, FlowTrigger.SUBMIT_CONFIRMED),

        # --- Submission result ---
        Transition(FlowState.SUBMITTING, FlowState.SUBMITTED, FlowTrigger.SUBMIT_SUCCEEDED),
        Transition(FlowState.SUBMITTING, FlowState.FILLING_FORM, FlowTrigger.SUBMIT_FAILED),

        # --- Back to the start page ---
        Transition(FlowState.SUBMITTED, FlowState.LOADING, FlowTrigger.START_OVER),
    ]

    TERMINAL_STATES = frozenset({FlowState.BLACKLISTED})

    def __init__(self) -> None:
        self._current_state = FlowState.LOADING
        self._history: list[StateEntry] = [
            StateEntry(state=FlowState.LOADING, entered_at=datetime.now(timezone.utc))
        ]
        self._failure_count: int = 0

    @property
    def current_state(self) -> FlowState:
        return self._current_state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def transition(self, trigger: FlowTrigger) -> FlowState:
        """
        Execute a state transition.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state
                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))
                if trigger == FlowTrigger.SUBMIT_FAILED:
                    self._failure_count += 1
                logger.debug(
                    "Flow transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[FlowTrigger]:
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        return self._current_state in self.TERMINAL_STATES
