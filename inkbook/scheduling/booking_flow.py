"""
Finite state machine for a single booking request.

Every request follows a deterministic path through validation,
availability, pricing and persistence. Any step may fail the request,
but only before persistence; once the appointment is stored the request
can only finish as scheduled.

Usage:
    flow = BookingFlow()
    flow.transition(BookingTrigger.INPUT_VALID)
    assert flow.current_state == BookingState.VALIDATED
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class BookingState(str, Enum):
    """All states a booking request can be in."""
    RECEIVED = "received"
    VALIDATED = "validated"
    AVAILABLE = "available"
    PRICED = "priced"
    PERSISTED = "persisted"
    SCHEDULED = "scheduled"
    FAILED = "failed"


class BookingTrigger(str, Enum):
    """Events that cause state transitions."""
    INPUT_VALID = "input_valid"
    INPUT_INVALID = "input_invalid"
    SLOT_FREE = "slot_free"
    SLOT_TAKEN = "slot_taken"
    PRICED = "priced"
    PRICING_FAILED = "pricing_failed"
    STORED = "stored"
    STORE_FAILED = "store_failed"
    NOTIFIED = "notified"
    NOTIFY_FAILED = "notify_failed"


@dataclass(frozen=True)
class Transition:
    """A single valid state transition."""
    from_state: BookingState
    to_state: BookingState
    trigger: BookingTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: BookingState
    entered_at: datetime
    trigger: Optional[BookingTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


class BookingFlow:
    """
    Deterministic state machine for one booking request.

    Terminal states are SCHEDULED and FAILED. A notification failure
    still ends in SCHEDULED because the stored appointment stands.
    """

    TRANSITIONS: list[Transition] = [
        # --- Validation ---
        Transition(BookingState.RECEIVED, BookingState.VALIDATED, BookingTrigger.INPUT_VALID),
        Transition(BookingState.RECEIVED, BookingState.FAILED, BookingTrigger.INPUT_INVALID),

        # --- Availability ---
        Transition(BookingState.VALIDATED, BookingState.AVAILABLE, BookingTrigger.SLOT_FREE),
        Transition(BookingState.VALIDATED, BookingState.FAILED, BookingTrigger.SLOT_TAKEN),
        Transition(BookingState.VALIDATED, BookingState.FAILED, BookingTrigger.STORE_FAILED),

        # --- Pricing ---
        Transition(BookingState.AVAILABLE, BookingState.PRICED, BookingTrigger.PRICED),
        Transition(BookingState.AVAILABLE, BookingState.FAILED, BookingTrigger.PRICING_FAILED),
        Transition(BookingState.AVAILABLE, BookingState.FAILED, BookingTrigger.STORE_FAILED),

        # --- Persistence ---
        Transition(BookingState.PRICED, BookingState.PERSISTED, BookingTrigger.STORED),
        Transition(BookingState.PRICED, BookingState.FAILED, BookingTrigger.SLOT_TAKEN),
        Transition(BookingState.PRICED, BookingState.FAILED, BookingTrigger.STORE_FAILED),

        # --- Notification (best-effort) ---
        Transition(BookingState.PERSISTED, BookingState.SCHEDULED, BookingTrigger.NOTIFIED),
        Transition(BookingState.PERSISTED, BookingState.SCHEDULED, BookingTrigger.NOTIFY_FAILED),
    ]

    TERMINAL_STATES = frozenset({BookingState.SCHEDULED, BookingState.FAILED})

    def __init__(self) -> None:
        self._current_state = BookingState.RECEIVED
        self._history: list[StateEntry] = [
            StateEntry(state=BookingState.RECEIVED, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_state(self) -> BookingState:
        return self._current_state

    def transition(self, trigger: BookingTrigger) -> BookingState:
        """
        Execute a state transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new booking state.

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
                logger.debug(
                    "Booking transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[BookingTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        return self._current_state in self.TERMINAL_STATES
