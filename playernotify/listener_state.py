"""
Listener state management with state machine validation.
"""

import logging
import threading
from enum import Enum
from typing import Optional, Set

log = logging.getLogger("listener_state")


class ListenerState(Enum):
    """Enumeration of the listener states."""

    IDLE = "idle"  # No child process
    ACTIVE = "active"  # A playerctl follow process is running

    def __str__(self) -> str:
        return self.value


class ListenerStateMachine:
    """
    State machine for the now-playing listener.

    The listener cycles between IDLE and ACTIVE for the lifetime of the host.
    Transitions are serialised with a reentrant lock; callers that need to make
    a decision and a transition atomically (check IDLE, spawn, go ACTIVE) hold
    ``lock`` around the whole sequence.
    """

    VALID_TRANSITIONS = {
        ListenerState.IDLE: {
            ListenerState.ACTIVE,  # Spawn confirmed
        },
        ListenerState.ACTIVE: {
            ListenerState.IDLE,  # Child process exited
        },
    }

    def __init__(self, initial_state: ListenerState = ListenerState.IDLE):
        """Initialize state machine with given initial state."""
        self._current_state = initial_state
        self._previous_state: Optional[ListenerState] = None
        self.lock = threading.RLock()

    @property
    def current_state(self) -> ListenerState:
        return self._current_state

    @property
    def previous_state(self) -> Optional[ListenerState]:
        return self._previous_state

    def can_transition_to(self, new_state: ListenerState) -> bool:
        """Check if transition to new state is valid."""
        return new_state in self.VALID_TRANSITIONS.get(self._current_state, set())

    def transition_to(self, new_state: ListenerState, reason: str = "") -> bool:
        """
        Attempt to transition to new state.

        Unlike a playback state, staying in the same listener state is not a
        valid transition: a second ACTIVE would mean a second child process.

        Args:
            new_state: Target state to transition to
            reason: Optional reason for the transition (for logging)

        Returns:
            True if transition was successful, False if invalid
        """
        with self.lock:
            if not self.can_transition_to(new_state):
                log.warning(
                    "Invalid state transition: %s -> %s%s",
                    self._current_state,
                    new_state,
                    f" ({reason})" if reason else "",
                )
                return False

            previous_state = self._current_state
            self._previous_state = previous_state
            self._current_state = new_state

        log.info("State transition: %s -> %s%s", previous_state, new_state, f" ({reason})" if reason else "")
        return True

    def get_valid_transitions(self) -> Set[ListenerState]:
        """Get all valid states that can be transitioned to from current state."""
        return self.VALID_TRANSITIONS.get(self._current_state, set()).copy()
