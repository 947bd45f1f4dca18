"""
Owned booking session: the only place booking state is held and mutated.

One ``BookingSession`` is created per customer session. Every mutation goes
through ``dispatch``, which runs the pure reducer and notifies subscribers
once the new snapshot is in place.
"""

import itertools
import logging
import uuid
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from rental_booking.booking.reducer import reduce
from rental_booking.booking.state import (
    Action,
    ActionType,
    BookingState,
    initial_state,
    upload_key,
)

logger = logging.getLogger(__name__)

Listener = Callable[[BookingState], None]

# Oldest entries are dropped past this many recorded transitions.
MAX_HISTORY = 500


@dataclass
class ActionEntry:
    """Recorded history entry for a dispatched action."""
    action_type: ActionType
    dispatched_at: datetime
    step_after: int


class BookingSession:
    """Holds the current ``BookingState`` and serializes mutations to it."""

    def __init__(
        self,
        state: Optional[BookingState] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.session_id = session_id or f"BKS-{uuid.uuid4().hex[:8]}"
        self._state = state if state is not None else initial_state()
        self._listeners: list[Listener] = []
        self._history: deque[ActionEntry] = deque(maxlen=MAX_HISTORY)
        self._upload_sequence = itertools.count(1)

    def get_state(self) -> BookingState:
        return self._state

    @property
    def state(self) -> BookingState:
        return self._state

    def dispatch(self, action: Action) -> BookingState:
        """Apply ``action`` and return the new snapshot."""
        new_state = reduce(self._state, action)
        if new_state is self._state:
            return new_state

        self._state = new_state
        self._history.append(ActionEntry(
            action_type=action.type,
            dispatched_at=datetime.now(timezone.utc),
            step_after=new_state.current_step,
        ))
        for listener in list(self._listeners):
            listener(new_state)
        return new_state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback run after each state change. Returns an unsubscriber."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def next_upload_key(self, driver_index: int) -> str:
        """Unique ``{driver_index}_{sequence}`` key for tracking one upload."""
        return upload_key(driver_index, next(self._upload_sequence))

    def get_history(self) -> list[ActionEntry]:
        """Return the recorded state-changing actions, oldest first."""
        return list(self._history)

    def get_action_trace(self) -> list[str]:
        """Return the ordered list of recorded action names."""
        return [e.action_type.value for e in self._history]
