"""
Step navigation policy layered on a booking session.

Backward navigation is always free; forward navigation is limited to one
step past the highest completed step. Completing a step requires its
validation gate to pass.
"""

import logging
from datetime import date, datetime
from typing import Callable

from rental_booking.booking.session import BookingSession
from rental_booking.booking.state import FIRST_STEP, LAST_STEP, Action, ActionType
from rental_booking.booking.validation import StepValidation, get_step_validation

logger = logging.getLogger(__name__)


class WizardController:
    """Gates which steps a customer may visit and when they advance."""

    def __init__(
        self,
        session: BookingSession,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._session = session
        self._clock = clock

    def _today(self) -> date:
        return self._clock().date()

    def can_go_to_step(self, step: int) -> bool:
        if step < FIRST_STEP or step > LAST_STEP:
            return False
        state = self._session.get_state()
        if step == FIRST_STEP:
            return True
        if step <= state.current_step:
            return True
        return step <= state.max_completed_step + 1

    def go_to_step(self, step: int) -> bool:
        if not self.can_go_to_step(step):
            logger.debug("Step %d is not reachable yet", step)
            return False
        self._session.dispatch(Action(ActionType.SET_STEP, step))
        return True

    def get_step_validation(self, step: int) -> StepValidation:
        return get_step_validation(self._session.get_state(), step, self._today())

    def complete_step(self, step: int) -> StepValidation:
        """Mark ``step`` complete if its gate passes."""
        validation = self.get_step_validation(step)
        if validation.is_valid:
            self._session.dispatch(Action(ActionType.SET_MAX_COMPLETED_STEP, step))
        else:
            logger.debug("Step %d incomplete: %s", step, validation.errors)
        return validation

    def next_step(self) -> bool:
        """Advance one step. Only allowed once the current step is complete."""
        state = self._session.get_state()
        if state.current_step >= LAST_STEP:
            return False
        if state.max_completed_step < state.current_step:
            logger.debug("Cannot advance: step %d not complete", state.current_step)
            return False
        self._session.dispatch(Action(ActionType.SET_STEP, state.current_step + 1))
        return True

    def prev_step(self) -> bool:
        state = self._session.get_state()
        if state.current_step <= FIRST_STEP:
            return False
        self._session.dispatch(Action(ActionType.SET_STEP, state.current_step - 1))
        return True
