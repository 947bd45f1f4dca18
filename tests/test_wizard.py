"""Tests for wizard step navigation."""

from dataclasses import replace

import pytest

from rental_booking.booking.session import BookingSession
from rental_booking.booking.state import initial_state
from rental_booking.booking.wizard import WizardController
from rental_booking.schemas.vehicle_schema import Vehicle
from tests.conftest import fixed_clock, make_search


def make_wizard(**state_fields) -> WizardController:
    session = BookingSession(state=replace(initial_state(), **state_fields))
    return WizardController(session, clock=fixed_clock)


class TestCanGoToStep:
    def test_step_three_of_two_completed(self):
        wizard = make_wizard(current_step=3, max_completed_step=2)
        assert [n for n in range(1, 6) if wizard.can_go_to_step(n)] == [1, 2, 3]

    def test_one_step_peek_after_completion(self):
        wizard = make_wizard(current_step=3, max_completed_step=3)
        assert [n for n in range(1, 6) if wizard.can_go_to_step(n)] == [1, 2, 3, 4]

    def test_fresh_wizard(self):
        wizard = make_wizard()
        assert wizard.can_go_to_step(1)
        assert not wizard.can_go_to_step(2)

    @pytest.mark.parametrize("step", [0, 6, -1])
    def test_out_of_range(self, step):
        assert not make_wizard(current_step=5, max_completed_step=5).can_go_to_step(step)

    def test_back_navigation_keeps_forward_reach(self):
        wizard = make_wizard(current_step=1, max_completed_step=4)
        assert wizard.can_go_to_step(5)


class TestGoToStep:
    def test_blocked_step_leaves_state(self):
        wizard = make_wizard(current_step=2, max_completed_step=1)
        assert not wizard.go_to_step(4)
        assert wizard._session.get_state().current_step == 2

    def test_allowed_step(self):
        wizard = make_wizard(current_step=3, max_completed_step=3)
        assert wizard.go_to_step(4)
        assert wizard._session.get_state().current_step == 4


class TestNextPrev:
    def test_next_requires_current_step_complete(self):
        wizard = make_wizard(current_step=2, max_completed_step=1)
        assert not wizard.next_step()

    def test_next_after_complete(self):
        wizard = make_wizard(current_step=2, max_completed_step=2)
        assert wizard.next_step()
        assert wizard._session.get_state().current_step == 3

    def test_next_at_last_step(self):
        assert not make_wizard(current_step=5, max_completed_step=5).next_step()

    def test_prev(self):
        wizard = make_wizard(current_step=3, max_completed_step=2)
        assert wizard.prev_step()
        assert wizard._session.get_state().current_step == 2

    def test_prev_at_first_step(self):
        assert not make_wizard().prev_step()


class TestCompleteStep:
    def test_complete_raises_max_completed(self):
        wizard = make_wizard(search=make_search(), selected_location="1")
        assert wizard.complete_step(1).is_valid
        assert wizard._session.get_state().max_completed_step == 1

    def test_failed_gate_leaves_max_completed(self):
        wizard = make_wizard(current_step=2, max_completed_step=1)
        validation = wizard.complete_step(2)
        assert not validation.is_valid
        assert validation.errors == ["Please select a vehicle"]
        assert wizard._session.get_state().max_completed_step == 1

    def test_vehicle_gate(self):
        wizard = make_wizard(current_step=2, max_completed_step=1,
                             selected_vehicle=Vehicle(id="1", brand="VW", mark="Golf"))
        assert wizard.get_step_validation(2).is_valid
