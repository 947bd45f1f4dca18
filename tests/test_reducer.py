"""Tests for the booking reducer."""

from dataclasses import replace
from datetime import date

import pytest

from rental_booking.booking.reducer import reduce
from rental_booking.booking.state import Action, ActionType, BookingState, initial_state
from rental_booking.schemas.driver_schema import Driver
from rental_booking.schemas.order_schema import PaymentMethod, UploadedFile
from rental_booking.schemas.vehicle_schema import Location, Vehicle
from tests.conftest import make_driver, make_search


def act(action_type: ActionType, payload=None) -> Action:
    return Action(action_type, payload)


def uploaded(file_id: int) -> UploadedFile:
    return UploadedFile(status="success", id=file_id, url=f"https://files/{file_id}", name=f"{file_id}.jpg")


@pytest.fixture
def state() -> BookingState:
    return initial_state()


class TestInitialState:
    def test_starts_at_step_one_with_one_empty_driver(self, state):
        assert state.current_step == 1
        assert state.max_completed_step == 0
        assert state.drivers == (Driver(),)

    def test_defaults(self, state):
        assert state.payment_method == PaymentMethod.CARD
        assert state.loading_locations
        assert state.order_id is None
        assert state.vehicles is None


class TestUnknownAndMalformed:
    def test_unknown_action_is_identity(self, state):
        assert reduce(state, Action("not_an_action")) is state

    def test_non_action_is_identity(self, state):
        assert reduce(state, None) is state

    def test_malformed_payload_is_identity(self, state):
        assert reduce(state, act(ActionType.UPDATE_DRIVER, {"index": 0})) is state
        assert reduce(state, act(ActionType.SET_STEP, "three")) is state
        assert reduce(state, act(ActionType.SET_PAYMENT_METHOD, "bitcoin")) is state

    def test_unknown_driver_field_is_identity(self, state):
        payload = {"index": 0, "field": "shoe_size", "value": 42}
        assert reduce(state, act(ActionType.UPDATE_DRIVER, payload)) is state


class TestNavigation:
    def test_set_step_is_unconditional(self, state):
        assert reduce(state, act(ActionType.SET_STEP, 5)).current_step == 5

    def test_set_step_is_idempotent(self, state):
        once = reduce(state, act(ActionType.SET_STEP, 3))
        twice = reduce(once, act(ActionType.SET_STEP, 3))
        assert once == twice

    def test_max_completed_step_never_decreases(self, state):
        state = reduce(state, act(ActionType.SET_MAX_COMPLETED_STEP, 3))
        state = reduce(state, act(ActionType.SET_MAX_COMPLETED_STEP, 1))
        assert state.max_completed_step == 3

    def test_does_not_mutate_input(self, state):
        reduce(state, act(ActionType.SET_STEP, 4))
        assert state.current_step == 1


class TestDrivers:
    def test_update_driver_replaces_one_field(self, state):
        state = reduce(state, act(ActionType.ADD_DRIVER))
        new = reduce(state, act(ActionType.UPDATE_DRIVER, {"index": 1, "field": "email", "value": "a@b.ch"}))
        assert new.drivers[1].email == "a@b.ch"
        assert new.drivers[0] is state.drivers[0]
        assert state.drivers[1].email == ""

    def test_update_driver_out_of_range(self, state):
        payload = {"index": 3, "field": "email", "value": "a@b.ch"}
        assert reduce(state, act(ActionType.UPDATE_DRIVER, payload)) is state

    def test_add_driver_appends_empty(self, state):
        state = reduce(state, act(ActionType.ADD_DRIVER))
        assert len(state.drivers) == 2
        assert state.drivers[1] == Driver()

    def test_remove_driver_on_single_driver_is_noop(self, state):
        new = reduce(state, act(ActionType.REMOVE_DRIVER, 0))
        assert new == state

    def test_remove_driver(self, state):
        state = reduce(state, act(ActionType.SET_DRIVERS, [
            make_driver(first_name="A"), make_driver(first_name="B"), make_driver(first_name="C"),
        ]))
        state = reduce(state, act(ActionType.REMOVE_DRIVER, 1))
        assert [d.first_name for d in state.drivers] == ["A", "C"]

    def test_remove_driver_shifts_uploaded_files(self, state):
        state = reduce(state, act(ActionType.SET_DRIVERS, [make_driver(), make_driver(), make_driver()]))
        state = reduce(state, act(ActionType.SET_UPLOADED_FILES, {0: [uploaded(1)], 1: [uploaded(2)], 2: [uploaded(3)]}))
        state = reduce(state, act(ActionType.REMOVE_DRIVER, 1))
        assert {i: [f.id for f in files] for i, files in state.uploaded_files.items()} == {0: [1], 1: [3]}

    def test_remove_driver_shifts_upload_keys(self, state):
        state = reduce(state, act(ActionType.SET_DRIVERS, [make_driver(), make_driver(), make_driver()]))
        state = reduce(state, act(ActionType.SET_UPLOAD_ERROR, {"key": "1_4", "error": "Too big"}))
        state = reduce(state, act(ActionType.SET_UPLOAD_ERROR, {"key": "2_5", "error": "Blurry"}))
        state = reduce(state, act(ActionType.SET_UPLOADING_FILE, {"key": "1_6", "uploading": True}))
        state = reduce(state, act(ActionType.SET_UPLOADING_FILE, {"key": "0_7", "uploading": True}))
        state = reduce(state, act(ActionType.REMOVE_DRIVER, 1))
        assert state.upload_errors == {"1_5": "Blurry"}
        assert state.uploading_files == {"0_7": True}

    def test_update_driver_accepts_date_value(self, state):
        payload = {"index": 0, "field": "birthday", "value": date(1990, 5, 10)}
        assert reduce(state, act(ActionType.UPDATE_DRIVER, payload)).head_driver.birthday == "1990-05-10"

    def test_update_driver_rejects_wrong_type(self, state):
        payload = {"index": 0, "field": "first_name", "value": ["Anna"]}
        assert reduce(state, act(ActionType.UPDATE_DRIVER, payload)) is state

    def test_remove_driver_bad_index(self, state):
        state = reduce(state, act(ActionType.ADD_DRIVER))
        assert reduce(state, act(ActionType.REMOVE_DRIVER, 7)) is state

    def test_set_drivers_ignores_empty_list(self, state):
        assert reduce(state, act(ActionType.SET_DRIVERS, [])) is state


class TestUploads:
    def test_uploading_keys_are_independent(self, state):
        state = reduce(state, act(ActionType.SET_UPLOADING_FILE, {"key": "0_1", "uploading": True}))
        state = reduce(state, act(ActionType.SET_UPLOADING_FILE, {"key": "1_2", "uploading": True}))
        state = reduce(state, act(ActionType.SET_UPLOADING_FILE, {"key": "0_1", "uploading": False}))
        assert state.uploading_files == {"1_2": True}
        assert state.is_uploading

    def test_add_and_remove_uploaded_file(self, state):
        state = reduce(state, act(ActionType.ADD_UPLOADED_FILE, {"driver_index": 0, "file": uploaded(1)}))
        state = reduce(state, act(ActionType.ADD_UPLOADED_FILE, {"driver_index": 0, "file": uploaded(2)}))
        state = reduce(state, act(ActionType.REMOVE_UPLOADED_FILE, {"driver_index": 0, "file_index": 0}))
        assert [f.id for f in state.uploaded_files[0]] == [2]
        state = reduce(state, act(ActionType.REMOVE_UPLOADED_FILE, {"driver_index": 0, "file_index": 0}))
        assert 0 not in state.uploaded_files

    def test_upload_error_set_and_clear(self, state):
        state = reduce(state, act(ActionType.SET_UPLOAD_ERROR, {"key": "0_1", "error": "too big"}))
        assert state.upload_errors == {"0_1": "too big"}
        state = reduce(state, act(ActionType.SET_UPLOAD_ERROR, {"key": "0_1", "error": None}))
        assert state.upload_errors == {}


def populated_state() -> BookingState:
    vehicle = Vehicle(id="101", brand="VW", mark="Golf")
    return replace(
        initial_state(),
        current_step=5,
        max_completed_step=4,
        locations=(Location(id=1, name="Zurich Airport"),),
        loading_locations=False,
        selected_location="1",
        search=make_search(),
        vehicles=(vehicle,),
        selected_vehicle=vehicle,
        order_id="ORD-1",
        drivers=(make_driver(), make_driver()),
        uploaded_files={0: (uploaded(1),)},
        selected_insurance=1001,
        terms_accepted=True,
        confirmation_error="boom",
        payment_method=PaymentMethod.CASH,
        payment_url="https://pay/x",
    )


class TestResets:
    def test_start_new_search_clears_downstream(self):
        new_search = make_search(pickup_location="2", return_location="2")
        state = reduce(populated_state(), act(ActionType.START_NEW_SEARCH, new_search))
        assert state.current_step == 1
        assert state.max_completed_step == 0
        assert state.search == new_search
        assert state.vehicles is None
        assert state.selected_vehicle is None
        assert state.order_id is None
        assert state.drivers == (Driver(),)
        assert state.uploaded_files == {}
        assert state.selected_insurance is None
        assert not state.terms_accepted
        assert state.confirmation_error is None
        assert state.payment_method == PaymentMethod.CARD
        assert state.payment_url is None

    def test_start_new_search_keeps_locations(self):
        state = reduce(populated_state(), act(ActionType.START_NEW_SEARCH))
        assert len(state.locations) == 1
        assert state.selected_location == "1"
        assert state.search == make_search()

    def test_reset_booking_keeps_only_locations(self):
        state = reduce(populated_state(), act(ActionType.RESET_BOOKING))
        assert state == replace(
            initial_state(),
            locations=(Location(id=1, name="Zurich Airport"),),
            loading_locations=False,
            selected_location="1",
        )


class TestSimpleSetters:
    @pytest.mark.parametrize("action_type,attr,value", [
        (ActionType.SET_SELECTED_LOCATION, "selected_location", "2"),
        (ActionType.SET_SEARCH_ERROR, "search_error", "No vehicles"),
        (ActionType.SET_IS_SEARCHING, "is_searching", True),
        (ActionType.SET_ORDER_ID, "order_id", "ORD-9"),
        (ActionType.SET_ORDER_ERROR, "order_error", "failed"),
        (ActionType.SET_IS_CREATING_ORDER, "is_creating_order", True),
        (ActionType.SET_SELECTED_INSURANCE, "selected_insurance", 1003),
        (ActionType.SET_TERMS_ACCEPTED, "terms_accepted", True),
        (ActionType.SET_IS_UPDATING_ORDER, "is_updating_order", True),
        (ActionType.SET_IS_CONFIRMING_ORDER, "is_confirming_order", True),
        (ActionType.SET_CONFIRMATION_ERROR, "confirmation_error", "declined"),
        (ActionType.SET_ORDER_CONFIRMED, "order_confirmed", True),
        (ActionType.SET_PAYMENT_URL, "payment_url", "https://pay/?payment_id=1"),
    ])
    def test_setter(self, state, action_type, attr, value):
        assert getattr(reduce(state, act(action_type, value)), attr) == value

    def test_payment_method_accepts_raw_value(self, state):
        assert reduce(state, act(ActionType.SET_PAYMENT_METHOD, "cash")).payment_method == PaymentMethod.CASH

    def test_vehicles_stored_as_tuple(self, state):
        vehicles = [Vehicle(id="1", brand="VW", mark="Polo")]
        assert reduce(state, act(ActionType.SET_VEHICLES, vehicles)).vehicles == tuple(vehicles)
