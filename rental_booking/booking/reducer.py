"""
Pure state transitions for the booking wizard.

``reduce(state, action)`` is total: it never raises and never performs I/O.
Unknown action types and malformed payloads leave the state untouched.

Usage:
    state = reduce(initial_state(), Action(ActionType.SET_STEP, 3))
    assert state.current_step == 3
"""

import logging
from dataclasses import replace
from typing import Any, Callable

from rental_booking.booking.state import (
    FIRST_STEP,
    Action,
    ActionType,
    BookingState,
    initial_state,
    shift_upload_key,
)
from rental_booking.schemas.driver_schema import create_empty_driver
from rental_booking.schemas.order_schema import PaymentMethod

logger = logging.getLogger(__name__)

Handler = Callable[[BookingState, Any], BookingState]


def _setter(field_name: str, coerce: Callable[[Any], Any] = lambda v: v) -> Handler:
    """Build a handler that replaces a single field with the payload."""

    def handler(state: BookingState, payload: Any) -> BookingState:
        return replace(state, **{field_name: coerce(payload)})

    return handler


def _optional_tuple(value: Any) -> Any:
    return None if value is None else tuple(value)


def _set_max_completed_step(state: BookingState, payload: Any) -> BookingState:
    return replace(state, max_completed_step=max(state.max_completed_step, int(payload)))


def _set_drivers(state: BookingState, payload: Any) -> BookingState:
    drivers = tuple(payload or ())
    if not drivers:
        return state
    return replace(state, drivers=drivers)


def _update_driver(state: BookingState, payload: Any) -> BookingState:
    index = payload["index"]
    if not 0 <= index < len(state.drivers):
        return state
    drivers = list(state.drivers)
    drivers[index] = drivers[index].with_field(payload["field"], payload["value"])
    return replace(state, drivers=tuple(drivers))


def _add_driver(state: BookingState, payload: Any) -> BookingState:
    return replace(state, drivers=state.drivers + (create_empty_driver(),))


def _remove_driver(state: BookingState, payload: Any) -> BookingState:
    index = int(payload)
    if len(state.drivers) <= 1 or not 0 <= index < len(state.drivers):
        return state
    drivers = state.drivers[:index] + state.drivers[index + 1:]
    # Upload state follows its driver down one position.
    uploaded = {
        (i if i < index else i - 1): files
        for i, files in state.uploaded_files.items()
        if i != index
    }
    return replace(
        state,
        drivers=drivers,
        uploaded_files=uploaded,
        uploading_files=_shift_upload_keys(state.uploading_files, index),
        upload_errors=_shift_upload_keys(state.upload_errors, index),
    )


def _shift_upload_keys(entries: dict[str, Any], removed_index: int) -> dict[str, Any]:
    shifted = {}
    for key, value in entries.items():
        new_key = shift_upload_key(key, removed_index)
        if new_key is not None:
            shifted[new_key] = value
    return shifted


def _set_uploading_file(state: BookingState, payload: Any) -> BookingState:
    uploading = dict(state.uploading_files)
    if payload["uploading"]:
        uploading[payload["key"]] = True
    else:
        uploading.pop(payload["key"], None)
    return replace(state, uploading_files=uploading)


def _set_uploaded_files(state: BookingState, payload: Any) -> BookingState:
    uploaded = {int(i): tuple(files) for i, files in (payload or {}).items()}
    return replace(state, uploaded_files=uploaded)


def _add_uploaded_file(state: BookingState, payload: Any) -> BookingState:
    driver_index = payload["driver_index"]
    files = state.uploaded_files.get(driver_index, ())
    uploaded = {**state.uploaded_files, driver_index: files + (payload["file"],)}
    return replace(state, uploaded_files=uploaded)


def _remove_uploaded_file(state: BookingState, payload: Any) -> BookingState:
    driver_index = payload["driver_index"]
    file_index = payload["file_index"]
    files = state.uploaded_files.get(driver_index, ())
    remaining = tuple(f for i, f in enumerate(files) if i != file_index)
    uploaded = dict(state.uploaded_files)
    if remaining:
        uploaded[driver_index] = remaining
    else:
        uploaded.pop(driver_index, None)
    return replace(state, uploaded_files=uploaded)


def _set_upload_error(state: BookingState, payload: Any) -> BookingState:
    errors = dict(state.upload_errors)
    if payload.get("error"):
        errors[payload["key"]] = payload["error"]
    else:
        errors.pop(payload["key"], None)
    return replace(state, upload_errors=errors)


def _start_new_search(state: BookingState, payload: Any) -> BookingState:
    """Drop everything downstream of the search form."""
    fresh = initial_state()
    return replace(
        fresh,
        locations=state.locations,
        loading_locations=state.loading_locations,
        selected_location=state.selected_location,
        search=payload if payload is not None else state.search,
        search_error=state.search_error,
        is_searching=state.is_searching,
        current_step=FIRST_STEP,
        max_completed_step=0,
    )


def _reset_booking(state: BookingState, payload: Any) -> BookingState:
    """Start over, keeping the already-fetched locations."""
    return replace(
        initial_state(),
        locations=state.locations,
        loading_locations=False,
        selected_location=state.selected_location,
    )


_HANDLERS: dict[ActionType, Handler] = {
    ActionType.SET_STEP: _setter("current_step", int),
    ActionType.SET_MAX_COMPLETED_STEP: _set_max_completed_step,
    ActionType.SET_LOCATIONS: _setter("locations", tuple),
    ActionType.SET_LOADING_LOCATIONS: _setter("loading_locations", bool),
    ActionType.SET_SELECTED_LOCATION: _setter("selected_location", str),
    ActionType.SET_SEARCH_CRITERIA: _setter("search"),
    ActionType.SET_SEARCH_ERROR: _setter("search_error"),
    ActionType.SET_IS_SEARCHING: _setter("is_searching", bool),
    ActionType.SET_VEHICLES: _setter("vehicles", _optional_tuple),
    ActionType.SET_SELECTED_VEHICLE: _setter("selected_vehicle"),
    ActionType.SET_ORDER_ID: _setter("order_id"),
    ActionType.SET_ORDER_ERROR: _setter("order_error"),
    ActionType.SET_IS_CREATING_ORDER: _setter("is_creating_order", bool),
    ActionType.SET_DRIVERS: _set_drivers,
    ActionType.UPDATE_DRIVER: _update_driver,
    ActionType.ADD_DRIVER: _add_driver,
    ActionType.REMOVE_DRIVER: _remove_driver,
    ActionType.SET_UPLOADING_FILE: _set_uploading_file,
    ActionType.SET_UPLOADED_FILES: _set_uploaded_files,
    ActionType.ADD_UPLOADED_FILE: _add_uploaded_file,
    ActionType.REMOVE_UPLOADED_FILE: _remove_uploaded_file,
    ActionType.SET_UPLOAD_ERROR: _set_upload_error,
    ActionType.SET_SELECTED_INSURANCE: _setter("selected_insurance"),
    ActionType.SET_CALCULATED_INSURANCES: _setter("calculated_insurances", tuple),
    ActionType.SET_TERMS_ACCEPTED: _setter("terms_accepted", bool),
    ActionType.SET_IS_UPDATING_ORDER: _setter("is_updating_order", bool),
    ActionType.SET_IS_CONFIRMING_ORDER: _setter("is_confirming_order", bool),
    ActionType.SET_CONFIRMATION_ERROR: _setter("confirmation_error"),
    ActionType.SET_ORDER_CONFIRMED: _setter("order_confirmed", bool),
    ActionType.SET_PAYMENT_METHOD: _setter("payment_method", PaymentMethod),
    ActionType.SET_PAYMENT_URL: _setter("payment_url"),
    ActionType.START_NEW_SEARCH: _start_new_search,
    ActionType.RESET_BOOKING: _reset_booking,
}


def reduce(state: BookingState, action: Action) -> BookingState:
    """
    Apply ``action`` to ``state`` and return the resulting snapshot.

    Returns ``state`` itself (identity) for unknown actions and for payloads
    the handler cannot apply.
    """
    action_type = getattr(action, "type", None)
    handler = _HANDLERS.get(action_type)  # type: ignore[arg-type]
    if handler is None:
        logger.debug("Ignoring unknown action: %r", action_type)
        return state
    try:
        return handler(state, action.payload)
    except (KeyError, IndexError, TypeError, ValueError, AttributeError) as exc:
        logger.warning("Rejected %s payload %r: %s", action_type, action.payload, exc)
        return state
