"""
Booking state snapshot and the actions that transform it.

``BookingState`` is immutable: the reducer returns a new snapshot for every
mutation, so a snapshot handed to a caller never changes under it.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Optional

from rental_booking.schemas.driver_schema import Driver, create_empty_driver
from rental_booking.schemas.insurance_schema import CalculatedInsurance
from rental_booking.schemas.order_schema import PaymentMethod, SearchCriteria, UploadedFile
from rental_booking.schemas.vehicle_schema import Location, Vehicle


class BookingStep(IntEnum):
    """Wizard steps in display order."""
    SEARCH = 1
    SELECT_VEHICLE = 2
    DRIVER_DATA = 3
    EXTRAS = 4
    CONFIRM = 5


FIRST_STEP = int(BookingStep.SEARCH)
LAST_STEP = int(BookingStep.CONFIRM)


class ActionType(str, Enum):
    """Every allowed mutation of the booking state."""
    SET_STEP = "set_step"
    SET_MAX_COMPLETED_STEP = "set_max_completed_step"
    SET_LOCATIONS = "set_locations"
    SET_LOADING_LOCATIONS = "set_loading_locations"
    SET_SELECTED_LOCATION = "set_selected_location"
    SET_SEARCH_CRITERIA = "set_search_criteria"
    SET_SEARCH_ERROR = "set_search_error"
    SET_IS_SEARCHING = "set_is_searching"
    SET_VEHICLES = "set_vehicles"
    SET_SELECTED_VEHICLE = "set_selected_vehicle"
    SET_ORDER_ID = "set_order_id"
    SET_ORDER_ERROR = "set_order_error"
    SET_IS_CREATING_ORDER = "set_is_creating_order"
    SET_DRIVERS = "set_drivers"
    UPDATE_DRIVER = "update_driver"
    ADD_DRIVER = "add_driver"
    REMOVE_DRIVER = "remove_driver"
    SET_UPLOADING_FILE = "set_uploading_file"
    SET_UPLOADED_FILES = "set_uploaded_files"
    ADD_UPLOADED_FILE = "add_uploaded_file"
    REMOVE_UPLOADED_FILE = "remove_uploaded_file"
    SET_UPLOAD_ERROR = "set_upload_error"
    SET_SELECTED_INSURANCE = "set_selected_insurance"
    SET_CALCULATED_INSURANCES = "set_calculated_insurances"
    SET_TERMS_ACCEPTED = "set_terms_accepted"
    SET_IS_UPDATING_ORDER = "set_is_updating_order"
    SET_IS_CONFIRMING_ORDER = "set_is_confirming_order"
    SET_CONFIRMATION_ERROR = "set_confirmation_error"
    SET_ORDER_CONFIRMED = "set_order_confirmed"
    SET_PAYMENT_METHOD = "set_payment_method"
    SET_PAYMENT_URL = "set_payment_url"
    START_NEW_SEARCH = "start_new_search"
    RESET_BOOKING = "reset_booking"


@dataclass(frozen=True)
class Action:
    """A named mutation with its payload.

    Payload shapes:
        UPDATE_DRIVER         {"index": int, "field": str, "value": Any}
        REMOVE_DRIVER         int (driver index)
        SET_UPLOADING_FILE    {"key": str, "uploading": bool}
        ADD_UPLOADED_FILE     {"driver_index": int, "file": UploadedFile}
        REMOVE_UPLOADED_FILE  {"driver_index": int, "file_index": int}
        SET_UPLOAD_ERROR      {"key": str, "error": str | None}
        START_NEW_SEARCH      SearchCriteria | None
        everything else       the new field value
    """
    type: ActionType
    payload: Any = None


@dataclass(frozen=True)
class BookingState:
    """Single source of truth for one booking wizard run."""

    # Navigation
    current_step: int = FIRST_STEP
    max_completed_step: int = 0

    # Step 1: search
    locations: tuple[Location, ...] = ()
    loading_locations: bool = True
    selected_location: str = ""
    search: Optional[SearchCriteria] = None
    search_error: Optional[str] = None
    is_searching: bool = False

    # Step 2: vehicle
    vehicles: Optional[tuple[Vehicle, ...]] = None
    selected_vehicle: Optional[Vehicle] = None

    # Step 3: order and drivers
    order_id: Optional[str] = None
    order_error: Optional[str] = None
    is_creating_order: bool = False
    drivers: tuple[Driver, ...] = field(default_factory=lambda: (create_empty_driver(),))
    uploading_files: dict[str, bool] = field(default_factory=dict)
    uploaded_files: dict[int, tuple[UploadedFile, ...]] = field(default_factory=dict)
    upload_errors: dict[str, str] = field(default_factory=dict)

    # Step 4: insurance
    selected_insurance: Optional[int] = None
    calculated_insurances: tuple[CalculatedInsurance, ...] = ()

    # Step 5: confirmation
    terms_accepted: bool = False
    is_updating_order: bool = False
    is_confirming_order: bool = False
    confirmation_error: Optional[str] = None
    order_confirmed: bool = False
    payment_method: PaymentMethod = PaymentMethod.CARD
    payment_url: Optional[str] = None

    @property
    def head_driver(self) -> Driver:
        return self.drivers[0]

    @property
    def is_uploading(self) -> bool:
        return bool(self.uploading_files)

    @property
    def selected_calculation(self) -> Optional[CalculatedInsurance]:
        """The priced entry for the selected insurance, if it was offered."""
        for calc in self.calculated_insurances:
            if calc.option.id == self.selected_insurance:
                return calc
        return None

    def find_location(self, location_id: str) -> Optional[Location]:
        for location in self.locations:
            if str(location.id) == str(location_id):
                return location
        return None


def initial_state(payment_method: PaymentMethod = PaymentMethod.CARD) -> BookingState:
    """State at wizard mount: step 1 with one empty driver."""
    return BookingState(payment_method=payment_method)


def upload_key(driver_index: int, sequence: int) -> str:
    """Key for one in-flight upload: ``{driver_index}_{sequence}``."""
    return f"{driver_index}_{sequence}"


def upload_key_driver(key: str) -> int:
    return int(key.partition("_")[0])


def shift_upload_key(key: str, removed_index: int) -> Optional[str]:
    """Re-key an upload after driver ``removed_index`` was dropped.

    Returns None when the upload belonged to the removed driver.
    """
    driver_index = upload_key_driver(key)
    if driver_index == removed_index:
        return None
    if driver_index < removed_index:
        return key
    return upload_key(driver_index - 1, int(key.partition("_")[2]))
