"""
Booking orchestrator: sequences order API calls around state dispatches.

Enforces the single-live-order rule (a prior draft is cancelled before a new
one is created or a new search runs), drives step completion through the
wizard gates and runs the two-phase confirm flow. API failures are logged
and reported on the operation's result; they never propagate to the caller.

Usage:
    orchestrator = BookingOrchestrator(BookingSession(), InMemoryOrderApi())
    await orchestrator.load_locations()
    await orchestrator.submit_search("2026-03-02", "09:00", "2026-03-05", "09:00")
    await orchestrator.select_vehicle(orchestrator.state.vehicles[0])
"""

import asyncio
from datetime import datetime
from typing import Any, Callable, Optional, Sequence, TypedDict

from rental_booking.api.protocol import OrderApi
from rental_booking.booking.driver_store import DriverInfoStore, InMemoryDriverInfoStore
from rental_booking.booking.session import BookingSession
from rental_booking.booking.state import (
    Action,
    ActionType,
    BookingState,
    BookingStep,
    shift_upload_key,
    upload_key_driver,
)
from rental_booking.booking.wizard import WizardController
from rental_booking.config import settings
from rental_booking.insurance.engine import calculate_all_premiums, default_selection
from rental_booking.insurance.rules import INSURANCE_CATALOG
from rental_booking.logging_context import get_session_logger, set_session_id
from rental_booking.schemas.driver_schema import Driver
from rental_booking.schemas.insurance_schema import CalculatedInsurance, InsuranceOption
from rental_booking.schemas.order_schema import (
    ConfirmationResult,
    CreateOrderRequest,
    LicenseFile,
    PaymentMethod,
    SearchCriteria,
    UploadedFile,
)
from rental_booking.schemas.vehicle_schema import Country, Location, Vehicle
from rental_booking.utils import combine_date_time

logger = get_session_logger(__name__)

# Head-driver fields that feed insurance eligibility and pricing.
INSURANCE_DRIVER_FIELDS = frozenset({"birthday", "license_from", "license_to", "country"})


class OperationResult(TypedDict, total=False):
    """Outcome of an orchestrator operation."""

    success: bool
    error: str
    errors: list[str]
    field_errors: dict[str, str]
    order_id: str
    redirect_url: str


def _failure(message: str) -> OperationResult:
    return {"success": False, "error": message}


class BookingOrchestrator:
    """Coordinates one booking session with the remote order API."""

    def __init__(
        self,
        session: BookingSession,
        api: OrderApi,
        driver_store: Optional[DriverInfoStore] = None,
        catalog: Sequence[InsuranceOption] = INSURANCE_CATALOG,
        clock: Callable[[], datetime] = datetime.now,
        confirm_retry_delay: Optional[float] = None,
        settle_delay: Optional[float] = None,
    ) -> None:
        self.session = session
        self.api = api
        self.driver_store = driver_store if driver_store is not None else InMemoryDriverInfoStore()
        self.catalog = tuple(catalog)
        self.wizard = WizardController(session, clock)
        booking = settings.booking
        self._confirm_retry_delay = (
            booking.confirm_retry_delay_sec if confirm_retry_delay is None else confirm_retry_delay
        )
        self._settle_delay = (
            booking.update_settle_delay_sec if settle_delay is None else settle_delay
        )
        self._max_drivers = settings.storage.max_drivers
        # In-flight uploads: key at start -> current key, None once the driver is removed.
        self._pending_uploads: dict[str, Optional[str]] = {}

    @property
    def state(self) -> BookingState:
        return self.session.get_state()

    def _dispatch(self, action_type: ActionType, payload: Any = None) -> BookingState:
        return self.session.dispatch(Action(action_type, payload))

    def _bind_session(self) -> None:
        set_session_id(self.session.session_id)

    def _complete_and_advance(self, step: BookingStep) -> bool:
        validation = self.wizard.complete_step(step)
        if not validation.is_valid:
            return False
        return self.wizard.go_to_step(step + 1)

    # ------------------------------------------------------------------ #
    # Order lifecycle helpers
    # ------------------------------------------------------------------ #

    async def _cancel_order(self, order_id: str) -> None:
        """Best-effort cancel. The id is dropped from state either way."""
        try:
            await self.api.cancel_order(order_id)
            logger.info("Cancelled superseded order %s", order_id)
        except Exception as exc:
            logger.warning("Failed to cancel order %s: %s", order_id, exc)
        self._dispatch(ActionType.SET_ORDER_ID, None)

    def _persist_drivers(self) -> None:
        order_id = self.state.order_id
        if not order_id:
            return
        try:
            self.driver_store.save(order_id, self.state.drivers)
        except OSError as exc:
            logger.error("Failed to store driver info for %s: %s", order_id, exc)

    def _restore_drivers(self, order_id: str) -> None:
        try:
            drivers = self.driver_store.load(order_id)
        except (OSError, ValueError) as exc:
            logger.warning("Could not restore drivers for %s: %s", order_id, exc)
            return
        if drivers:
            logger.info("Restored %d stored driver(s) for order %s", len(drivers), order_id)
            self._dispatch(ActionType.SET_DRIVERS, drivers)

    # ------------------------------------------------------------------ #
    # Step 1: locations and search
    # ------------------------------------------------------------------ #

    async def load_locations(self) -> list[Location]:
        """Fetch branches once and preselect the first."""
        self._bind_session()
        if self.state.locations:
            self._dispatch(ActionType.SET_LOADING_LOCATIONS, False)
            return list(self.state.locations)

        self._dispatch(ActionType.SET_LOADING_LOCATIONS, True)
        try:
            locations = await self.api.get_locations()
        except Exception as exc:
            logger.error("Failed to load locations: %s", exc)
            return []
        finally:
            self._dispatch(ActionType.SET_LOADING_LOCATIONS, False)

        self._dispatch(ActionType.SET_LOCATIONS, locations)
        if locations and not self.state.selected_location:
            self._dispatch(ActionType.SET_SELECTED_LOCATION, str(locations[0].id))
        return list(locations)

    async def load_countries(self, lang: Optional[str] = None) -> list[Country]:
        self._bind_session()
        try:
            return list(await self.api.get_countries(lang or settings.booking.countries_language))
        except Exception as exc:
            logger.error("Failed to load countries: %s", exc)
            return []

    def _search_failed(self, message: str) -> OperationResult:
        self._dispatch(ActionType.SET_SEARCH_ERROR, message)
        return _failure(message)

    async def submit_search(
        self,
        date_from: str,
        time_from: Optional[str],
        date_to: str,
        time_to: Optional[str],
        pickup_location: Optional[str] = None,
        return_location: Optional[str] = None,
    ) -> OperationResult:
        """
        Validate the search form, then look for vehicles.

        A missing time falls back to the configured default search time.
        Any live draft order is cancelled and everything downstream of the
        search is reset before the API is called.
        """
        self._bind_session()
        default_time = settings.booking.default_search_time
        time_from = default_time if time_from is None else time_from
        time_to = default_time if time_to is None else time_to

        if not all(v and v.strip() for v in (date_from, time_from, date_to, time_to)):
            return self._search_failed("Please fill in all date and time fields")
        start = combine_date_time(date_from, time_from)
        end = combine_date_time(date_to, time_to)
        if start is None or end is None:
            return self._search_failed("Please enter valid dates and times")
        if end <= start:
            return self._search_failed("Return date must be after pickup date")

        pickup = str(pickup_location or self.state.selected_location or "")
        if not pickup:
            return self._search_failed("Please select a pickup location")
        if pickup_location:
            self._dispatch(ActionType.SET_SELECTED_LOCATION, pickup)

        criteria = SearchCriteria(
            pickup_location=pickup,
            return_location=str(return_location or pickup),
            date_from=start,
            date_to=end,
        )

        live_order = self.state.order_id
        if live_order:
            await self._cancel_order(live_order)

        self._dispatch(ActionType.SET_SEARCH_ERROR, None)
        self._dispatch(ActionType.START_NEW_SEARCH, criteria)
        self._dispatch(ActionType.SET_IS_SEARCHING, True)
        try:
            result = await self.api.search_vehicles(
                criteria.api_date_from,
                criteria.api_date_to,
                criteria.pickup_location,
                criteria.return_location,
            )
        except Exception as exc:
            logger.error("Vehicle search failed: %s", exc)
            return self._search_failed(str(exc) or "Search failed. Please try again.")
        finally:
            self._dispatch(ActionType.SET_IS_SEARCHING, False)

        self._dispatch(ActionType.SET_VEHICLES, result.vehicles)
        if not result.vehicles:
            return self._search_failed("No vehicles found for the selected dates")

        logger.info("Search found %d vehicle(s)", len(result.vehicles))
        self._complete_and_advance(BookingStep.SEARCH)
        return {"success": True}

    # ------------------------------------------------------------------ #
    # Step 2: vehicle selection and order creation
    # ------------------------------------------------------------------ #

    def _order_failed(self, message: str) -> OperationResult:
        self._dispatch(ActionType.SET_ORDER_ERROR, message)
        self._dispatch(ActionType.SET_SELECTED_VEHICLE, None)
        return _failure(message)

    async def select_vehicle(self, vehicle: Vehicle) -> OperationResult:
        """Create a draft order for ``vehicle``, cancelling any prior draft first."""
        self._bind_session()
        search = self.state.search
        if search is None:
            message = "Missing search information. Please search again."
            self._dispatch(ActionType.SET_ORDER_ERROR, message)
            return _failure(message)

        self._dispatch(ActionType.SET_ORDER_ERROR, None)
        self._dispatch(ActionType.SET_SELECTED_VEHICLE, vehicle)
        self._dispatch(ActionType.SET_IS_CREATING_ORDER, True)
        try:
            previous = self.state.order_id
            if previous:
                await self._cancel_order(previous)
            order_id = await self.api.create_order(CreateOrderRequest(
                vehicle_id=vehicle.id,
                date_from=search.api_date_from,
                date_to=search.api_date_to,
                pickup_location=search.pickup_location,
                return_location=search.return_location,
            ))
        except Exception as exc:
            logger.error("Order creation failed for vehicle %s: %s", vehicle.id, exc)
            return self._order_failed(str(exc) or "Failed to create order")
        finally:
            self._dispatch(ActionType.SET_IS_CREATING_ORDER, False)

        if not order_id:
            return self._order_failed("Order ID not found in response")

        logger.info("Order %s created for vehicle %s", order_id, vehicle.id)
        self._dispatch(ActionType.SET_ORDER_ID, order_id)
        self._restore_drivers(order_id)
        self._complete_and_advance(BookingStep.SELECT_VEHICLE)
        return {"success": True, "order_id": order_id}

    # ------------------------------------------------------------------ #
    # Step 3: drivers and license photos
    # ------------------------------------------------------------------ #

    def update_driver(self, index: int, field_name: str, value: Any) -> BookingState:
        self._dispatch(ActionType.UPDATE_DRIVER, {"index": index, "field": field_name, "value": value})
        self._persist_drivers()
        if index == 0 and field_name in INSURANCE_DRIVER_FIELDS and self.state.calculated_insurances:
            self.refresh_insurance_options()
        return self.state

    def add_driver(self) -> bool:
        if len(self.state.drivers) >= self._max_drivers:
            logger.debug("Driver limit of %d reached", self._max_drivers)
            return False
        self._dispatch(ActionType.ADD_DRIVER)
        self._persist_drivers()
        return True

    def remove_driver(self, index: int) -> BookingState:
        count = len(self.state.drivers)
        self._dispatch(ActionType.REMOVE_DRIVER, index)
        if len(self.state.drivers) < count:
            for started, current in self._pending_uploads.items():
                if current is not None:
                    self._pending_uploads[started] = shift_upload_key(current, index)
        self._persist_drivers()
        return self.state

    async def upload_license_photo(self, driver_index: int, file: LicenseFile) -> OperationResult:
        """Upload one license photo and attach its id to the driver.

        Drivers removed while the upload is in flight are tracked: the photo
        lands on the same driver at its new index, or is dropped when that
        driver is gone.
        """
        self._bind_session()
        if not 0 <= driver_index < len(self.state.drivers):
            return _failure(f"Unknown driver: {driver_index + 1}")

        started_key = self.session.next_upload_key(driver_index)
        self._pending_uploads[started_key] = started_key
        self._dispatch(ActionType.SET_UPLOAD_ERROR, {"key": started_key, "error": None})
        self._dispatch(ActionType.SET_UPLOADING_FILE, {"key": started_key, "uploading": True})
        error: Optional[str] = None
        try:
            result = await self.api.upload_file(file)
        except Exception as exc:
            logger.error("Upload %s (%s) failed: %s", started_key, file.name, exc)
            error = str(exc) or "Upload failed"
        finally:
            key = self._finish_upload(started_key)

        if key is None or upload_key_driver(key) >= len(self.state.drivers):
            logger.warning("Driver removed while %s was uploading; dropping it", file.name)
            return _failure("Driver was removed before the upload finished")
        if error is not None:
            self._dispatch(ActionType.SET_UPLOAD_ERROR, {"key": key, "error": error})
            return _failure(error)

        driver_index = upload_key_driver(key)
        uploaded = UploadedFile(status=result.status, id=result.id, url=result.url, name=file.name)
        self._dispatch(ActionType.ADD_UPLOADED_FILE, {"driver_index": driver_index, "file": uploaded})
        photos = self.state.drivers[driver_index].license_photo
        self._dispatch(ActionType.UPDATE_DRIVER, {
            "index": driver_index,
            "field": "license_photo",
            "value": photos + (str(result.id),),
        })
        self._persist_drivers()
        return {"success": True}

    def _finish_upload(self, started_key: str) -> Optional[str]:
        """Clear the in-flight flag. Returns the upload's current key, None if its driver is gone."""
        key = self._pending_uploads.pop(started_key, None)
        if key is not None:
            self._dispatch(ActionType.SET_UPLOADING_FILE, {"key": key, "uploading": False})
        return key

    async def upload_license_photos(
        self, driver_index: int, files: Sequence[LicenseFile]
    ) -> list[OperationResult]:
        """Upload several photos concurrently, each tracked under its own key."""
        return list(await asyncio.gather(
            *(self.upload_license_photo(driver_index, f) for f in files)
        ))

    def remove_uploaded_file(self, driver_index: int, file_index: int) -> BookingState:
        files = self.state.uploaded_files.get(driver_index, ())
        if not 0 <= file_index < len(files):
            return self.state
        removed = files[file_index]
        self._dispatch(ActionType.REMOVE_UPLOADED_FILE, {
            "driver_index": driver_index,
            "file_index": file_index,
        })
        photos = self.state.drivers[driver_index].license_photo
        self._dispatch(ActionType.UPDATE_DRIVER, {
            "index": driver_index,
            "field": "license_photo",
            "value": tuple(p for p in photos if p != str(removed.id)),
        })
        self._persist_drivers()
        return self.state

    def submit_driver_data(self) -> OperationResult:
        """Gate step 3, store the drivers and price insurance for the head driver."""
        self._bind_session()
        if not self.state.order_id:
            return _failure("Missing order information. Please go back and try again.")
        validation = self.wizard.complete_step(BookingStep.DRIVER_DATA)
        if not validation.is_valid:
            return {
                "success": False,
                "errors": validation.errors,
                "field_errors": validation.field_errors,
            }
        self._persist_drivers()
        self.refresh_insurance_options()
        self.wizard.go_to_step(BookingStep.EXTRAS)
        return {"success": True}

    # ------------------------------------------------------------------ #
    # Step 4: insurance
    # ------------------------------------------------------------------ #

    def refresh_insurance_options(self) -> list[CalculatedInsurance]:
        """
        Recompute eligible, priced options for the head driver.

        Needs the head driver's birthday and license issue date plus search
        dates. The default option is preselected when the current selection
        is missing or no longer offered.
        """
        state = self.state
        head = state.head_driver
        if state.search is None or not head.birthday or not head.license_from:
            return []

        calculated = calculate_all_premiums(
            self.catalog,
            head,
            state.search.date_from.date(),
            state.search.rental_days,
        )
        self._dispatch(ActionType.SET_CALCULATED_INSURANCES, calculated)

        offered = {calc.option_id for calc in calculated}
        if state.selected_insurance not in offered:
            default = default_selection(calculated)
            self._dispatch(
                ActionType.SET_SELECTED_INSURANCE,
                default.option_id if default is not None else None,
            )
        return calculated

    def select_insurance(self, option_id: int) -> bool:
        if not any(calc.option_id == option_id for calc in self.state.calculated_insurances):
            logger.debug("Insurance %s is not offered for this driver", option_id)
            return False
        self._dispatch(ActionType.SET_SELECTED_INSURANCE, option_id)
        return True

    def submit_extras(self) -> OperationResult:
        validation = self.wizard.complete_step(BookingStep.EXTRAS)
        if not validation.is_valid:
            return {"success": False, "errors": validation.errors}
        self.wizard.go_to_step(BookingStep.CONFIRM)
        return {"success": True}

    # ------------------------------------------------------------------ #
    # Step 5: payment and confirmation
    # ------------------------------------------------------------------ #

    def set_payment_method(self, method: PaymentMethod) -> BookingState:
        return self._dispatch(ActionType.SET_PAYMENT_METHOD, method)

    def accept_terms(self, accepted: bool = True) -> BookingState:
        return self._dispatch(ActionType.SET_TERMS_ACCEPTED, accepted)

    def _confirmation_failed(self, message: str) -> OperationResult:
        self._dispatch(ActionType.SET_CONFIRMATION_ERROR, message)
        return _failure(message)

    async def _confirm_with_retry(
        self,
        order_id: str,
        drivers: Sequence[Driver],
        payment_method: PaymentMethod,
    ) -> ConfirmationResult:
        """Confirm, retrying exactly once after a fixed delay."""
        try:
            return await self.api.confirm_order(order_id, drivers, payment_method)
        except Exception as exc:
            logger.warning(
                "Confirm failed for %s, retrying in %.1fs: %s",
                order_id, self._confirm_retry_delay, exc,
            )
        await asyncio.sleep(self._confirm_retry_delay)
        return await self.api.confirm_order(order_id, drivers, payment_method)

    async def confirm_booking(self) -> OperationResult:
        """
        Attach the insurance to the order, then confirm it.

        Card payments succeed with a ``redirect_url`` to the payment page;
        the booking is not marked confirmed locally. Cash payments end in the
        confirmed state with the last step completed.
        """
        self._bind_session()
        state = self.state
        if not state.terms_accepted:
            return self._confirmation_failed("Please accept the Terms & Conditions to continue")
        order_id = state.order_id
        insurance_id = state.selected_insurance
        if not order_id or insurance_id is None:
            return self._confirmation_failed(
                "Missing order information. Please go back and try again."
            )

        self._dispatch(ActionType.SET_CONFIRMATION_ERROR, None)
        self._dispatch(ActionType.SET_IS_UPDATING_ORDER, True)
        try:
            await self.api.update_order(order_id, insurance_id)
        except Exception as exc:
            logger.error("Order update failed for %s: %s", order_id, exc)
            return self._confirmation_failed(str(exc) or "Failed to update order")
        finally:
            self._dispatch(ActionType.SET_IS_UPDATING_ORDER, False)

        await asyncio.sleep(self._settle_delay)

        payment_method = self.state.payment_method
        self._dispatch(ActionType.SET_IS_CONFIRMING_ORDER, True)
        try:
            confirmation = await self._confirm_with_retry(
                order_id, self.state.drivers, payment_method
            )
        except Exception as exc:
            logger.error("Order confirmation failed for %s after retry: %s", order_id, exc)
            return self._confirmation_failed(str(exc) or "Failed to confirm order")
        finally:
            self._dispatch(ActionType.SET_IS_CONFIRMING_ORDER, False)

        if payment_method == PaymentMethod.CARD:
            if not confirmation.payment_id:
                logger.error("Order %s confirmed without a payment id", order_id)
                return self._confirmation_failed(
                    "Payment ID not received. Please contact support."
                )
            redirect_url = (
                f"{settings.booking.payment_url_base}?payment_id={confirmation.payment_id}"
            )
            self._dispatch(ActionType.SET_PAYMENT_URL, redirect_url)
            logger.info("Order %s awaiting card payment", order_id)
            return {"success": True, "order_id": order_id, "redirect_url": redirect_url}

        self._dispatch(ActionType.SET_ORDER_CONFIRMED, True)
        self._dispatch(ActionType.SET_MAX_COMPLETED_STEP, int(BookingStep.CONFIRM))
        logger.info("Order %s confirmed for cash payment", order_id)
        return {"success": True, "order_id": order_id}

    def book_another(self) -> BookingState:
        """Start over, keeping the fetched locations."""
        return self._dispatch(ActionType.RESET_BOOKING)
