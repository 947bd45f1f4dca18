"""
In-memory booking API.

Stands in for the rental platform's REST API in tests and the console demo:
a small fleet, two branches, an order registry with the real lifecycle
(draft → updated → confirmed | cancelled) and a call log. Failures can be
scripted per operation to exercise the orchestrator's error paths.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence, TypedDict

from rental_booking.api.protocol import OrderApiError
from rental_booking.schemas.driver_schema import Driver
from rental_booking.schemas.order_schema import (
    ConfirmationResult,
    CreateOrderRequest,
    FileUploadResult,
    LicenseFile,
    PaymentMethod,
)
from rental_booking.schemas.vehicle_schema import (
    Country,
    Location,
    Pagination,
    SearchResult,
    Vehicle,
    VehicleOption,
)
from rental_booking.utils import API_DATETIME_FORMAT, rental_days_between

logger = logging.getLogger(__name__)


class OrderRecord(TypedDict):
    """Order as held by the in-memory platform."""

    order_id: str
    vehicle_id: str
    date_from: str
    date_to: str
    pickup_location: str
    return_location: str
    insurance_id: Optional[int]
    status: str
    payment_method: Optional[str]
    drivers: list[dict]
    created_at: str


SAMPLE_LOCATIONS: list[Location] = [
    Location(id=1, name="Zurich Airport", address="Flughafenstrasse 1, 8058 Zurich",
             longitude="8.5492", latitude="47.4582"),
    Location(id=2, name="Geneva Downtown", address="Rue du Mont-Blanc 12, 1201 Geneva",
             longitude="6.1432", latitude="46.2085"),
]

SAMPLE_COUNTRIES: list[Country] = [
    Country(id="1", name="Switzerland", iso_code="CH"),
    Country(id="2", name="Germany", iso_code="DE"),
    Country(id="3", name="France", iso_code="FR"),
    Country(id="4", name="Netherlands", iso_code="NL"),
    Country(id="5", name="United Kingdom", iso_code="GB"),
    Country(id="6", name="United States", iso_code="US"),
]

_AC = VehicleOption(id="ac", name="Air conditioning")
_GPS = VehicleOption(id="gps", name="GPS navigation")

SAMPLE_FLEET: list[Vehicle] = [
    Vehicle(id="101", brand="Volkswagen", mark="Golf", group="Compact", year=2024,
            transmission="manual", fuel="petrol", body_type="hatchback",
            number_seats=5, number_doors=5, large_bags=1, small_bags=2,
            price=59.0, currency="CHF", mileage_limit="200 km/day", options=(_AC,)),
    Vehicle(id="102", brand="Skoda", mark="Octavia Combi", group="Intermediate", year=2023,
            transmission="automatic", fuel="diesel", body_type="estate",
            number_seats=5, number_doors=5, large_bags=3, small_bags=2,
            price=79.0, currency="CHF", mileage_limit="unlimited", options=(_AC, _GPS)),
    Vehicle(id="103", brand="Tesla", mark="Model 3", group="Premium", year=2024,
            transmission="automatic", fuel="electric", body_type="sedan",
            number_seats=5, number_doors=4, large_bags=2, small_bags=2,
            price=129.0, currency="CHF", mileage_limit="unlimited", options=(_AC, _GPS)),
]

OPERATIONS = (
    "search_vehicles", "get_locations", "get_countries", "create_order",
    "update_order", "confirm_order", "cancel_order", "upload_file",
)


class InMemoryOrderApi:
    """Deterministic booking platform held in process memory."""

    def __init__(
        self,
        fleet: Optional[Sequence[Vehicle]] = None,
        locations: Optional[Sequence[Location]] = None,
        countries: Optional[Sequence[Country]] = None,
    ) -> None:
        self.fleet = list(SAMPLE_FLEET if fleet is None else fleet)
        self.locations = list(SAMPLE_LOCATIONS if locations is None else locations)
        self.countries = list(SAMPLE_COUNTRIES if countries is None else countries)
        self.orders: dict[str, OrderRecord] = {}
        self.calls: list[tuple[str, tuple]] = []
        self._failures: dict[str, list[str]] = {}
        self._next_file_id = 5000

    # ------------------------------------------------------------------ #
    # Scripting helpers
    # ------------------------------------------------------------------ #

    def fail(self, operation: str, times: int = 1, message: Optional[str] = None) -> None:
        """Make the next ``times`` calls of ``operation`` raise OrderApiError."""
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown operation: {operation}")
        text = message or f"{operation} failed"
        self._failures.setdefault(operation, []).extend([text] * times)

    def call_count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def get_order(self, order_id: str) -> Optional[OrderRecord]:
        return self.orders.get(order_id)

    def reset(self) -> None:
        """Clear orders, call log and scripted failures."""
        self.orders.clear()
        self.calls.clear()
        self._failures.clear()

    def _record(self, operation: str, *args: object) -> None:
        self.calls.append((operation, args))
        pending = self._failures.get(operation)
        if pending:
            message = pending.pop(0)
            logger.debug("Scripted failure for %s: %s", operation, message)
            raise OrderApiError(message, status_code=500)

    def _require_order(self, order_id: str) -> OrderRecord:
        order = self.orders.get(order_id)
        if order is None:
            raise OrderApiError(f"Order {order_id} not found.", status_code=404)
        return order

    # ------------------------------------------------------------------ #
    # OrderApi
    # ------------------------------------------------------------------ #

    async def search_vehicles(
        self,
        date_from: str,
        date_to: str,
        pickup_location: Optional[str] = None,
        return_location: Optional[str] = None,
    ) -> SearchResult:
        self._record("search_vehicles", date_from, date_to, pickup_location, return_location)
        try:
            start = datetime.strptime(date_from, API_DATETIME_FORMAT)
            end = datetime.strptime(date_to, API_DATETIME_FORMAT)
        except ValueError:
            raise OrderApiError("Invalid date format.", status_code=422) from None
        if end <= start:
            raise OrderApiError("date_to must be after date_from.", status_code=422)

        days = rental_days_between(start, end)
        vehicles = [
            v.model_copy(update={"count_days": days, "total_price": f"{v.price * days:.2f}"})
            for v in self.fleet
        ]
        return SearchResult(
            vehicles=vehicles,
            pagination=Pagination(
                total_count=len(vehicles), per_page=20, page=1, count_pages=1,
                begin=1 if vehicles else 0, end=len(vehicles),
            ),
        )

    async def get_locations(self) -> list[Location]:
        self._record("get_locations")
        return list(self.locations)

    async def get_countries(self, lang: str) -> list[Country]:
        self._record("get_countries", lang)
        return list(self.countries)

    async def create_order(self, request: CreateOrderRequest) -> Optional[str]:
        self._record("create_order", request)
        if not any(v.id == request.vehicle_id for v in self.fleet):
            raise OrderApiError(f"Vehicle {request.vehicle_id} not found.", status_code=404)

        order_id = f"ORD-{uuid.uuid4().hex[:6].upper()}"
        self.orders[order_id] = {
            "order_id": order_id,
            "vehicle_id": request.vehicle_id,
            "date_from": request.date_from,
            "date_to": request.date_to,
            "pickup_location": request.pickup_location,
            "return_location": request.return_location,
            "insurance_id": None,
            "status": "draft",
            "payment_method": None,
            "drivers": [],
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        logger.info("Order created: %s for vehicle %s", order_id, request.vehicle_id)
        return order_id

    async def update_order(self, order_id: str, insurance_id: int) -> None:
        self._record("update_order", order_id, insurance_id)
        order = self._require_order(order_id)
        if order["status"] in ("cancelled", "confirmed"):
            raise OrderApiError(f"Order {order_id} is {order['status']}.", status_code=409)
        order.update(insurance_id=insurance_id, status="updated")

    async def confirm_order(
        self,
        order_id: str,
        drivers: Sequence[Driver],
        payment_method: PaymentMethod,
    ) -> ConfirmationResult:
        self._record("confirm_order", order_id, tuple(drivers), payment_method)
        order = self._require_order(order_id)
        if order["status"] == "cancelled":
            raise OrderApiError(f"Order {order_id} is cancelled.", status_code=409)

        method = PaymentMethod(payment_method)
        order.update(
            status="confirmed",
            payment_method=method.value,
            drivers=[d.model_dump(mode="json") for d in drivers],
        )
        unique_number = f"BK-{uuid.uuid4().hex[:6].upper()}"
        logger.info("Order confirmed: %s (%s)", order_id, method.value)
        if method == PaymentMethod.CARD:
            payment_id = uuid.uuid4().hex[:12]
            return ConfirmationResult(
                payment_id=payment_id,
                payment_link=f"https://pay.example.test/?payment_id={payment_id}",
                status="pending_payment",
                unique_number=unique_number,
            )
        return ConfirmationResult(status="confirmed", unique_number=unique_number)

    async def cancel_order(self, order_id: str) -> None:
        self._record("cancel_order", order_id)
        order = self._require_order(order_id)
        order["status"] = "cancelled"
        logger.info("Order cancelled: %s", order_id)

    async def upload_file(self, file: LicenseFile) -> FileUploadResult:
        self._record("upload_file", file.name)
        if not file.content:
            raise OrderApiError("Empty file.", status_code=422)
        self._next_file_id += 1
        file_id = self._next_file_id
        return FileUploadResult(
            status="success",
            id=file_id,
            url=f"https://files.example.test/{file_id}/{file.name}",
        )
