"""
Contract of the third-party booking API as seen by the booking core.

Implementations raise on failure; the orchestrator turns every exception
into an error message on the operation that failed.
"""

from typing import Optional, Protocol, Sequence

from rental_booking.schemas.driver_schema import Driver
from rental_booking.schemas.order_schema import (
    ConfirmationResult,
    CreateOrderRequest,
    FileUploadResult,
    LicenseFile,
    PaymentMethod,
)
from rental_booking.schemas.vehicle_schema import Country, Location, SearchResult


class OrderApiError(Exception):
    """Raised by API clients when a call is rejected or fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class OrderApi(Protocol):
    async def search_vehicles(
        self,
        date_from: str,
        date_to: str,
        pickup_location: Optional[str] = None,
        return_location: Optional[str] = None,
    ) -> SearchResult: ...

    async def get_locations(self) -> list[Location]: ...

    async def get_countries(self, lang: str) -> list[Country]: ...

    async def create_order(self, request: CreateOrderRequest) -> Optional[str]: ...

    async def update_order(self, order_id: str, insurance_id: int) -> None: ...

    async def confirm_order(
        self,
        order_id: str,
        drivers: Sequence[Driver],
        payment_method: PaymentMethod,
    ) -> ConfirmationResult: ...

    async def cancel_order(self, order_id: str) -> None: ...

    async def upload_file(self, file: LicenseFile) -> FileUploadResult: ...
