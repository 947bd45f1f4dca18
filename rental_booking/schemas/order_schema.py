"""Search criteria, order requests and order/upload responses."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rental_booking.utils import format_api_datetime, rental_days_between


class PaymentMethod(str, Enum):
    CARD = "card"
    CASH = "cash"


class SearchCriteria(BaseModel):
    """Where and when the customer wants a vehicle."""
    model_config = ConfigDict(frozen=True)

    pickup_location: str
    return_location: str
    date_from: datetime
    date_to: datetime

    @model_validator(mode="after")
    def _return_after_pickup(self) -> "SearchCriteria":
        if self.date_to <= self.date_from:
            raise ValueError("Return date must be after pickup date")
        return self

    @property
    def api_date_from(self) -> str:
        return format_api_datetime(self.date_from)

    @property
    def api_date_to(self) -> str:
        return format_api_datetime(self.date_to)

    @property
    def rental_days(self) -> int:
        return rental_days_between(self.date_from, self.date_to)


class CreateOrderRequest(BaseModel):
    """Payload for creating a draft order after vehicle selection."""
    vehicle_id: str
    date_from: str  # "YYYY-MM-DD HH:MM:SS"
    date_to: str
    pickup_location: str
    return_location: str


class ConfirmationResult(BaseModel):
    """Order confirmation response. Card payments carry a payment id."""
    payment_id: Optional[str] = None
    payment_link: Optional[str] = None
    status: str = ""
    unique_number: Optional[str] = None


class FileUploadResult(BaseModel):
    status: str
    id: int
    url: str


class UploadedFile(FileUploadResult):
    """A license photo that reached the API, with the name the user picked."""
    model_config = ConfigDict(frozen=True)

    name: str


class LicenseFile(BaseModel):
    """A local file about to be uploaded."""
    name: str
    content: bytes = Field(repr=False)
    content_type: str = "application/octet-stream"
