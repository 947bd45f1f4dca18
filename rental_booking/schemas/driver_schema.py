"""Driver records collected in the driver-data step."""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

REQUIRED_DRIVER_FIELDS: tuple[str, ...] = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "country",
    "city",
    "address",
    "birthday",
    "license_num",
    "license_from",
    "license_to",
)


class Driver(BaseModel):
    """
    One driver on the booking. Dates are kept as the ``YYYY-MM-DD`` strings
    the form produced; an empty string means "not entered yet".

    The first driver of a booking is the head driver and is the only one
    considered for insurance eligibility and pricing.
    """
    model_config = ConfigDict(frozen=True)

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    country: str = ""
    zip: str = ""
    state: str = ""
    city: str = ""
    address: str = ""
    building: Optional[str] = None
    birthday: str = ""
    notes: Optional[str] = None
    license_num: str = ""
    license_from: str = ""
    license_to: str = ""
    code: Optional[str] = None
    license_photo: tuple[str, ...] = Field(default_factory=tuple)

    @field_validator("birthday", "license_from", "license_to", mode="before")
    @classmethod
    def date_to_iso(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            v = v.date()
        if isinstance(v, date):
            return v.isoformat()
        return v

    @field_validator("license_photo", mode="before")
    @classmethod
    def photo_ids_as_str(cls, v: Any) -> Any:
        if v is None:
            return ()
        return tuple(str(item) for item in v)

    def with_field(self, field_name: str, value: Any) -> "Driver":
        """Return a validated copy with one field replaced.

        Raises:
            KeyError: If ``field_name`` is not a Driver field.
            pydantic.ValidationError: If ``value`` does not fit the field.
        """
        if field_name not in type(self).model_fields:
            raise KeyError(f"Unknown driver field: {field_name}")
        return type(self).model_validate({**self.model_dump(), field_name: value})

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


def create_empty_driver() -> Driver:
    return Driver()
