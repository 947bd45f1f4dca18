"""Vehicle catalog and geography models returned by the booking API."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class VehicleOption(BaseModel):
    """Equipment or feature attached to a vehicle (air conditioning, GPS...)."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    icon: Optional[str] = None


class Vehicle(BaseModel):
    """Immutable search hit. At most one is selected per booking."""
    model_config = ConfigDict(frozen=True)

    id: str
    brand: str
    mark: str
    group: str = ""
    year: Optional[int] = None
    transmission: str = ""
    fuel: str = ""
    body_type: str = ""
    number_seats: int = 0
    number_doors: int = 0
    large_bags: int = 0
    small_bags: int = 0
    price: float = 0.0
    total_price: str = "0.00"
    currency: str = "CHF"
    count_days: int = 0
    mileage_limit: str = ""
    options: tuple[VehicleOption, ...] = ()
    thumbnail: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.brand} {self.mark}".strip()


class Location(BaseModel):
    """Pickup / return branch."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    address: str = ""
    longitude: str = ""
    latitude: str = ""


class Country(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    iso_code: str


class Pagination(BaseModel):
    total_count: int = 0
    per_page: int = 20
    page: int = 1
    count_pages: int = 1
    begin: int = 0
    end: int = 0


class SearchResult(BaseModel):
    """Vehicle search response."""
    vehicles: list[Vehicle] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
