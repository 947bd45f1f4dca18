"""Price breakdown shown beside the wizard: vehicle rental plus selected insurance."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from rental_booking.booking.state import BookingState
from rental_booking.config import settings


@dataclass(frozen=True)
class PriceSummary:
    vehicle_total: Decimal
    insurance_total: Decimal
    deposit: Decimal
    rental_days: int
    currency: str

    @property
    def total(self) -> Decimal:
        return self.vehicle_total + self.insurance_total


def _amount(raw: str) -> Decimal:
    try:
        return Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")


def build_price_summary(state: BookingState) -> Optional[PriceSummary]:
    """Summarize the current selection. None until a vehicle is chosen."""
    vehicle = state.selected_vehicle
    if vehicle is None:
        return None

    calc = state.selected_calculation
    days = vehicle.count_days or (state.search.rental_days if state.search else 0)
    return PriceSummary(
        vehicle_total=_amount(vehicle.total_price),
        insurance_total=calc.calculated_price if calc is not None else Decimal("0"),
        deposit=calc.deposit_price if calc is not None else Decimal("0"),
        rental_days=days,
        currency=vehicle.currency or settings.booking.default_currency,
    )
