from rental_booking.insurance.engine import (
    calculate_age,
    calculate_all_premiums,
    calculate_license_tenure,
    calculate_premium,
    check_eligibility,
    default_selection,
    filter_eligible,
    is_license_valid,
)
from rental_booking.insurance.rules import EU_COUNTRIES, INSURANCE_CATALOG, get_option

__all__ = [
    "INSURANCE_CATALOG",
    "EU_COUNTRIES",
    "get_option",
    "calculate_age",
    "calculate_license_tenure",
    "is_license_valid",
    "check_eligibility",
    "filter_eligible",
    "calculate_premium",
    "calculate_all_premiums",
    "default_selection",
]
