"""
Per-step completion gates.

A step may only be marked complete when its minimal data contract holds.
These checks are local and synchronous; none of them touches the network.

The driver-data gate checks age and license expiry against *today*. That is
intentionally separate from the insurance engine's 30-day rule, which is
measured from the pickup date.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from rental_booking.booking.state import BookingState, BookingStep
from rental_booking.insurance.engine import calculate_age
from rental_booking.schemas.driver_schema import REQUIRED_DRIVER_FIELDS, Driver
from rental_booking.utils import parse_date

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_DRIVER_AGE = 18

FIELD_LABELS: dict[str, str] = {
    "first_name": "First name",
    "last_name": "Last name",
    "email": "Email",
    "phone": "Phone",
    "country": "Country",
    "city": "City",
    "address": "Address",
    "birthday": "Birthday",
    "license_num": "License number",
    "license_from": "License issue date",
    "license_to": "License expiry date",
}


@dataclass
class StepValidation:
    """Outcome of a step gate."""
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    field_errors: dict[str, str] = field(default_factory=dict)


def _result(errors: list[str], field_errors: Optional[dict[str, str]] = None) -> StepValidation:
    return StepValidation(is_valid=not errors, errors=errors, field_errors=field_errors or {})


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value or ""))


def validate_driver(driver: Driver, index: int, today: date) -> dict[str, str]:
    """Field-level errors for one driver, keyed ``{index}_{field}``."""
    errors: dict[str, str] = {}

    for name in REQUIRED_DRIVER_FIELDS:
        value = getattr(driver, name)
        if not value or not str(value).strip():
            errors[f"{index}_{name}"] = f"{FIELD_LABELS[name]} is required"

    if driver.email.strip() and not is_valid_email(driver.email.strip()):
        errors[f"{index}_email"] = "Please enter a valid email"

    if driver.birthday.strip():
        age = calculate_age(driver.birthday, today)
        if age is None:
            errors[f"{index}_birthday"] = "Please enter a valid date"
        elif age < MIN_DRIVER_AGE:
            errors[f"{index}_birthday"] = f"Driver must be at least {MIN_DRIVER_AGE} years old"

    if driver.license_from.strip() and parse_date(driver.license_from) is None:
        errors[f"{index}_license_from"] = "Please enter a valid date"

    if driver.license_to.strip():
        expiry = parse_date(driver.license_to)
        if expiry is None:
            errors[f"{index}_license_to"] = "Please enter a valid date"
        elif expiry < today:
            errors[f"{index}_license_to"] = "License has expired"

    return errors


def validate_search(state: BookingState) -> StepValidation:
    errors = []
    if state.search is None:
        errors.append("Please enter search dates")
    if not (state.selected_location or (state.search and state.search.pickup_location)):
        errors.append("Please select a pickup location")
    return _result(errors)


def validate_vehicle(state: BookingState) -> StepValidation:
    errors = []
    if state.selected_vehicle is None:
        errors.append("Please select a vehicle")
    return _result(errors)


def validate_drivers(state: BookingState, today: date) -> StepValidation:
    if not state.drivers:
        return _result(["At least one driver is required"])
    field_errors: dict[str, str] = {}
    for index, driver in enumerate(state.drivers):
        field_errors.update(validate_driver(driver, index, today))
    errors = [
        f"Driver {int(key.split('_', 1)[0]) + 1}: {msg}" for key, msg in field_errors.items()
    ]
    return _result(errors, field_errors)


def validate_extras(state: BookingState) -> StepValidation:
    errors = []
    if state.selected_insurance is None:
        errors.append("Please select an insurance option")
    else:
        calc = state.selected_calculation
        if calc is not None and not calc.is_valid:
            errors.append("Your license is not valid for the selected insurance")
    return _result(errors)


def validate_confirmation(state: BookingState) -> StepValidation:
    errors = []
    if not state.terms_accepted:
        errors.append("Please accept the terms and conditions")
    return _result(errors)


def get_step_validation(state: BookingState, step: int, today: date) -> StepValidation:
    """Run the gate for ``step``. Unknown steps are reported as invalid."""
    if step == BookingStep.SEARCH:
        return validate_search(state)
    if step == BookingStep.SELECT_VEHICLE:
        return validate_vehicle(state)
    if step == BookingStep.DRIVER_DATA:
        return validate_drivers(state, today)
    if step == BookingStep.EXTRAS:
        return validate_extras(state)
    if step == BookingStep.CONFIRM:
        return validate_confirmation(state)
    return _result([f"Unknown step: {step}"])
