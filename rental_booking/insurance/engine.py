"""
Insurance eligibility filtering and premium calculation.

Every function here is pure: the pickup date is always passed in, never
read from the system clock, so results are reproducible for a given
driver and booking.

Usage:
    options = calculate_all_premiums(INSURANCE_CATALOG, head_driver, "2026-02-16", 3)
    default = default_selection(options)
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Sequence

from rental_booking.insurance.rules import EU_COUNTRIES
from rental_booking.schemas.driver_schema import Driver
from rental_booking.schemas.insurance_schema import (
    CalculatedInsurance,
    CalculationFactors,
    InsuranceOption,
    InsuranceType,
)
from rental_booking.utils import DateLike, parse_date

logger = logging.getLogger(__name__)

# Hard business rule: the license must outlive pickup by this many days.
LICENSE_VALIDITY_BUFFER_DAYS = 30

YOUNG_DRIVER_AGE = 25
SENIOR_DRIVER_AGE = 65
YOUNG_DRIVER_ADJUSTMENT = Decimal("0.20")
SENIOR_DRIVER_ADJUSTMENT = Decimal("0.15")

NOVICE_TENURE_YEARS = 1
JUNIOR_TENURE_YEARS = 3
NOVICE_TENURE_ADJUSTMENT = Decimal("0.30")
JUNIOR_TENURE_ADJUSTMENT = Decimal("0.15")

EU_COUNTRY_MULTIPLIER = Decimal("0.95")
DEFAULT_COUNTRY_MULTIPLIER = Decimal("1.0")
INVALID_LICENSE_PENALTY = Decimal("2")

_CENT = Decimal("0.01")


def _years_between(start: DateLike, end: DateLike) -> Optional[int]:
    """Whole calendar years from ``start`` to ``end``, or None if unparseable."""
    first = parse_date(start)
    last = parse_date(end)
    if first is None or last is None:
        return None
    years = last.year - first.year
    if (last.month, last.day) < (first.month, first.day):
        years -= 1
    return years


def calculate_age(birthday: DateLike, pickup_date: DateLike) -> Optional[int]:
    """Driver age in whole years on the pickup date."""
    return _years_between(birthday, pickup_date)


def calculate_license_tenure(license_from: DateLike, pickup_date: DateLike) -> Optional[int]:
    """Whole years the license has been held at pickup, never negative."""
    tenure = _years_between(license_from, pickup_date)
    if tenure is None:
        return None
    return max(0, tenure)


def is_license_valid(license_to: DateLike, pickup_date: DateLike) -> bool:
    """True if the license has at least 30 days left at pickup."""
    expiry = parse_date(license_to)
    pickup = parse_date(pickup_date)
    if expiry is None or pickup is None:
        return False
    return (expiry - pickup).days >= LICENSE_VALIDITY_BUFFER_DAYS


def get_age_adjustment(age: Optional[int]) -> Decimal:
    if age is None:
        return Decimal("0")
    if age < YOUNG_DRIVER_AGE:
        return YOUNG_DRIVER_ADJUSTMENT
    if age > SENIOR_DRIVER_AGE:
        return SENIOR_DRIVER_ADJUSTMENT
    return Decimal("0")


def get_tenure_adjustment(tenure: Optional[int]) -> Decimal:
    if tenure is None:
        return Decimal("0")
    if tenure < NOVICE_TENURE_YEARS:
        return NOVICE_TENURE_ADJUSTMENT
    if tenure < JUNIOR_TENURE_YEARS:
        return JUNIOR_TENURE_ADJUSTMENT
    return Decimal("0")


def _normalize_country(country: Optional[str]) -> str:
    return (country or "").strip().upper()


def get_country_multiplier(country: Optional[str]) -> Decimal:
    """EU residents get a 5% discount."""
    if _normalize_country(country) in EU_COUNTRIES:
        return EU_COUNTRY_MULTIPLIER
    return DEFAULT_COUNTRY_MULTIPLIER


def _parse_amount(raw: str) -> Decimal:
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    return amount


def _round_cents(amount: Decimal) -> Decimal:
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def check_eligibility(option: InsuranceOption, driver: Driver, pickup_date: DateLike) -> bool:
    """
    Decide whether ``option`` may be offered to ``driver``.

    Options without criteria are open to everyone. Otherwise every
    configured predicate must hold; an age or tenure bound that cannot be
    evaluated (unparseable date) counts as failed.
    """
    criteria = option.eligibility_criteria
    if criteria is None:
        return True

    age = calculate_age(driver.birthday, pickup_date)
    tenure = calculate_license_tenure(driver.license_from, pickup_date)

    if criteria.requires_valid_license and not is_license_valid(driver.license_to, pickup_date):
        return False

    if criteria.min_age is not None and (age is None or age < criteria.min_age):
        return False
    if criteria.max_age is not None and (age is None or age > criteria.max_age):
        return False

    if criteria.min_tenure is not None and (tenure is None or tenure < criteria.min_tenure):
        return False
    if criteria.max_tenure is not None and (tenure is None or tenure > criteria.max_tenure):
        return False

    country = _normalize_country(driver.country)
    if criteria.allowed_countries:
        if country not in {_normalize_country(c) for c in criteria.allowed_countries}:
            return False
    if criteria.blocked_countries:
        if country in {_normalize_country(c) for c in criteria.blocked_countries}:
            return False

    return True


def filter_eligible(
    catalog: Sequence[InsuranceOption], driver: Driver, pickup_date: DateLike
) -> list[InsuranceOption]:
    """
    Return the options ``driver`` qualifies for, in catalog order.

    Never empty for a non-empty catalog: when nothing qualifies, the
    fallback option is offered (first ``is_fallback`` entry, else the first
    entry without criteria, else the first entry).
    """
    eligible = [opt for opt in catalog if check_eligibility(opt, driver, pickup_date)]
    if eligible:
        return eligible

    if not catalog:
        return []

    fallback = (
        next((opt for opt in catalog if opt.is_fallback), None)
        or next((opt for opt in catalog if opt.eligibility_criteria is None), None)
        or catalog[0]
    )
    logger.info("No eligible insurance for driver, offering fallback %s", fallback.id)
    return [fallback]


def calculate_premium(
    option: InsuranceOption, driver: Driver, pickup_date: DateLike, rental_days: int
) -> CalculatedInsurance:
    """
    Price ``option`` for ``driver``.

    ``Price`` options are charged per rental day; ``Fix`` and ``Percent``
    use the base as-is. A valid license applies
    ``(1 + age_adj + tenure_adj) * country_multiplier``. An invalid one
    bypasses all adjustments and charges twice the base price.
    """
    age = calculate_age(driver.birthday, pickup_date)
    tenure = calculate_license_tenure(driver.license_from, pickup_date)
    valid = is_license_valid(driver.license_to, pickup_date)

    age_adjustment = get_age_adjustment(age)
    tenure_adjustment = get_tenure_adjustment(tenure)
    country_multiplier = get_country_multiplier(driver.country)

    base_price = _parse_amount(option.price)
    price = base_price
    if option.type == InsuranceType.PRICE:
        price = base_price * rental_days

    if valid:
        price = price * (1 + age_adjustment + tenure_adjustment) * country_multiplier
    else:
        price = base_price * INVALID_LICENSE_PENALTY

    return CalculatedInsurance(
        option=option,
        base_price=base_price,
        calculated_price=_round_cents(price),
        factors=CalculationFactors(
            age_factor=1 + age_adjustment,
            tenure_factor=1 + tenure_adjustment,
            country_factor=country_multiplier,
            is_valid=valid,
        ),
        deposit_price=_parse_amount(option.deposit_price),
        damage_access=_parse_amount(option.damage_access),
    )


def calculate_all_premiums(
    catalog: Sequence[InsuranceOption],
    driver: Driver,
    pickup_date: DateLike,
    rental_days: int,
) -> list[CalculatedInsurance]:
    """Price every option the driver is eligible for, preserving catalog order."""
    return [
        calculate_premium(option, driver, pickup_date, rental_days)
        for option in filter_eligible(catalog, driver, pickup_date)
    ]


def default_selection(calculated: Sequence[CalculatedInsurance]) -> Optional[CalculatedInsurance]:
    """The option preselected for the customer: first ``checked``, else first."""
    for calc in calculated:
        if calc.option.checked:
            return calc
    return calculated[0] if calculated else None
