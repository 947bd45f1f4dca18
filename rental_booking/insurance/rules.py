"""Insurance product catalog with eligibility criteria and base prices."""

from typing import Optional

from rental_booking.schemas.insurance_schema import (
    CoverageDetail,
    EligibilityCriteria,
    InsuranceOption,
    InsuranceType,
)

# "31" is the dialling code some clients submit for the Netherlands.
EU_COUNTRIES: frozenset[str] = frozenset({
    "AT", "BE", "BG", "HR", "CY", "CZ", "DK", "EE", "FI", "FR",
    "DE", "GR", "HU", "IE", "IT", "LV", "LT", "LU", "MT", "NL",
    "PL", "PT", "RO", "SK", "SI", "ES", "SE", "31",
})

_EU_LIST: tuple[str, ...] = tuple(sorted(EU_COUNTRIES))


def _coverage(*items: tuple[str, bool]) -> tuple[CoverageDetail, ...]:
    return tuple(CoverageDetail(text=text, included=included) for text, included in items)


INSURANCE_CATALOG: tuple[InsuranceOption, ...] = (
    InsuranceOption(
        id=1001,
        title="Basic Coverage",
        type=InsuranceType.FIX,
        value="80.00",
        price="80.00",
        icon="insur-min",
        deposit=True,
        deposit_price="250.00",
        damage=True,
        damage_access="250.00",
        checked=True,
        eligibility_criteria=EligibilityCriteria(min_age=18),
        is_fallback=True,
        highlights=("Third party liability", "Collision damage waiver", "250 CHF excess"),
        coverage_details=_coverage(
            ("Third party liability up to 1M CHF", True),
            ("Collision damage waiver (CDW)", True),
            ("Fire and theft protection", True),
            ("24/7 roadside assistance", True),
            ("Windscreen & glass damage", False),
            ("Tire & rim damage", False),
            ("Personal accident insurance", False),
            ("Zero excess option", False),
        ),
    ),
    InsuranceOption(
        id=1002,
        title="Young Driver Coverage",
        type=InsuranceType.FIX,
        value="120.00",
        price="120.00",
        icon="insur-mid",
        deposit=True,
        deposit_price="300.00",
        damage=True,
        damage_access="300.00",
        eligibility_criteria=EligibilityCriteria(
            max_age=24,
            max_tenure=2.99,
            allowed_countries=_EU_LIST,
        ),
        highlights=("Under 25 specialist", "Enhanced protection", "300 CHF excess"),
        coverage_details=_coverage(
            ("Third party liability up to 1M CHF", True),
            ("Collision damage waiver (CDW)", True),
            ("Fire and theft protection", True),
            ("24/7 roadside assistance", True),
            ("Young driver surcharge included", True),
            ("Windscreen & glass damage", False),
            ("Tire & rim damage", False),
            ("Zero excess option", False),
        ),
    ),
    InsuranceOption(
        id=1003,
        title="Premium Coverage",
        type=InsuranceType.FIX,
        value="100.00",
        price="100.00",
        icon="insur-max",
        eligibility_criteria=EligibilityCriteria(min_age=25, max_age=65, min_tenure=3),
        highlights=("Zero excess", "Full protection", "No deposit required"),
        coverage_details=_coverage(
            ("Third party liability up to 2M CHF", True),
            ("Collision damage waiver (CDW)", True),
            ("Fire and theft protection", True),
            ("24/7 roadside assistance", True),
            ("Windscreen & glass damage", True),
            ("Tire & rim damage", True),
            ("Personal accident insurance", True),
            ("Zero excess - no deductible", True),
        ),
    ),
    InsuranceOption(
        id=1004,
        title="Senior Driver Coverage",
        type=InsuranceType.FIX,
        value="110.00",
        price="110.00",
        icon="insur-mid",
        deposit=True,
        deposit_price="350.00",
        damage=True,
        damage_access="350.00",
        eligibility_criteria=EligibilityCriteria(
            min_age=66,
            min_tenure=5,
            allowed_countries=_EU_LIST,
        ),
        highlights=("Age 65+ specialist", "Enhanced support", "350 CHF excess"),
        coverage_details=_coverage(
            ("Third party liability up to 1M CHF", True),
            ("Collision damage waiver (CDW)", True),
            ("Fire and theft protection", True),
            ("24/7 roadside assistance", True),
            ("Personal accident insurance", True),
            ("Windscreen & glass damage", False),
            ("Tire & rim damage", False),
            ("Zero excess option", False),
        ),
    ),
    InsuranceOption(
        id=1005,
        title="Comprehensive Coverage",
        type=InsuranceType.FIX,
        value="150.00",
        price="150.00",
        icon="insur-max",
        deposit=True,
        deposit_price="500.00",
        damage=True,
        damage_access="500.00",
        eligibility_criteria=EligibilityCriteria(max_age=24, max_tenure=0.99),
        highlights=("Maximum protection", "All-inclusive cover", "500 CHF excess"),
        coverage_details=_coverage(
            ("Third party liability up to 2M CHF", True),
            ("Collision damage waiver (CDW)", True),
            ("Fire and theft protection", True),
            ("24/7 roadside assistance", True),
            ("Windscreen & glass damage", True),
            ("Tire & rim damage", True),
            ("Personal accident insurance", True),
            ("New driver protection", True),
        ),
    ),
    InsuranceOption(
        id=1006,
        title="Standard Coverage",
        type=InsuranceType.FIX,
        value="90.00",
        price="90.00",
        icon="insur-min",
        eligibility_criteria=EligibilityCriteria(min_age=25, max_age=65),
        highlights=("No deposit", "Essential protection", "Best value"),
        coverage_details=_coverage(
            ("Third party liability up to 1M CHF", True),
            ("Collision damage waiver (CDW)", True),
            ("Fire and theft protection", True),
            ("24/7 roadside assistance", True),
            ("Windscreen & glass damage", False),
            ("Tire & rim damage", False),
            ("Personal accident insurance", False),
            ("Zero excess option", False),
        ),
    ),
)


def get_option(option_id: int) -> Optional[InsuranceOption]:
    """Look up a catalog entry by id."""
    for option in INSURANCE_CATALOG:
        if option.id == option_id:
            return option
    return None
