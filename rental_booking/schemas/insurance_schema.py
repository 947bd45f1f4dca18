"""Insurance catalog entries and their priced, per-driver counterparts."""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class InsuranceType(str, Enum):
    """How an option's ``price`` is applied to the rental."""
    FIX = "Fix"
    PRICE = "Price"  # per rental day
    PERCENT = "Percent"


class EligibilityCriteria(BaseModel):
    """Predicates gating whether an option may be offered to a driver.

    Unset bounds are not checked. Country lists hold ISO-style codes and are
    compared case-insensitively after trimming.
    """
    model_config = ConfigDict(frozen=True)

    min_age: Optional[int] = None
    max_age: Optional[int] = None
    min_tenure: Optional[float] = None
    max_tenure: Optional[float] = None
    allowed_countries: tuple[str, ...] = ()
    blocked_countries: tuple[str, ...] = ()
    requires_valid_license: bool = True


class CoverageDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    included: bool


class InsuranceOption(BaseModel):
    """Static catalog entry."""
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    type: InsuranceType
    value: str
    price: str
    price_title: str = ""
    icon: str = ""
    deposit: bool = False
    deposit_price: str = "0.00"
    damage: bool = False
    damage_access: str = "0.00"
    checked: bool = False
    eligibility_criteria: Optional[EligibilityCriteria] = None
    is_fallback: bool = False
    highlights: tuple[str, ...] = ()
    coverage_details: tuple[CoverageDetail, ...] = ()


class CalculationFactors(BaseModel):
    """Adjustments that went into a calculated premium."""
    model_config = ConfigDict(frozen=True)

    age_factor: Decimal
    tenure_factor: Decimal
    country_factor: Decimal
    is_valid: bool


class CalculatedInsurance(BaseModel):
    """An option priced for one driver, pickup date and rental length.

    Derived data: recomputed whenever head-driver details or dates change.
    """
    model_config = ConfigDict(frozen=True)

    option: InsuranceOption
    base_price: Decimal
    calculated_price: Decimal
    factors: CalculationFactors
    deposit_price: Decimal = Field(default=Decimal("0"))
    damage_access: Decimal = Field(default=Decimal("0"))

    @property
    def option_id(self) -> int:
        return self.option.id

    @property
    def is_valid(self) -> bool:
        return self.factors.is_valid
