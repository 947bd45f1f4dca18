"""Tests for the booking price summary."""

from dataclasses import replace
from decimal import Decimal

from rental_booking.booking.state import initial_state
from rental_booking.booking.summary import build_price_summary
from rental_booking.insurance.engine import calculate_premium
from rental_booking.insurance.rules import INSURANCE_CATALOG
from rental_booking.schemas.vehicle_schema import Vehicle
from tests.conftest import make_driver, make_search

GOLF = Vehicle(id="101", brand="VW", mark="Golf", price=59.0, total_price="177.00", count_days=3)


class TestPriceSummary:
    def test_none_without_vehicle(self):
        assert build_price_summary(initial_state()) is None

    def test_vehicle_only(self):
        summary = build_price_summary(replace(initial_state(), selected_vehicle=GOLF))
        assert summary.total == Decimal("177.00")
        assert summary.insurance_total == Decimal("0")
        assert summary.currency == "CHF"

    def test_with_insurance(self):
        calc = calculate_premium(INSURANCE_CATALOG[0], make_driver(), "2026-02-16", 3)
        state = replace(
            initial_state(),
            selected_vehicle=GOLF,
            selected_insurance=1001,
            calculated_insurances=(calc,),
        )
        summary = build_price_summary(state)
        assert summary.total == Decimal("253.00")
        assert summary.deposit == Decimal("250.00")
        assert summary.rental_days == 3

    def test_days_from_search_when_vehicle_has_none(self):
        vehicle = GOLF.model_copy(update={"count_days": 0})
        state = replace(initial_state(), selected_vehicle=vehicle, search=make_search())
        assert build_price_summary(state).rental_days == 3

    def test_blank_currency_uses_default(self):
        vehicle = GOLF.model_copy(update={"currency": ""})
        summary = build_price_summary(replace(initial_state(), selected_vehicle=vehicle))
        assert summary.currency
