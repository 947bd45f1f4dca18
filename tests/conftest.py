"""Shared test fixtures and helpers."""

import asyncio
from datetime import datetime
from typing import Optional, Sequence

import pytest

from rental_booking.api.memory_api import InMemoryOrderApi
from rental_booking.booking.driver_store import InMemoryDriverInfoStore
from rental_booking.booking.orchestrator import BookingOrchestrator
from rental_booking.booking.session import BookingSession
from rental_booking.schemas.driver_schema import Driver
from rental_booking.schemas.order_schema import (
    ConfirmationResult,
    PaymentMethod,
    SearchCriteria,
)

# Wizard "now": two weeks before the default pickup.
FIXED_NOW = datetime(2026, 2, 1, 10, 0)
PICKUP = datetime(2026, 2, 16, 9, 0)
RETURN = datetime(2026, 2, 19, 9, 0)


def fixed_clock() -> datetime:
    return FIXED_NOW


def make_driver(**overrides) -> Driver:
    """A driver that passes the driver-data gate: 35 years old, licensed since 2010, German."""
    values = {
        "first_name": "Anna",
        "last_name": "Keller",
        "email": "anna.keller@example.com",
        "phone": "+41 79 123 45 67",
        "country": "DE",
        "city": "Berlin",
        "address": "Unter den Linden 5",
        "birthday": "1990-05-10",
        "license_num": "B072RRE2I55",
        "license_from": "2010-01-01",
        "license_to": "2030-01-01",
    }
    values.update(overrides)
    return Driver(**values)


def make_search(**overrides) -> SearchCriteria:
    values = {
        "pickup_location": "1",
        "return_location": "1",
        "date_from": PICKUP,
        "date_to": RETURN,
    }
    values.update(overrides)
    return SearchCriteria(**values)


class ScriptedConfirmApi(InMemoryOrderApi):
    """In-memory API whose confirm call returns a fixed response."""

    def __init__(self, confirmation: ConfirmationResult) -> None:
        super().__init__()
        self._confirmation = confirmation

    async def confirm_order(
        self,
        order_id: str,
        drivers: Sequence[Driver],
        payment_method: PaymentMethod,
    ) -> ConfirmationResult:
        self._record("confirm_order", order_id, tuple(drivers), payment_method)
        return self._confirmation


class EmptyOrderIdApi(InMemoryOrderApi):
    """In-memory API whose create call answers without an order id."""

    async def create_order(self, request) -> Optional[str]:
        self._record("create_order", request)
        return None


class GatedUploadApi(InMemoryOrderApi):
    """In-memory API whose uploads wait until ``gate`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.gate = asyncio.Event()

    async def upload_file(self, file):
        await self.gate.wait()
        return await super().upload_file(file)


class BrokenDriverStore(InMemoryDriverInfoStore):
    def save(self, order_id, drivers) -> None:
        raise OSError("disk full")


@pytest.fixture
def api():
    return InMemoryOrderApi()


@pytest.fixture
def driver_store():
    return InMemoryDriverInfoStore()


@pytest.fixture
def session():
    return BookingSession(session_id="BKS-test")


@pytest.fixture
def orchestrator(session, api, driver_store):
    return BookingOrchestrator(
        session,
        api,
        driver_store,
        clock=fixed_clock,
        confirm_retry_delay=0,
        settle_delay=0,
    )


async def search_and_select(orchestrator: BookingOrchestrator, vehicle_index: int = 0) -> str:
    """Run step 1 and step 2 against the in-memory API. Returns the order id."""
    await orchestrator.load_locations()
    result = await orchestrator.submit_search("2026-02-16", "09:00", "2026-02-19", "09:00")
    assert result["success"], result
    selected = await orchestrator.select_vehicle(orchestrator.state.vehicles[vehicle_index])
    assert selected["success"], selected
    return selected["order_id"]


def fill_driver(orchestrator: BookingOrchestrator, index: int = 0, **overrides) -> None:
    for name, value in make_driver(**overrides).model_dump().items():
        if name == "license_photo" or value in (None, ""):
            continue
        orchestrator.update_driver(index, name, value)


async def reach_confirm_step(orchestrator: BookingOrchestrator, **driver_overrides) -> str:
    """Drive the wizard to step 5 with a valid head driver. Returns the order id."""
    order_id = await search_and_select(orchestrator)
    fill_driver(orchestrator, **driver_overrides)
    assert orchestrator.submit_driver_data()["success"]
    assert orchestrator.submit_extras()["success"]
    return order_id
