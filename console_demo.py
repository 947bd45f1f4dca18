"""
Offline console demo: runs a full booking wizard without any network access.

Drives the real orchestrator, reducer, wizard gates and insurance engine
against the in-memory booking API. Designed for live demo walkthroughs.

Usage:
    python console_demo.py
    python console_demo.py --scenario card
    python console_demo.py --scenario young-driver
"""

import argparse
import asyncio
from datetime import datetime, timedelta
from typing import Awaitable, Callable

from rental_booking.api.memory_api import InMemoryOrderApi
from rental_booking.booking.orchestrator import BookingOrchestrator, OperationResult
from rental_booking.booking.session import BookingSession
from rental_booking.booking.state import BookingStep
from rental_booking.booking.summary import build_price_summary
from rental_booking.config import settings
from rental_booking.schemas.order_schema import LicenseFile, PaymentMethod

GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

HEAD_DRIVER = {
    "first_name": "Anna",
    "last_name": "Keller",
    "email": "anna.keller@example.com",
    "phone": "+41 79 123 45 67",
    "country": "DE",
    "city": "Berlin",
    "address": "Unter den Linden 5",
    "birthday": "1988-04-12",
    "license_num": "B072RRE2I55",
    "license_from": "2008-06-01",
    "license_to": "2031-06-01",
}


class ConsoleBooking:
    """One scripted customer walking through the booking wizard."""

    def __init__(self, api: InMemoryOrderApi) -> None:
        self.api = api
        self.session = BookingSession()
        self.orchestrator = BookingOrchestrator(self.session, api)
        pickup = (datetime.now() + timedelta(days=14)).date()
        self.date_from = pickup.isoformat()
        self.date_to = (pickup + timedelta(days=3)).isoformat()

    def step_say(self, text: str) -> None:
        step = BookingStep(self.orchestrator.state.current_step)
        print(f"{GREEN}{BOLD}[{step.name}]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def report(self, label: str, result: OperationResult) -> bool:
        if result.get("success"):
            self.system_log(f"{label}: ok")
            return True
        message = result.get("error") or "; ".join(result.get("errors", []))
        print(f"{RED}  !! {label} failed: {message}{RESET}")
        return False

    async def search(self) -> bool:
        await self.orchestrator.load_locations()
        state = self.orchestrator.state
        location = state.find_location(state.selected_location)
        self.step_say(f"Searching {location.name if location else '?'} from {self.date_from} to {self.date_to}")
        result = await self.orchestrator.submit_search(self.date_from, None, self.date_to, None)
        if not self.report("search", result):
            return False
        for vehicle in self.orchestrator.state.vehicles:
            self.system_log(
                f"{vehicle.id}: {vehicle.display_name} ({vehicle.group}) "
                f"{vehicle.total_price} {vehicle.currency}"
            )
        return True

    async def select_vehicle(self, index: int) -> bool:
        vehicle = self.orchestrator.state.vehicles[index]
        self.step_say(f"Choosing the {vehicle.display_name}")
        result = await self.orchestrator.select_vehicle(vehicle)
        if self.report("create order", result):
            self.system_log(f"Order: {result['order_id']}")
            return True
        return False

    async def enter_driver(self, **overrides: str) -> bool:
        details = {**HEAD_DRIVER, **overrides}
        self.step_say(f"Entering driver details for {details['first_name']} {details['last_name']}")
        for name, value in details.items():
            self.orchestrator.update_driver(0, name, value)
        upload = await self.orchestrator.upload_license_photo(
            0, LicenseFile(name="license-front.jpg", content=b"\xff\xd8demo", content_type="image/jpeg"),
        )
        self.report("license upload", upload)
        return self.report("driver data", self.orchestrator.submit_driver_data())

    def choose_insurance(self) -> bool:
        state = self.orchestrator.state
        self.step_say("Insurance options for the head driver")
        for calc in state.calculated_insurances:
            marker = "*" if calc.option_id == state.selected_insurance else " "
            self.system_log(
                f"{marker} {calc.option.title}: {calc.calculated_price} "
                f"(age x{calc.factors.age_factor}, tenure x{calc.factors.tenure_factor}, "
                f"country x{calc.factors.country_factor})"
            )
        return self.report("extras", self.orchestrator.submit_extras())

    async def confirm(self, method: PaymentMethod) -> OperationResult:
        self.orchestrator.set_payment_method(method)
        self.orchestrator.accept_terms()
        summary = build_price_summary(self.orchestrator.state)
        if summary is not None:
            self.step_say(
                f"Total {summary.total} {summary.currency} for {summary.rental_days} day(s), "
                f"paying by {method.value}"
            )
        result = await self.orchestrator.confirm_booking()
        self.report("confirmation", result)
        if result.get("redirect_url"):
            print(f"{YELLOW}  -> redirecting to {result['redirect_url']}{RESET}")
        if self.orchestrator.state.order_confirmed:
            print(f"{YELLOW}  -> booking confirmed, pay at the counter{RESET}")
        return result

    async def run_through(self, method: PaymentMethod, **driver_overrides: str) -> None:
        if not await self.search():
            return
        if not await self.select_vehicle(0):
            return
        if not await self.enter_driver(**driver_overrides):
            return
        if not self.choose_insurance():
            return
        await self.confirm(method)


async def scenario_cash(demo: ConsoleBooking) -> None:
    await demo.run_through(PaymentMethod.CASH)


async def scenario_card(demo: ConsoleBooking) -> None:
    await demo.run_through(PaymentMethod.CARD)


async def scenario_change_vehicle(demo: ConsoleBooking) -> None:
    await demo.search()
    await demo.select_vehicle(0)
    demo.orchestrator.wizard.go_to_step(BookingStep.SELECT_VEHICLE)
    await demo.select_vehicle(1)
    for order in demo.api.orders.values():
        demo.system_log(f"{order['order_id']} vehicle {order['vehicle_id']}: {order['status']}")


async def scenario_confirm_retry(demo: ConsoleBooking) -> None:
    demo.api.fail("confirm_order", message="Gateway timeout")
    await demo.run_through(PaymentMethod.CASH)
    demo.system_log(f"confirm_order calls: {demo.api.call_count('confirm_order')}")


async def scenario_young_driver(demo: ConsoleBooking) -> None:
    today = datetime.now().date()
    await demo.run_through(
        PaymentMethod.CASH,
        first_name="Luca",
        birthday=f"{today.year - 21}-01-15",
        license_from=(today - timedelta(days=200)).isoformat(),
        country="IT",
    )


SCENARIOS: dict[str, Callable[[ConsoleBooking], Awaitable[None]]] = {
    "cash": scenario_cash,
    "card": scenario_card,
    "change-vehicle": scenario_change_vehicle,
    "confirm-retry": scenario_confirm_retry,
    "young-driver": scenario_young_driver,
}


async def run_scenario(name: str) -> None:
    demo = ConsoleBooking(InMemoryOrderApi())

    print()
    print(f"{BOLD}{'=' * 60}{RESET}")
    print(f"{BOLD}  CAR RENTAL BOOKING - Scenario: {name}{RESET}")
    print(f"{BOLD}  App: {settings.app_name}  Session: {demo.session.session_id}{RESET}")
    print(f"{BOLD}{'=' * 60}{RESET}")
    print()

    await SCENARIOS[name](demo)

    state = demo.orchestrator.state
    print(f"\n{BOLD}{'=' * 60}{RESET}")
    print(f"{BOLD}  Scenario '{name}' complete.{RESET}")
    print(f"{DIM}  Step {state.current_step}, completed up to {state.max_completed_step}{RESET}")
    print(f"{DIM}  API calls: {' -> '.join(demo.api.call_names())}{RESET}")
    print(f"{DIM}  Actions dispatched: {len(demo.session.get_history())}{RESET}")
    print(f"{BOLD}{'=' * 60}{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline booking wizard demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(SCENARIOS),
        default="cash",
        help="Pre-scripted booking scenario to play",
    )
    args = parser.parse_args()
    asyncio.run(run_scenario(args.scenario))


if __name__ == "__main__":
    main()
