from rental_booking.booking.driver_store import (
    DriverInfoStore,
    InMemoryDriverInfoStore,
    JsonFileDriverInfoStore,
)
from rental_booking.booking.orchestrator import BookingOrchestrator, OperationResult
from rental_booking.booking.reducer import reduce
from rental_booking.booking.session import BookingSession
from rental_booking.booking.state import (
    Action,
    ActionType,
    BookingState,
    BookingStep,
    initial_state,
)
from rental_booking.booking.summary import PriceSummary, build_price_summary
from rental_booking.booking.wizard import WizardController

__all__ = [
    "BookingOrchestrator",
    "OperationResult",
    "BookingSession",
    "BookingState",
    "BookingStep",
    "Action",
    "ActionType",
    "initial_state",
    "reduce",
    "WizardController",
    "DriverInfoStore",
    "InMemoryDriverInfoStore",
    "JsonFileDriverInfoStore",
    "PriceSummary",
    "build_price_summary",
]
