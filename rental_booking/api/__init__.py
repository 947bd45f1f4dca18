from rental_booking.api.memory_api import InMemoryOrderApi
from rental_booking.api.protocol import OrderApi, OrderApiError

__all__ = ["OrderApi", "OrderApiError", "InMemoryOrderApi"]
