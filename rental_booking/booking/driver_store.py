"""
Durable mirror of the driver list, keyed by order id.

Only the drivers survive a reload; everything else in the booking state is
rebuilt. A store that cannot read an entry treats it as absent.
"""

import json
import logging
import re
from pathlib import Path
from typing import Optional, Protocol, Sequence

from pydantic import ValidationError

from rental_booking.config import settings
from rental_booking.schemas.driver_schema import Driver

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class DriverInfoStore(Protocol):
    def save(self, order_id: str, drivers: Sequence[Driver]) -> None: ...

    def load(self, order_id: str) -> Optional[list[Driver]]: ...


def _decode(raw: object) -> list[Driver]:
    # Older entries held a single driver object rather than a list.
    items = raw if isinstance(raw, list) else [raw]
    return [Driver.model_validate(item) for item in items]


class InMemoryDriverInfoStore:
    """Process-local store. Used by tests and the console demo."""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def save(self, order_id: str, drivers: Sequence[Driver]) -> None:
        self._entries[order_id] = json.dumps([d.model_dump(mode="json") for d in drivers])

    def load(self, order_id: str) -> Optional[list[Driver]]:
        raw = self._entries.get(order_id)
        if raw is None:
            return None
        return _decode(json.loads(raw))

    def reset(self) -> None:
        """Clear all entries. Used by test fixtures for isolation."""
        self._entries.clear()


class JsonFileDriverInfoStore:
    """One JSON file per order under a directory."""

    def __init__(
        self,
        directory: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> None:
        self._directory = Path(directory or settings.storage.driver_store_dir)
        self._prefix = prefix if prefix is not None else settings.storage.driver_store_prefix

    def _path(self, order_id: str) -> Path:
        safe_id = _UNSAFE_KEY_CHARS.sub("_", order_id)
        return self._directory / f"{self._prefix}{safe_id}.json"

    def save(self, order_id: str, drivers: Sequence[Driver]) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        payload = [d.model_dump(mode="json") for d in drivers]
        path = self._path(order_id)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(path)
        logger.debug("Saved %d driver(s) for order %s", len(payload), order_id)

    def load(self, order_id: str) -> Optional[list[Driver]]:
        path = self._path(order_id)
        if not path.exists():
            return None
        try:
            return _decode(json.loads(path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, ValidationError, OSError) as exc:
            logger.error("Failed to parse stored driver info for %s: %s", order_id, exc)
            return None
