"""
Centralized configuration with environment variable overrides.

Retry timing, payment redirect, storage location and search defaults are
configurable here. Insurance business rules (the 30-day license buffer,
age/tenure adjustments) are deliberately not: they live in the insurance
engine as fixed constants.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class BookingConfig:
    """Order lifecycle timing and booking defaults."""

    confirm_retry_delay_sec: float = _safe_float("CONFIRM_RETRY_DELAY", "1.0")
    update_settle_delay_sec: float = _safe_float("UPDATE_SETTLE_DELAY", "0.5")
    payment_url_base: str = os.getenv("PAYMENT_URL_BASE", "https://pay.rentsyst.com/")
    default_search_time: str = os.getenv("DEFAULT_SEARCH_TIME", "09:00")
    default_currency: str = os.getenv("DEFAULT_CURRENCY", "CHF")
    countries_language: str = os.getenv("COUNTRIES_LANGUAGE", "EN")


@dataclass(frozen=True)
class StorageConfig:
    """Where driver details are mirrored between page loads."""

    driver_store_dir: str = os.getenv("DRIVER_STORE_DIR", ".driver_info")
    driver_store_prefix: str = os.getenv("DRIVER_STORE_PREFIX", "driverInfo_")
    max_drivers: int = _safe_int("MAX_DRIVERS", "4")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    booking: BookingConfig = field(default_factory=BookingConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "car-rental-booking")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.booking.confirm_retry_delay_sec < 0:
        raise ValueError(
            f"CONFIRM_RETRY_DELAY must be >= 0, got {config.booking.confirm_retry_delay_sec}"
        )
    if config.booking.update_settle_delay_sec < 0:
        raise ValueError(
            f"UPDATE_SETTLE_DELAY must be >= 0, got {config.booking.update_settle_delay_sec}"
        )
    if not config.booking.payment_url_base.startswith(("http://", "https://")):
        raise ValueError(
            f"PAYMENT_URL_BASE must be an http(s) URL, got {config.booking.payment_url_base!r}"
        )
    if config.storage.max_drivers < 1:
        raise ValueError(
            f"MAX_DRIVERS must be >= 1, got {config.storage.max_drivers}"
        )
    if not config.storage.driver_store_dir.strip():
        raise ValueError("DRIVER_STORE_DIR must not be empty")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
