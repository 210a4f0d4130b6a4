"""
Application configuration using pydantic-settings.
All config is loaded from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Booking Ledger API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Stripe
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_CURRENCY: str = "gbp"
    CHECKOUT_SESSION_PREFIX: str = "cs_"

    # Google Sheets row store
    GOOGLE_SERVICE_ACCOUNT: str = ""  # service-account JSON blob
    GOOGLE_SHEET_ID: str = ""
    BOOKINGS_SHEET_ID: str = ""  # falls back to GOOGLE_SHEET_ID
    EVENTS_RANGE: str = "Events!A:J"
    BOOKINGS_RANGE: str = "Bookings!A:P"
    ROW_STORE_BACKEND: Literal["sheets", "memory"] = "sheets"
    VERIFY_SCHEMA_ON_STARTUP: bool = True

    # Site
    SITE_URL: str = "http://localhost:3000"

    # Booking confirmation policy
    BOOKING_WRITE_POLICY: Literal["append_on_confirm", "update_on_confirm"] = "append_on_confirm"
    BOOKING_LOOKUP_KEYS: Literal["session", "payment_intent", "either"] = "either"
    CONFIRMED_STATUS: str = "Confirmed"
    PENDING_STATUS: str = ""
    DIRECT_BOOKING_MARKER: str = "DIRECT_BOOKING"
    CAPACITY_MAX_RETRIES: int = 3

    # Confirmation page
    EVENT_DURATION_HOURS: int = 2
    DEFAULT_EVENT_LOCATION: str = "Location TBC"
    CURRENCY_SYMBOL: str = "£"

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
    }

    @property
    def bookings_spreadsheet_id(self) -> str:
        return self.BOOKINGS_SHEET_ID or self.GOOGLE_SHEET_ID


@lru_cache()
def get_settings() -> Settings:
    return Settings()
