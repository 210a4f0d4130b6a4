"""
Backend and gateway factory.
Configures which grid backend and payment gateway the API uses.
"""

from typing import Optional

from booking_ledger.core.config import get_settings
from booking_ledger.core.logging import get_logger
from booking_ledger.infrastructure.sheets_backend import GoogleSheetsBackend, load_service_account_info
from booking_ledger.infrastructure.stripe_gateway import StripeGateway
from booking_ledger.services.interfaces.grid_backend import GridBackend
from booking_ledger.services.interfaces.memory_backend import InMemoryGridBackend
from booking_ledger.services.interfaces.payment_gateway import PaymentGateway

logger = get_logger(__name__)


def create_grid_backend() -> GridBackend:
    """
    Build the configured grid backend.

    - sheets: Google Sheets (needs GOOGLE_SERVICE_ACCOUNT)
    - memory: process-local grids, empty until seeded
    """
    settings = get_settings()

    if settings.ROW_STORE_BACKEND == "memory":
        logger.warning("row_store_in_memory", message="Bookings will not persist")
        return InMemoryGridBackend()

    return GoogleSheetsBackend(load_service_account_info(settings.GOOGLE_SERVICE_ACCOUNT))


def create_payment_gateway() -> PaymentGateway:
    settings = get_settings()
    return StripeGateway(settings.STRIPE_SECRET_KEY, settings.STRIPE_WEBHOOK_SECRET)


# Singleton instances
_backend: Optional[GridBackend] = None
_gateway: Optional[PaymentGateway] = None


def get_grid_backend() -> GridBackend:
    """Get grid backend singleton."""
    global _backend
    if _backend is None:
        _backend = create_grid_backend()
    return _backend


def get_payment_gateway() -> PaymentGateway:
    """Get payment gateway singleton."""
    global _gateway
    if _gateway is None:
        _gateway = create_payment_gateway()
    return _gateway
