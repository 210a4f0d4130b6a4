"""
FastAPI dependencies: settings, ledger and confirmation policy.
Tests override get_grid_backend and get_payment_gateway.
"""

from fastapi import Depends

from booking_ledger.core.config import Settings, get_settings
from booking_ledger.services.booking_service import ConfirmationPolicy
from booking_ledger.services.interfaces.grid_backend import GridBackend
from booking_ledger.services.ledger import Ledger, build_ledger
from booking_ledger.services.strategy_factory import get_grid_backend


def get_ledger(
    backend: GridBackend = Depends(get_grid_backend),
    settings: Settings = Depends(get_settings),
) -> Ledger:
    return build_ledger(backend, settings)


def get_policy(settings: Settings = Depends(get_settings)) -> ConfirmationPolicy:
    return ConfirmationPolicy.from_settings(settings)
