"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .grid_backend import GridBackend
from .memory_backend import InMemoryGridBackend
from .payment_gateway import PaymentGateway, PaymentRecord, WebhookEvent

__all__ = ['GridBackend', 'InMemoryGridBackend', 'PaymentGateway', 'PaymentRecord', 'WebhookEvent']
