"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .sheets_backend import GoogleSheetsBackend
from .stripe_gateway import StripeGateway

__all__ = ['GoogleSheetsBackend', 'StripeGateway']
