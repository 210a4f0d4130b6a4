"""
Payment gateway interface.
Keeps the booking services independent of the payment provider SDK.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class PaymentRecord:
    """Provider-neutral view of a checkout session or payment intent."""

    session_id: Optional[str] = None
    payment_intent_id: Optional[str] = None
    customer_email: Optional[str] = None
    amount_total: Optional[int] = None  # minor units (pence)
    paid: bool = False  # funds captured, or nothing was owed
    metadata: dict[str, str] = field(default_factory=dict)
    url: Optional[str] = None


@dataclass
class WebhookEvent:
    type: str
    payment: Optional[PaymentRecord] = None


class PaymentGateway(ABC):
    """
    Interface for the payment provider.

    Implementations:
    - StripeGateway: Stripe checkout sessions and payment intents
    """

    @abstractmethod
    async def create_checkout_session(self, params: dict[str, Any]) -> PaymentRecord:
        """Create a hosted checkout session and return it (with its url)."""
        pass

    @abstractmethod
    async def retrieve_checkout_session(self, session_id: str) -> PaymentRecord:
        """
        Raises:
            UpstreamProviderError: on any provider failure
        """
        pass

    @abstractmethod
    async def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentRecord:
        pass

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify a signed webhook body.

        Raises:
            ValidationError: if the signature or payload is invalid
        """
        pass
