"""
Payment reference resolution and checkout session creation.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from booking_ledger.core.config import Settings
from booking_ledger.core.logging import get_logger
from booking_ledger.schemas.booking import CheckoutRequest
from booking_ledger.services.interfaces.payment_gateway import PaymentGateway, PaymentRecord

logger = get_logger(__name__)

LOOKUP_SESSION = "session"
LOOKUP_PAYMENT_INTENT = "payment_intent"
LOOKUP_EITHER = "either"


@dataclass
class ResolvedPayment:
    original_id: str
    payment_intent_id: str
    payment: Optional[PaymentRecord] = None  # set when the provider was called

    @property
    def session_id(self) -> Optional[str]:
        if self.payment and self.payment.session_id:
            return self.payment.session_id
        return None

    def lookup_keys(self, mode: str) -> list[str]:
        """Payment-reference values to match, in priority order."""
        if mode == LOOKUP_SESSION:
            return [self.original_id]
        if mode == LOOKUP_PAYMENT_INTENT:
            return [self.payment_intent_id]
        keys = [self.payment_intent_id]
        if self.original_id != self.payment_intent_id:
            keys.append(self.original_id)
        return keys


def resolved_from_session(payment: PaymentRecord) -> ResolvedPayment:
    """A session we already hold (e.g. from a verified webhook event)."""
    return ResolvedPayment(
        original_id=payment.session_id,
        payment_intent_id=payment.payment_intent_id or payment.session_id,
        payment=payment,
    )


async def resolve_payment_reference(
    gateway: PaymentGateway,
    identifier: str,
    session_prefix: str = "cs_",
) -> ResolvedPayment:
    """
    Resolve a checkout-session id to its payment-intent id.
    Anything without the session prefix is already canonical.
    """
    if not identifier.startswith(session_prefix):
        return ResolvedPayment(original_id=identifier, payment_intent_id=identifier)

    session = await gateway.retrieve_checkout_session(identifier)
    if not session.payment_intent_id:
        logger.warning("session_without_payment_intent", session_id=identifier)
    resolved = resolved_from_session(session)
    logger.info(
        "payment_reference_resolved",
        session_id=identifier,
        payment_intent_id=resolved.payment_intent_id,
    )
    return resolved


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def checkout_metadata(request: CheckoutRequest) -> dict[str, str]:
    """Every booking field travels with the session; Stripe metadata is str-only."""
    metadata = {
        "eventId": request.event_id,
        "eventName": request.event_name,
        "customerName": request.customer_name,
        "customerEmail": request.customer_email,
        "skillLevel": request.skill_level or "",
        "addons": ", ".join(request.addons) if request.addons else "none",
        "amount": f"{request.amount:.2f}",
    }
    if request.discount_code:
        metadata["discountCode"] = request.discount_code
    if request.original_amount is not None:
        metadata["originalAmount"] = f"{request.original_amount:.2f}"
    return metadata


def checkout_description(request: CheckoutRequest) -> str:
    description = f"Booking for {request.event_name}"
    if request.addons:
        description += f" (Includes: {', '.join(request.addons)})"
    if request.discount_code:
        description += f" - discount {request.discount_code}"
    return description


async def create_checkout_session(
    gateway: PaymentGateway,
    settings: Settings,
    request: CheckoutRequest,
) -> PaymentRecord:
    metadata = checkout_metadata(request)
    params = {
        "payment_method_types": ["card"],
        "customer_email": request.customer_email,
        "line_items": [
            {
                "price_data": {
                    "currency": settings.STRIPE_CURRENCY,
                    "product_data": {
                        "name": request.event_name,
                        "description": checkout_description(request),
                    },
                    "unit_amount": to_minor_units(request.amount),
                },
                "quantity": 1,
            }
        ],
        "mode": "payment",
        "success_url": f"{settings.SITE_URL}/success.html?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{settings.SITE_URL}?event={request.event_id}",
        "metadata": metadata,
        # Copied so lookups keyed by the payment intent still see the booking fields
        "payment_intent_data": {"metadata": metadata},
    }

    session = await gateway.create_checkout_session(params)
    logger.info(
        "checkout_session_created",
        session_id=session.session_id,
        event_id=request.event_id,
        amount=str(request.amount),
    )
    return session
