"""
Stripe payment gateway.
Wraps the synchronous Stripe SDK and maps its objects to PaymentRecord.
"""

from typing import Any, Optional

import stripe
from starlette.concurrency import run_in_threadpool

from booking_ledger.core.errors import ConfigurationError, UpstreamProviderError, ValidationError
from booking_ledger.core.logging import get_logger
from booking_ledger.core.metrics import record_provider_error
from booking_ledger.services.interfaces.payment_gateway import (
    PaymentGateway,
    PaymentRecord,
    WebhookEvent,
)

logger = get_logger(__name__)


def _as_dict(obj: Any) -> dict:
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return dict(obj)
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return dict(obj)


PAID_SESSION_STATUSES = ("paid", "no_payment_required")


def _object_id(value: Any) -> Optional[str]:
    """payment_intent may be an id or an expanded object."""
    if value is None or isinstance(value, str):
        return value
    return getattr(value, "id", None)


def session_to_record(session: Any) -> PaymentRecord:
    email = getattr(session, "customer_email", None)
    if not email:
        details = getattr(session, "customer_details", None)
        email = getattr(details, "email", None) if details else None
    return PaymentRecord(
        session_id=session.id,
        payment_intent_id=_object_id(getattr(session, "payment_intent", None)),
        customer_email=email,
        amount_total=getattr(session, "amount_total", None),
        paid=getattr(session, "payment_status", None) in PAID_SESSION_STATUSES,
        metadata=_as_dict(getattr(session, "metadata", None)),
        url=getattr(session, "url", None),
    )


def intent_to_record(intent: Any) -> PaymentRecord:
    metadata = _as_dict(getattr(intent, "metadata", None))
    amount = getattr(intent, "amount_received", None) or getattr(intent, "amount", None)
    return PaymentRecord(
        payment_intent_id=intent.id,
        customer_email=getattr(intent, "receipt_email", None) or metadata.get("customerEmail"),
        amount_total=amount,
        paid=getattr(intent, "status", None) == "succeeded",
        metadata=metadata,
    )


class StripeGateway(PaymentGateway):
    """Stripe SDK calls run in the threadpool; the API key is passed per call."""

    def __init__(self, api_key: str, webhook_secret: str = ""):
        if not api_key:
            raise ConfigurationError("Stripe secret key not configured")
        self._api_key = api_key
        self._webhook_secret = webhook_secret

    async def _call(self, operation: str, fn, *args, **kwargs):
        try:
            return await run_in_threadpool(fn, *args, api_key=self._api_key, **kwargs)
        except stripe.StripeError as e:
            record_provider_error(operation)
            message = getattr(e, "user_message", None) or str(e)
            logger.error("stripe_call_failed", operation=operation, error=message)
            raise UpstreamProviderError(message) from e

    async def create_checkout_session(self, params: dict[str, Any]) -> PaymentRecord:
        session = await self._call("create_checkout_session", stripe.checkout.Session.create, **params)
        return session_to_record(session)

    async def retrieve_checkout_session(self, session_id: str) -> PaymentRecord:
        session = await self._call("retrieve_checkout_session", stripe.checkout.Session.retrieve, session_id)
        return session_to_record(session)

    async def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentRecord:
        intent = await self._call("retrieve_payment_intent", stripe.PaymentIntent.retrieve, payment_intent_id)
        return intent_to_record(intent)

    def construct_event(self, payload: bytes, signature: str) -> WebhookEvent:
        if not self._webhook_secret:
            raise ConfigurationError("Stripe webhook secret not configured")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning("webhook_signature_invalid", error=str(e))
            raise ValidationError(f"Webhook Error: {e}") from e

        payment = None
        if event.type.startswith("checkout.session."):
            payment = session_to_record(event.data.object)
        return WebhookEvent(type=event.type, payment=payment)
