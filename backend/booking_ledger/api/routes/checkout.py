"""
Payment endpoints: checkout session creation and payment confirmation.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from pydantic import ValidationError as SchemaError

from booking_ledger.api.deps import get_ledger, get_policy
from booking_ledger.core.config import Settings, get_settings
from booking_ledger.core.errors import ValidationError
from booking_ledger.core.logging import get_logger
from booking_ledger.schemas.booking import (
    CheckoutRequest,
    CheckoutResponse,
    WebhookRequest,
    WebhookResponse,
)
from booking_ledger.services.booking_service import (
    UPDATE_ON_CONFIRM,
    ConfirmationPolicy,
    confirm_booking,
    record_pending_booking,
)
from booking_ledger.services.interfaces.payment_gateway import PaymentGateway
from booking_ledger.services.ledger import Ledger
from booking_ledger.services.payment_service import create_checkout_session
from booking_ledger.services.strategy_factory import get_payment_gateway

logger = get_logger(__name__)
router = APIRouter(tags=["Payments"])

CHECKOUT_COMPLETED = "checkout.session.completed"


@router.post("/create-checkout", response_model=CheckoutResponse)
async def create_checkout(
    checkout: CheckoutRequest,
    settings: Settings = Depends(get_settings),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    policy: ConfirmationPolicy = Depends(get_policy),
    ledger: Ledger = Depends(get_ledger),
):
    """
    Create a hosted checkout session carrying the booking as metadata.

    Under update_on_confirm a pending booking row is written now and
    confirmed later by the webhook; otherwise nothing is written until then.
    """
    session = await create_checkout_session(gateway, settings, checkout)
    if policy.write_policy == UPDATE_ON_CONFIRM:
        await record_pending_booking(ledger, policy, checkout, session)
    return CheckoutResponse(url=session.url)


@router.post("/webhook", response_model=WebhookResponse)
async def webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    policy: ConfirmationPolicy = Depends(get_policy),
    ledger: Ledger = Depends(get_ledger),
):
    """
    Confirm a booking after payment.

    Accepts either a signed Stripe event (Stripe-Signature header) or the
    success page's `{"sessionId": ...}`. Replays are acknowledged without
    writing twice.
    """
    payload = await request.body()

    if stripe_signature:
        event = gateway.construct_event(payload, stripe_signature)
        if event.type != CHECKOUT_COMPLETED or event.payment is None:
            logger.info("webhook_event_ignored", event_type=event.type)
            return WebhookResponse()
        session_id = event.payment.session_id
        result = await confirm_booking(ledger, gateway, policy, payment=event.payment)
    else:
        try:
            body = WebhookRequest.model_validate_json(payload or b"{}")
        except SchemaError as e:
            raise ValidationError("sessionId is required") from e
        session_id = body.session_id
        result = await confirm_booking(ledger, gateway, policy, identifier=body.session_id)

    return WebhookResponse(
        session_id=result.session_id or session_id,
        payment_intent_id=result.payment_intent_id,
        event_id=result.event_id,
    )
