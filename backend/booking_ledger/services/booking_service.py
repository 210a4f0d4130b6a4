"""
Booking service: the confirmation pipeline and direct bookings.

ONE PIPELINE, CONFIGURED
========================

Earlier deployments carried several webhook handlers that differed only in
when the booking row was written and which identifier it was keyed by.
They are folded into one pipeline driven by ConfirmationPolicy:

  write_policy
    append_on_confirm  checkout writes nothing; the confirmed webhook
                       appends a complete booking row (default)
    update_on_confirm  checkout appends a pending row keyed by the session
                       id; the webhook flips its status cell

  lookup_keys
    session            match the identifier as received
    payment_intent     match the resolved payment-intent id
    either             resolved id first, then the original (default)

Replays (Stripe retries, the success page and the webhook both confirming)
are detected by the payment reference and do not append or decrement again.
Confirmations for one payment are serialized per process by an asyncio.Lock
keyed on the payment-intent id, so the lookup and the write cannot
interleave. Two instances confirming the same payment at once are not
covered; the sheet has no unique constraint to fall back on.

Only paid sessions and succeeded payment intents are confirmed.
"""

import asyncio
import uuid
import weakref
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from booking_ledger.core.config import Settings
from booking_ledger.core.errors import CapacityExhausted, RowNotFound, ValidationError
from booking_ledger.core.logging import get_logger
from booking_ledger.core.metrics import record_booking, record_confirmation
from booking_ledger.schemas.booking import CheckoutRequest, DirectBookingRequest
from booking_ledger.schemas.sheets import PAYMENT_REFERENCE_COLUMN
from booking_ledger.services.capacity_service import (
    MAX_RETRY_ATTEMPTS,
    decrement_capacity_best_effort,
    parse_spots,
)
from booking_ledger.services.interfaces.payment_gateway import PaymentGateway, PaymentRecord
from booking_ledger.services.ledger import Ledger
from booking_ledger.services.payment_service import (
    LOOKUP_EITHER,
    ResolvedPayment,
    resolve_payment_reference,
    resolved_from_session,
)
from booking_ledger.services.row_store import RowMatch

logger = get_logger(__name__)

APPEND_ON_CONFIRM = "append_on_confirm"
UPDATE_ON_CONFIRM = "update_on_confirm"
NO_ADDONS = "None"

# payment_intent_id -> asyncio.Lock, dropped once no request holds it
_confirmation_locks = weakref.WeakValueDictionary()


@dataclass(frozen=True)
class ConfirmationPolicy:
    write_policy: str = APPEND_ON_CONFIRM
    lookup_keys: str = LOOKUP_EITHER
    confirmed_status: str = "Confirmed"
    pending_status: str = ""
    direct_booking_marker: str = "DIRECT_BOOKING"
    session_prefix: str = "cs_"
    capacity_max_retries: int = MAX_RETRY_ATTEMPTS

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConfirmationPolicy":
        return cls(
            write_policy=settings.BOOKING_WRITE_POLICY,
            lookup_keys=settings.BOOKING_LOOKUP_KEYS,
            confirmed_status=settings.CONFIRMED_STATUS,
            pending_status=settings.PENDING_STATUS,
            direct_booking_marker=settings.DIRECT_BOOKING_MARKER,
            session_prefix=settings.CHECKOUT_SESSION_PREFIX,
            capacity_max_retries=settings.CAPACITY_MAX_RETRIES,
        )


@dataclass
class ConfirmationResult:
    session_id: Optional[str]
    payment_intent_id: str
    event_id: Optional[str]
    booking_id: Optional[str]
    replayed: bool = False
    spots_remaining: Optional[int] = None


def generate_booking_id() -> str:
    return f"BK{uuid.uuid4().hex[:10].upper()}"


def today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def format_amount(amount: Any) -> str:
    """Two decimal places; blank when there is nothing to format."""
    if amount is None or amount == "":
        return ""
    try:
        return f"{Decimal(str(amount)).quantize(Decimal('0.01'))}"
    except InvalidOperation:
        return ""


def amount_from_minor_units(minor: Optional[int]) -> Optional[Decimal]:
    if minor is None:
        return None
    return Decimal(minor) / 100


def normalize_addons(addons: Optional[str]) -> str:
    if not addons or addons.strip().lower() == "none":
        return NO_ADDONS
    return addons


def booking_values(
    *,
    booking_id: str,
    event_id: str,
    event_name: str,
    customer_name: str,
    customer_email: str,
    amount: Any,
    addons: str,
    payment_reference: str,
    status: str,
    skill_level: str = "",
    event: Optional[RowMatch] = None,
) -> dict[str, Any]:
    values = {
        "booking_id": booking_id,
        "booking_date": today(),
        "event_id": event_id,
        "event_name": event_name,
        "customer_name": customer_name,
        "customer_email": customer_email,
        "amount_paid": format_amount(amount),
        "addons_selected": addons,
        PAYMENT_REFERENCE_COLUMN: payment_reference,
        "status": status,
        "email_sent": "",
        "email_sent_to_instructor": "",
        "skill_level": skill_level or "",
    }
    if event:
        values["event_date"] = event.get("date") or ""
        values["event_time"] = event.get("time") or ""
        values["event_location"] = event.get("location") or ""
    return values


def _confirmation_lock(payment_reference: str) -> asyncio.Lock:
    lock = _confirmation_locks.get(payment_reference)
    if lock is None:
        lock = asyncio.Lock()
        _confirmation_locks[payment_reference] = lock
    return lock


async def _find_event(ledger: Ledger, event_id: str) -> Optional[RowMatch]:
    return await ledger.events.find_row_by_column_value(
        ledger.event_sheet.sheet_range, "event_id", event_id
    )


def _replayed(resolved: ResolvedPayment, booking: RowMatch) -> ConfirmationResult:
    record_confirmation("replayed")
    logger.info(
        "booking_confirmation_replayed",
        booking_id=booking.get("booking_id"),
        payment_intent_id=resolved.payment_intent_id,
    )
    return ConfirmationResult(
        session_id=resolved.session_id,
        payment_intent_id=resolved.payment_intent_id,
        event_id=booking.get("event_id"),
        booking_id=booking.get("booking_id"),
        replayed=True,
    )


async def _require_paid(gateway: PaymentGateway, resolved: ResolvedPayment) -> PaymentRecord:
    """The provider's record for this payment; rejected unless it is paid."""
    payment = resolved.payment
    if payment is None:
        payment = await gateway.retrieve_payment_intent(resolved.payment_intent_id)
    if not payment.paid:
        record_confirmation("failed")
        logger.warning(
            "booking_confirmation_unpaid",
            session_id=resolved.session_id,
            payment_intent_id=resolved.payment_intent_id,
        )
        raise ValidationError("Payment has not been completed")
    return payment


async def _append_confirmed(
    ledger: Ledger,
    gateway: PaymentGateway,
    policy: ConfirmationPolicy,
    resolved: ResolvedPayment,
) -> ConfirmationResult:
    payment = await _require_paid(gateway, resolved)

    metadata = payment.metadata
    event_id = metadata.get("eventId")
    if not event_id:
        record_confirmation("failed")
        raise ValidationError("Payment is missing booking metadata (eventId)")

    event = await _find_event(ledger, event_id)
    if not event:
        logger.warning("event_not_found_for_booking", event_id=event_id)

    amount = amount_from_minor_units(payment.amount_total)
    if amount is None:
        amount = metadata.get("amount")

    booking_id = generate_booking_id()
    values = booking_values(
        booking_id=booking_id,
        event_id=event_id,
        event_name=metadata.get("eventName", ""),
        customer_name=metadata.get("customerName", ""),
        customer_email=payment.customer_email or metadata.get("customerEmail", ""),
        amount=amount,
        addons=normalize_addons(metadata.get("addons")),
        payment_reference=resolved.payment_intent_id,
        status=policy.confirmed_status,
        skill_level=metadata.get("skillLevel", ""),
        event=event,
    )
    await ledger.bookings.append_row(
        ledger.booking_sheet.sheet_range, ledger.booking_sheet.build_row(values)
    )
    record_booking("webhook")
    record_confirmation("confirmed")
    logger.info(
        "booking_appended",
        booking_id=booking_id,
        event_id=event_id,
        payment_intent_id=resolved.payment_intent_id,
        customer_email=values["customer_email"],
    )

    spots = None
    if event:
        spots = await decrement_capacity_best_effort(ledger, event_id, policy.capacity_max_retries)

    return ConfirmationResult(
        session_id=resolved.session_id,
        payment_intent_id=resolved.payment_intent_id,
        event_id=event_id,
        booking_id=booking_id,
        spots_remaining=spots,
    )


async def _confirm_existing(
    ledger: Ledger,
    gateway: PaymentGateway,
    policy: ConfirmationPolicy,
    resolved: ResolvedPayment,
    booking: RowMatch,
) -> ConfirmationResult:
    await _require_paid(gateway, resolved)
    await ledger.bookings.update_cell(
        ledger.booking_sheet.sheet_range,
        booking.row_number,
        booking.column_letter("status"),
        policy.confirmed_status,
    )
    record_confirmation("confirmed")

    event_id = booking.get("event_id")
    booking_id = booking.get("booking_id")
    logger.info(
        "booking_status_updated",
        booking_id=booking_id,
        row=booking.row_number,
        status=policy.confirmed_status,
    )

    spots = None
    if event_id:
        spots = await decrement_capacity_best_effort(ledger, event_id, policy.capacity_max_retries)

    return ConfirmationResult(
        session_id=resolved.session_id,
        payment_intent_id=resolved.payment_intent_id,
        event_id=event_id,
        booking_id=booking_id,
        spots_remaining=spots,
    )


async def confirm_booking(
    ledger: Ledger,
    gateway: PaymentGateway,
    policy: ConfirmationPolicy,
    identifier: Optional[str] = None,
    payment: Optional[PaymentRecord] = None,
) -> ConfirmationResult:
    """
    Confirm a paid booking.

    Pass `identifier` (a cs_ or pi_ id from the success page) or `payment`
    (a session already taken from a verified webhook event). Provider errors
    surface before anything is written.
    """
    if payment is not None:
        resolved = resolved_from_session(payment)
    elif identifier:
        resolved = await resolve_payment_reference(gateway, identifier, policy.session_prefix)
    else:
        raise ValidationError("sessionId is required")

    async with _confirmation_lock(resolved.payment_intent_id or resolved.original_id):
        booking = await ledger.bookings.find_first(
            ledger.booking_sheet.sheet_range,
            PAYMENT_REFERENCE_COLUMN,
            resolved.lookup_keys(policy.lookup_keys),
        )

        if policy.write_policy == UPDATE_ON_CONFIRM:
            if not booking:
                record_confirmation("failed")
                raise RowNotFound(f"Booking not found for {resolved.original_id}")
            if booking.get("status") == policy.confirmed_status:
                return _replayed(resolved, booking)
            return await _confirm_existing(ledger, gateway, policy, resolved, booking)

        if booking:
            return _replayed(resolved, booking)
        return await _append_confirmed(ledger, gateway, policy, resolved)


async def record_pending_booking(
    ledger: Ledger,
    policy: ConfirmationPolicy,
    request: CheckoutRequest,
    session: PaymentRecord,
) -> str:
    """Write the pending row at checkout time (update_on_confirm only)."""
    event = await _find_event(ledger, request.event_id)
    booking_id = generate_booking_id()
    values = booking_values(
        booking_id=booking_id,
        event_id=request.event_id,
        event_name=request.event_name,
        customer_name=request.customer_name,
        customer_email=request.customer_email,
        amount=request.amount,
        addons=", ".join(request.addons) or NO_ADDONS,
        payment_reference=session.session_id,
        status=policy.pending_status,
        skill_level=request.skill_level or "",
        event=event,
    )
    await ledger.bookings.append_row(
        ledger.booking_sheet.sheet_range, ledger.booking_sheet.build_row(values)
    )
    record_booking("checkout")
    logger.info("pending_booking_appended", booking_id=booking_id, session_id=session.session_id)
    return booking_id


async def create_direct_booking(
    ledger: Ledger,
    policy: ConfirmationPolicy,
    request: DirectBookingRequest,
) -> str:
    """
    Book without payment. Rejects when the event has no spots left,
    before anything is written.
    """
    event = await _find_event(ledger, request.event_id)
    if not event:
        raise RowNotFound(f"Event not found with ID: {request.event_id}")

    spots_remaining = parse_spots(event.get("spots_remaining"))
    if spots_remaining <= 0:
        logger.warning(
            "direct_booking_rejected_no_spots",
            event_id=request.event_id,
            spots_remaining=event.get("spots_remaining"),
        )
        raise CapacityExhausted("No spots remaining for this session")

    booking_id = generate_booking_id()
    values = booking_values(
        booking_id=booking_id,
        event_id=request.event_id,
        event_name=request.event_name,
        customer_name=request.customer_name,
        customer_email=request.customer_email,
        amount=request.amount,
        addons=", ".join(request.addons),
        payment_reference=policy.direct_booking_marker,
        status=policy.confirmed_status,
        skill_level=request.skill_level,
        event=event,
    )
    await ledger.bookings.append_row(
        ledger.booking_sheet.sheet_range, ledger.booking_sheet.build_row(values)
    )
    record_booking("direct")
    logger.info(
        "direct_booking_created",
        booking_id=booking_id,
        event_id=request.event_id,
        customer_email=request.customer_email,
    )

    await decrement_capacity_best_effort(ledger, request.event_id, policy.capacity_max_retries)
    return booking_id
