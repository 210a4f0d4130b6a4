"""
Booking endpoints: confirmation-page details and direct (unpaid) bookings.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from booking_ledger.api.deps import get_ledger, get_policy
from booking_ledger.core.config import Settings, get_settings
from booking_ledger.core.errors import ValidationError
from booking_ledger.core.logging import get_logger
from booking_ledger.schemas.booking import (
    BookingDetailsResponse,
    DirectBookingRequest,
    DirectBookingResponse,
)
from booking_ledger.services.booking_details_service import get_booking_details
from booking_ledger.services.booking_service import ConfirmationPolicy, create_direct_booking
from booking_ledger.services.interfaces.payment_gateway import PaymentGateway
from booking_ledger.services.ledger import Ledger
from booking_ledger.services.strategy_factory import get_payment_gateway

logger = get_logger(__name__)
router = APIRouter(tags=["Bookings"])


@router.get("/booking-details", response_model=BookingDetailsResponse)
async def booking_details(
    session_id: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    policy: ConfirmationPolicy = Depends(get_policy),
    ledger: Ledger = Depends(get_ledger),
):
    """Booking joined with its event, for the confirmation page. Read-only."""
    if not session_id:
        raise ValidationError("session_id is required")
    return await get_booking_details(ledger, gateway, policy, settings, session_id)


@router.post("/create-direct-booking", response_model=DirectBookingResponse)
async def direct_booking(
    booking: DirectBookingRequest,
    settings: Settings = Depends(get_settings),
    policy: ConfirmationPolicy = Depends(get_policy),
    ledger: Ledger = Depends(get_ledger),
):
    """
    Book a session without payment.
    Returns 409 when the session has no spots left.
    """
    booking_id = await create_direct_booking(ledger, policy, booking)
    return DirectBookingResponse(
        booking_id=booking_id,
        redirect_url=f"{settings.SITE_URL}/success.html?booking_id={booking_id}",
    )
