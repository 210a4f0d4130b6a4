"""
Booking details for the confirmation page: the booking row joined with its
event row, plus start/end instants for "add to calendar" links.

The calendar payload never fails: an unparseable date or time falls back
to tomorrow at 10:00 UTC.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

from booking_ledger.core.config import Settings
from booking_ledger.core.errors import RowNotFound
from booking_ledger.core.logging import get_logger
from booking_ledger.schemas.booking import BookingDetailsResponse
from booking_ledger.schemas.sheets import PAYMENT_REFERENCE_COLUMN
from booking_ledger.services.booking_service import NO_ADDONS, ConfirmationPolicy
from booking_ledger.services.interfaces.payment_gateway import PaymentGateway
from booking_ledger.services.ledger import Ledger
from booking_ledger.services.payment_service import resolve_payment_reference
from booking_ledger.services.row_store import RowMatch, find_in_grid

logger = get_logger(__name__)

ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
DEFAULT_START_HOUR = 10
TIME_FORMATS = ("%I:%M %p", "%H:%M")


def parse_event_start(date_str: str, time_str: str) -> datetime:
    """'30/01/2025' + '10:00 AM' -> 2025-01-30 10:00 UTC. Raises ValueError."""
    day = datetime.strptime(date_str.strip(), "%d/%m/%Y").date()
    clock = time_str.strip().upper()
    for fmt in TIME_FORMATS:
        try:
            parsed = datetime.strptime(clock, fmt).time()
            break
        except ValueError:
            continue
    else:
        raise ValueError(f"Unrecognised time: {time_str!r}")
    return datetime.combine(day, parsed, tzinfo=timezone.utc)


def convert_to_iso_dates(
    date_str: Optional[str],
    time_str: Optional[str],
    duration_hours: int = 2,
    now: Optional[datetime] = None,
) -> tuple[str, str]:
    duration = timedelta(hours=duration_hours)
    try:
        if not date_str or not time_str:
            raise ValueError("Missing date or time")
        start = parse_event_start(date_str, time_str)
    except ValueError as e:
        logger.warning("event_datetime_unparseable", date=date_str, time=time_str, error=str(e))
        now = now or datetime.now(timezone.utc)
        tomorrow = (now + timedelta(days=1)).date()
        start = datetime(
            tomorrow.year, tomorrow.month, tomorrow.day, DEFAULT_START_HOUR, tzinfo=timezone.utc
        )
    return start.strftime(ISO_FORMAT), (start + duration).strftime(ISO_FORMAT)


def combine_booking_and_event(
    booking: RowMatch,
    event: RowMatch,
    settings: Settings,
    now: Optional[datetime] = None,
) -> BookingDetailsResponse:
    event_name = event.get("event_name") or "Your Booked Event"
    description = event.get("description") or f"Thank you for booking {event_name}!"
    location = event.get("location") or settings.DEFAULT_EVENT_LOCATION

    addons = booking.get("addons_selected")
    if addons and addons.strip().lower() != NO_ADDONS.lower():
        description += f"\n\nIncluded Add-ons: {addons}"

    start_date, end_date = convert_to_iso_dates(
        event.get("date"), event.get("time"), settings.EVENT_DURATION_HOURS, now
    )

    amount = booking.get("amount_paid")
    return BookingDetailsResponse(
        event_title=event_name,
        event_description=description,
        event_location=location,
        start_date=start_date,
        end_date=end_date,
        amount_paid=f"{settings.CURRENCY_SYMBOL}{amount}" if amount else None,
        customer_name=booking.get("customer_name"),
        customer_email=booking.get("customer_email"),
        booking_id=booking.get("booking_id"),
        booking_date=booking.get("booking_date"),
        event_id=booking.get("event_id"),
        addons_selected=addons,
        stripe_payment_id=booking.get(PAYMENT_REFERENCE_COLUMN),
        status=booking.get("status"),
        base_price=event.get("base_price"),
        instruction_fee=event.get("instruction_fee"),
        total_spots=event.get("total_spots"),
        spots_remaining=event.get("spots_remaining"),
    )


async def get_booking_details(
    ledger: Ledger,
    gateway: PaymentGateway,
    policy: ConfirmationPolicy,
    settings: Settings,
    identifier: str,
) -> BookingDetailsResponse:
    """Read-only join. A booking whose event is missing is a 404, never a partial merge."""
    if identifier == policy.direct_booking_marker:
        # Shared by every unpaid booking; never a lookup key
        logger.info("booking_details_marker_rejected")
        raise RowNotFound("Booking not found for this session_id")

    resolved = await resolve_payment_reference(gateway, identifier, policy.session_prefix)

    booking_range = ledger.booking_sheet.sheet_range
    event_range = ledger.event_sheet.sheet_range
    booking_grid, event_grid = await asyncio.gather(
        ledger.bookings.read_grid(booking_range),
        ledger.events.read_grid(event_range),
    )
    logger.info(
        "booking_details_grids_read",
        booking_rows=len(booking_grid),
        event_rows=len(event_grid),
    )

    booking = None
    for key in resolved.lookup_keys(policy.lookup_keys):
        booking = find_in_grid(booking_grid, booking_range, PAYMENT_REFERENCE_COLUMN, key)
        if booking:
            break
    if not booking:
        logger.info("booking_not_found", identifier=identifier)
        raise RowNotFound("Booking not found for this session_id")

    event_id = booking.get("event_id") or ""
    event = find_in_grid(event_grid, event_range, "event_id", event_id) if event_id else None
    if not event:
        logger.info("event_not_found", event_id=event_id, booking_id=booking.get("booking_id"))
        raise RowNotFound("Event details not found for this event_id")

    return combine_booking_and_event(booking, event, settings)
