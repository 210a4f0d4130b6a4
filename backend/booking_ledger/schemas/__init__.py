from booking_ledger.schemas.booking import (
    BookingDetailsResponse,
    CheckoutRequest,
    CheckoutResponse,
    DirectBookingRequest,
    DirectBookingResponse,
    WebhookRequest,
    WebhookResponse,
)
from booking_ledger.schemas.sheets import SheetSchema, booking_schema, event_schema

__all__ = [
    "CheckoutRequest", "CheckoutResponse",
    "DirectBookingRequest", "DirectBookingResponse",
    "WebhookRequest", "WebhookResponse",
    "BookingDetailsResponse",
    "SheetSchema", "booking_schema", "event_schema",
]
