"""
Pydantic schemas for booking-related request/response validation.
The booking form posts camelCase keys; Python attributes stay snake_case.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        str_strip_whitespace=True,
    )


class CheckoutRequest(CamelModel):
    event_id: str = Field(..., min_length=1)
    event_name: str = Field(..., min_length=1, max_length=255)
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: EmailStr
    skill_level: Optional[str] = None
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    addons: list[str] = Field(default_factory=list)
    discount_code: Optional[str] = None
    original_amount: Optional[Decimal] = Field(None, ge=0)


class CheckoutResponse(CamelModel):
    url: str


class DirectBookingRequest(CamelModel):
    event_id: str = Field(..., min_length=1)
    event_name: str = Field(..., min_length=1, max_length=255)
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: EmailStr
    skill_level: str = Field(..., min_length=1)
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    addons: list[str] = Field(default_factory=list)


class DirectBookingResponse(CamelModel):
    success: bool = True
    booking_id: str
    redirect_url: str


class WebhookRequest(CamelModel):
    session_id: str = Field(..., min_length=1)
    type: Optional[str] = None


class WebhookResponse(CamelModel):
    success: bool = True
    session_id: Optional[str] = None
    payment_intent_id: Optional[str] = None
    event_id: Optional[str] = None


class BookingDetailsResponse(BaseModel):
    # Event details
    event_title: str
    event_description: str
    event_location: str
    start_date: str
    end_date: str

    # Booking details
    amount_paid: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    booking_id: Optional[str] = None
    booking_date: Optional[str] = None
    event_id: Optional[str] = None
    addons_selected: Optional[str] = None
    stripe_payment_id: Optional[str] = None
    status: Optional[str] = None

    # Event pricing and capacity
    base_price: Optional[str] = None
    instruction_fee: Optional[str] = None
    total_spots: Optional[str] = None
    spots_remaining: Optional[str] = None
