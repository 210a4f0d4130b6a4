"""
Declared column layouts for the Bookings and Events sheets.

Header order matters: booking rows are appended positionally, so the live
header row must begin with these columns in this order. This is checked
once at startup (see services.ledger.verify_ledger).
"""

from dataclasses import dataclass
from typing import Any, Mapping

BOOKING_COLUMNS = (
    "booking_id",
    "booking_date",
    "event_id",
    "event_name",
    "customer_name",
    "customer_email",
    "amount_paid",
    "addons_selected",
    "stripe_payment_id",
    "status",
    "email_sent",
    "email_sent_to_instructor",
    "skill_level",
    "event_date",
    "event_time",
    "event_location",
)

EVENT_COLUMNS = (
    "event_id",
    "event_name",
    "description",
    "date",
    "time",
    "location",
    "base_price",
    "instruction_fee",
    "total_spots",
    "spots_remaining",
)

PAYMENT_REFERENCE_COLUMN = "stripe_payment_id"


@dataclass(frozen=True)
class SheetSchema:
    sheet_range: str
    columns: tuple[str, ...]

    def build_row(self, values: Mapping[str, Any]) -> list[Any]:
        """Order a mapping by the declared columns; unknown keys are rejected."""
        unknown = set(values) - set(self.columns)
        if unknown:
            raise KeyError(f"Unknown columns for {self.sheet_range}: {sorted(unknown)}")
        return [values.get(column, "") for column in self.columns]


def booking_schema(sheet_range: str) -> SheetSchema:
    return SheetSchema(sheet_range=sheet_range, columns=BOOKING_COLUMNS)


def event_schema(sheet_range: str) -> SheetSchema:
    return SheetSchema(sheet_range=sheet_range, columns=EVENT_COLUMNS)
