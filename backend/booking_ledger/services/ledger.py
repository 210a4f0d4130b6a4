"""
The booking ledger: Bookings and Events sheets, possibly in separate documents.
"""

from dataclasses import dataclass

from booking_ledger.core.config import Settings
from booking_ledger.core.errors import ConfigurationError
from booking_ledger.core.logging import get_logger
from booking_ledger.schemas.sheets import SheetSchema, booking_schema, event_schema
from booking_ledger.services.interfaces.grid_backend import GridBackend
from booking_ledger.services.row_store import RowStore

logger = get_logger(__name__)


@dataclass
class Ledger:
    bookings: RowStore
    events: RowStore
    booking_sheet: SheetSchema
    event_sheet: SheetSchema


def build_ledger(backend: GridBackend, settings: Settings) -> Ledger:
    if not settings.GOOGLE_SHEET_ID:
        raise ConfigurationError("Google Sheet ID not configured")
    return Ledger(
        bookings=RowStore(backend, settings.bookings_spreadsheet_id),
        events=RowStore(backend, settings.GOOGLE_SHEET_ID),
        booking_sheet=booking_schema(settings.BOOKINGS_RANGE),
        event_sheet=event_schema(settings.EVENTS_RANGE),
    )


async def verify_ledger(ledger: Ledger):
    """Reject a sheet whose header does not match the declared columns."""
    await ledger.bookings.verify_header(ledger.booking_sheet.sheet_range, ledger.booking_sheet.columns)
    await ledger.events.verify_header(ledger.event_sheet.sheet_range, ledger.event_sheet.columns)
    logger.info(
        "ledger_schema_verified",
        bookings=ledger.booking_sheet.sheet_range,
        events=ledger.event_sheet.sheet_range,
    )
