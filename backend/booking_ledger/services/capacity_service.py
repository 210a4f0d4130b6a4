"""
Capacity service: the spots_remaining counter on the Events sheet.

CONCURRENCY STRATEGY: Compare-and-Set with Retry
================================================

Problem:
  Two confirmations for the same event arrive together.
  Both read spots_remaining=5, both write 4.
  Result: one booking never reduces capacity (lost update).

Solution:
  Sheets has no row locks or conditional writes, so we emulate one:

  1. Read the event row and remember the raw spots_remaining text
  2. Compute max(0, current - 1)
  3. Re-read that single cell; write only if it still holds the raw text
  4. If it changed, someone else wrote in between -> re-read the row, retry

  The re-read and the write are still two calls, so a writer landing in
  that gap can slip through. The window shrinks from "whole request" to one
  round trip.

Policy:
  - Floor at zero. An oversold event stays at 0; the booking is not rejected.
  - Missing or non-numeric counters are treated as 0.
  - The decrement is a side effect of a booking that is already written.
    Callers use decrement_capacity_best_effort so a failure here is logged
    and never fails the booking.
"""

from typing import Any, Optional

from booking_ledger.core.errors import ConcurrentUpdateError, LedgerError, RowNotFound
from booking_ledger.core.logging import get_logger
from booking_ledger.core.metrics import record_capacity_update
from booking_ledger.services.ledger import Ledger

logger = get_logger(__name__)

MAX_RETRY_ATTEMPTS = 3
SPOTS_COLUMN = "spots_remaining"


def parse_spots(value: Any) -> int:
    """Parse a spots counter the way the sheet is filled in by hand."""
    if value is None:
        return 0
    try:
        return int(str(value).strip())
    except ValueError:
        pass
    try:
        return int(float(str(value).strip()))
    except (ValueError, OverflowError):
        # nan, inf, 1e400
        return 0


async def decrement_capacity(
    ledger: Ledger,
    event_id: str,
    max_attempts: int = MAX_RETRY_ATTEMPTS,
) -> int:
    """
    Decrement spots_remaining for `event_id`, floored at zero.
    Retries up to `max_attempts` times on compare-and-set conflicts.
    """
    sheet_range = ledger.event_sheet.sheet_range

    for attempt in range(1, max_attempts + 1):
        # Step 1: Read current event state
        event = await ledger.events.find_row_by_column_value(sheet_range, "event_id", event_id)
        if not event:
            raise RowNotFound(f"Event {event_id} not found")

        raw = event.get(SPOTS_COLUMN)
        current = parse_spots(raw)
        new_count = max(0, current - 1)

        # Step 2: Conditional write against the value we read
        written = await ledger.events.compare_and_set_cell(
            sheet_range,
            event.row_number,
            event.column_letter(SPOTS_COLUMN),
            expected=raw,
            value=new_count,
        )

        if not written:
            logger.info(
                "capacity_retry",
                event_id=event_id,
                attempt=attempt,
                reason="value_changed",
            )
            record_capacity_update("conflict")
            continue

        record_capacity_update("decremented" if current > 0 else "floored")
        logger.info(
            "capacity_decremented",
            event_id=event_id,
            previous=current,
            remaining=new_count,
            attempt=attempt,
        )
        return new_count

    raise ConcurrentUpdateError(
        f"spots_remaining for {event_id} kept changing; gave up after {max_attempts} attempts"
    )


async def decrement_capacity_best_effort(
    ledger: Ledger,
    event_id: str,
    max_attempts: int = MAX_RETRY_ATTEMPTS,
) -> Optional[int]:
    """Decrement after a booking is written. Errors are logged, not raised."""
    try:
        return await decrement_capacity(ledger, event_id, max_attempts)
    except LedgerError as e:
        record_capacity_update("failed")
        logger.error(
            "capacity_update_failed",
            event_id=event_id,
            error=e.detail,
            error_type=type(e).__name__,
        )
        return None
