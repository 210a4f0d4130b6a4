"""
Error taxonomy for the booking ledger.

Every error is an HTTPException so services can raise it directly and
FastAPI renders `{"detail": ...}` with the right status code.
"""

from typing import Optional

from fastapi import HTTPException, status


class LedgerError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class ValidationError(LedgerError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Missing required fields"


class UpstreamProviderError(LedgerError):
    default_detail = "Payment provider request failed"


class ConfigurationError(LedgerError):
    default_detail = "Service is not configured"


class ColumnNotFound(ConfigurationError):
    def __init__(self, column: str, sheet_range: str):
        self.column = column
        super().__init__(f"{column} column not found in {sheet_range}")


class RowNotFound(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Row not found"


class RowStoreError(LedgerError):
    default_detail = "Failed to read from the row store"


class WriteError(RowStoreError):
    default_detail = "Failed to write to the row store"


class CapacityExhausted(LedgerError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "No spots remaining for this event"


class ConcurrentUpdateError(LedgerError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Update failed due to a concurrent change. Please try again."
