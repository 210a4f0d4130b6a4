"""
Google Sheets grid backend.
Separated from business logic for clean architecture.
"""

import json
import time
from typing import Any, Callable, Optional

import google_auth_httplib2
import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from starlette.concurrency import run_in_threadpool

from booking_ledger.core.errors import ConfigurationError, RowStoreError, WriteError
from booking_ledger.core.logging import get_logger
from booking_ledger.core.metrics import record_row_store_operation
from booking_ledger.services.interfaces.grid_backend import GridBackend

logger = get_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
VALUE_INPUT_OPTION = "USER_ENTERED"
REQUEST_TIMEOUT_SECONDS = 30
TRANSPORT_ERRORS = (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError)


def load_service_account_info(raw: str) -> dict:
    """Parse the GOOGLE_SERVICE_ACCOUNT blob."""
    if not raw:
        raise ConfigurationError("Google credentials not configured")
    try:
        info = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error("google_credentials_unparseable", error=str(e))
        raise ConfigurationError("Invalid Google credentials format") from e
    if not isinstance(info, dict) or "client_email" not in info or "private_key" not in info:
        raise ConfigurationError("Invalid Google credentials format")
    return info


class GoogleSheetsBackend(GridBackend):
    """
    Sheets v4 values API behind the GridBackend interface.

    The discovery client is synchronous and httplib2 is not thread-safe,
    so every call gets its own authorized Http and runs in the threadpool.
    """

    def __init__(self, credentials_info: dict, scopes: Optional[list[str]] = None):
        try:
            self._credentials = service_account.Credentials.from_service_account_info(
                credentials_info, scopes=scopes or SCOPES
            )
        except (ValueError, KeyError) as e:
            raise ConfigurationError("Invalid Google credentials format") from e
        self._service = build(
            "sheets", "v4", credentials=self._credentials, cache_discovery=False
        )

    def _http(self) -> google_auth_httplib2.AuthorizedHttp:
        return google_auth_httplib2.AuthorizedHttp(
            self._credentials, http=httplib2.Http(timeout=REQUEST_TIMEOUT_SECONDS)
        )

    async def _execute(self, operation: str, build_request: Callable[[], Any]) -> dict:
        start = time.perf_counter()

        def call():
            return build_request().execute(http=self._http())

        try:
            return await run_in_threadpool(call)
        finally:
            record_row_store_operation(operation, time.perf_counter() - start)

    async def get_values(self, spreadsheet_id: str, range_name: str) -> list[list[str]]:
        values = self._service.spreadsheets().values()
        try:
            result = await self._execute(
                "read",
                lambda: values.get(spreadsheetId=spreadsheet_id, range=range_name),
            )
        except TRANSPORT_ERRORS as e:
            logger.error("sheets_read_failed", range=range_name, status=getattr(e, "status_code", None), error=str(e))
            raise RowStoreError(f"Failed to read {range_name} from Google Sheets") from e
        return result.get("values", [])

    async def update_values(self, spreadsheet_id: str, range_name: str, values: list[list[Any]]):
        api = self._service.spreadsheets().values()
        try:
            await self._execute(
                "update",
                lambda: api.update(
                    spreadsheetId=spreadsheet_id,
                    range=range_name,
                    valueInputOption=VALUE_INPUT_OPTION,
                    body={"values": values},
                ),
            )
        except TRANSPORT_ERRORS as e:
            logger.error("sheets_update_failed", range=range_name, status=getattr(e, "status_code", None), error=str(e))
            raise WriteError(f"Failed to update {range_name}") from e

    async def append_values(self, spreadsheet_id: str, range_name: str, values: list[list[Any]]):
        api = self._service.spreadsheets().values()
        try:
            await self._execute(
                "append",
                lambda: api.append(
                    spreadsheetId=spreadsheet_id,
                    range=range_name,
                    valueInputOption=VALUE_INPUT_OPTION,
                    insertDataOption="INSERT_ROWS",
                    body={"values": values},
                ),
            )
        except TRANSPORT_ERRORS as e:
            logger.error("sheets_append_failed", range=range_name, status=getattr(e, "status_code", None), error=str(e))
            raise WriteError(f"Failed to append to {range_name}") from e
