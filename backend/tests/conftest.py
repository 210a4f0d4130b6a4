"""
Pytest fixtures for the in-memory ledger, a fake payment gateway, and client.

The grid backend and payment gateway dependencies are overridden so tests
run without Google credentials or network access.
"""

from typing import Any, AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from booking_ledger.core.config import Settings, get_settings
from booking_ledger.core.errors import UpstreamProviderError, ValidationError
from booking_ledger.main import app
from booking_ledger.schemas.sheets import BOOKING_COLUMNS, EVENT_COLUMNS
from booking_ledger.services.interfaces.memory_backend import InMemoryGridBackend
from booking_ledger.services.interfaces.payment_gateway import (
    PaymentGateway,
    PaymentRecord,
    WebhookEvent,
)
from booking_ledger.services.ledger import Ledger, build_ledger
from booking_ledger.services.strategy_factory import get_grid_backend, get_payment_gateway

SHEET_ID = "sheet-test"
BOOKING_HEADER = list(BOOKING_COLUMNS)
EVENT_HEADER = list(EVENT_COLUMNS)
VALID_SIGNATURE = "t=1700000000,v1=valid"

EVENT_ROWS = [
    ["NBRH001", "Paddleboard Taster", "Intro session on the lake", "30/01/2025", "10:00 AM",
     "Lakeside Centre", "35", "10", "12", "5"],
    ["NBRH002", "Sold Out Session", "Evening paddle", "01/02/2025", "2:00 PM",
     "Harbour", "30", "0", "8", "0"],
    ["NBRH003", "", "", "not a date", "", "", "", "", "6", "3"],
]

SESSION_METADATA = {
    "eventId": "NBRH001",
    "eventName": "Paddleboard Taster",
    "customerName": "Sam Rivers",
    "customerEmail": "sam@example.com",
    "skillLevel": "Beginner",
    "addons": "Wetsuit hire, Lunch",
    "amount": "45.00",
}


class FakePaymentGateway(PaymentGateway):
    """Records calls; serves sessions and intents from dicts."""

    def __init__(self):
        self.sessions: dict[str, PaymentRecord] = {}
        self.intents: dict[str, PaymentRecord] = {}
        self.created: list[dict[str, Any]] = []
        self.retrieved_sessions: list[str] = []
        self.retrieved_intents: list[str] = []
        self.webhook_event: Optional[WebhookEvent] = None
        self.fail_create = False

    async def create_checkout_session(self, params: dict[str, Any]) -> PaymentRecord:
        if self.fail_create:
            raise UpstreamProviderError("Your card was declined.")
        self.created.append(params)
        return PaymentRecord(
            session_id="cs_test_new",
            customer_email=params.get("customer_email"),
            metadata=dict(params.get("metadata", {})),
            url="https://checkout.stripe.test/c/pay/cs_test_new",
        )

    async def retrieve_checkout_session(self, session_id: str) -> PaymentRecord:
        self.retrieved_sessions.append(session_id)
        if session_id not in self.sessions:
            raise UpstreamProviderError(f"No such checkout.session: '{session_id}'")
        return self.sessions[session_id]

    async def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentRecord:
        self.retrieved_intents.append(payment_intent_id)
        if payment_intent_id not in self.intents:
            raise UpstreamProviderError(f"No such payment_intent: '{payment_intent_id}'")
        return self.intents[payment_intent_id]

    def construct_event(self, payload: bytes, signature: str) -> WebhookEvent:
        if signature != VALID_SIGNATURE or self.webhook_event is None:
            raise ValidationError("Webhook Error: No signatures found matching the expected signature")
        return self.webhook_event


def paid_session(session_id: str = "cs_test_123", payment_intent_id: str = "pi_test_123") -> PaymentRecord:
    return PaymentRecord(
        session_id=session_id,
        payment_intent_id=payment_intent_id,
        customer_email="sam@example.com",
        amount_total=4500,
        metadata=dict(SESSION_METADATA),
        paid=True,
    )


def booking_rows(backend: InMemoryGridBackend) -> list[list[Any]]:
    return backend.rows(SHEET_ID, "Bookings")[1:]


def spots_remaining(backend: InMemoryGridBackend, event_id: str) -> Any:
    for row in backend.rows(SHEET_ID, "Events")[1:]:
        if row[0] == event_id:
            return row[9] if len(row) > 9 else None
    raise AssertionError(f"{event_id} not seeded")


def booking_row(**overrides) -> list[Any]:
    values = {
        "booking_id": "BK0000000001",
        "booking_date": "2025-01-10",
        "event_id": "NBRH001",
        "event_name": "Paddleboard Taster",
        "customer_name": "Sam Rivers",
        "customer_email": "sam@example.com",
        "amount_paid": "45.00",
        "addons_selected": "Wetsuit hire, Lunch",
        "stripe_payment_id": "pi_test_123",
        "status": "Confirmed",
    }
    values.update(overrides)
    return [values.get(column, "") for column in BOOKING_COLUMNS]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        GOOGLE_SHEET_ID=SHEET_ID,
        ROW_STORE_BACKEND="memory",
        SITE_URL="https://bookings.example.test",
        STRIPE_SECRET_KEY="sk_test_dummy",
        STRIPE_WEBHOOK_SECRET="whsec_dummy",
        VERIFY_SCHEMA_ON_STARTUP=False,
    )


@pytest.fixture
def backend() -> InMemoryGridBackend:
    backend = InMemoryGridBackend()
    backend.seed(SHEET_ID, "Events", [EVENT_HEADER, *EVENT_ROWS])
    backend.seed(SHEET_ID, "Bookings", [BOOKING_HEADER])
    return backend


@pytest.fixture
def ledger(backend: InMemoryGridBackend, settings: Settings) -> Ledger:
    return build_ledger(backend, settings)


@pytest.fixture
def gateway() -> FakePaymentGateway:
    gateway = FakePaymentGateway()
    gateway.sessions["cs_test_123"] = paid_session()
    return gateway


@pytest_asyncio.fixture(scope="function")
async def client(
    settings: Settings,
    backend: InMemoryGridBackend,
    gateway: FakePaymentGateway,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the ledger and gateway replaced by test doubles."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_grid_backend] = lambda: backend
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
