"""
Tests for mapping Stripe objects onto payment records.
"""

import pytest
import stripe

from booking_ledger.infrastructure.stripe_gateway import intent_to_record, session_to_record


def checkout_session(**fields) -> stripe.checkout.Session:
    values = {
        "id": "cs_test_123",
        "object": "checkout.session",
        "payment_intent": "pi_test_123",
        "payment_status": "paid",
        "status": "complete",
        "customer_email": "sam@example.com",
        "amount_total": 4500,
        "metadata": {"eventId": "NBRH001"},
        "url": None,
    }
    values.update(fields)
    return stripe.checkout.Session.construct_from(values, "sk_test_dummy")


def test_paid_session():
    record = session_to_record(checkout_session())

    assert record.paid is True
    assert record.session_id == "cs_test_123"
    assert record.payment_intent_id == "pi_test_123"
    assert record.amount_total == 4500
    assert record.metadata == {"eventId": "NBRH001"}


def test_abandoned_session_is_unpaid():
    record = session_to_record(
        checkout_session(payment_status="unpaid", status="open", payment_intent=None)
    )

    assert record.paid is False
    assert record.payment_intent_id is None


def test_free_session_counts_as_paid():
    record = session_to_record(
        checkout_session(payment_status="no_payment_required", payment_intent=None, amount_total=0)
    )
    assert record.paid is True


@pytest.mark.parametrize(
    "status, paid",
    [("succeeded", True), ("processing", False), ("requires_payment_method", False), ("canceled", False)],
)
def test_intent_paid_only_when_succeeded(status, paid):
    intent = stripe.PaymentIntent.construct_from(
        {
            "id": "pi_test_123",
            "object": "payment_intent",
            "status": status,
            "amount": 4500,
            "amount_received": 4500 if paid else 0,
            "receipt_email": None,
            "metadata": {"eventId": "NBRH001", "customerEmail": "sam@example.com"},
        },
        "sk_test_dummy",
    )

    record = intent_to_record(intent)

    assert record.paid is paid
    assert record.amount_total == 4500
    assert record.customer_email == "sam@example.com"
