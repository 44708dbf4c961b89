import json
import pytest
from decimal import Decimal
from fastapi import HTTPException
from core.config import settings
from services.webhook_service import WebhookService, IntakeOutcome, IntakeState
from tests.conftest import sign_payload, payment_intent_event, checkout_session_event


def test_extract_payment_intent_details():
    details = WebhookService.extract_payment_details(
        payment_intent_event(payment_intent_id="pi_42", email="Buyer@X.com", amount=8900, phone="+16502530000")
    )

    assert details.payment_intent_id == "pi_42"
    assert details.email == "Buyer@X.com"
    assert details.name == "New Customer"
    assert details.phone == "+16502530000"
    assert details.amount == Decimal("89.00")
    assert details.currency == "USD"


def test_extract_payment_intent_falls_back_to_metadata():
    event = payment_intent_event(email=None)
    event["data"]["object"]["shipping"] = None
    event["data"]["object"]["metadata"] = {"email": "meta@x.com", "name": "Meta Name"}

    details = WebhookService.extract_payment_details(event)

    assert details.email == "meta@x.com"
    assert details.name == "Meta Name"


def test_extract_checkout_session_details():
    details = WebhookService.extract_payment_details(
        checkout_session_event(payment_intent_id="pi_cs_9", email="c@x.com", amount_total=4500, currency="eur")
    )

    assert details.payment_intent_id == "pi_cs_9"
    assert details.email == "c@x.com"
    assert details.amount == Decimal("45.00")
    assert details.currency == "EUR"


def test_zero_decimal_currency_not_divided():
    details = WebhookService.extract_payment_details(payment_intent_event(amount=5000, currency="jpy"))

    assert details.amount == Decimal("5000")
    assert details.currency == "JPY"


def test_unhandled_event_type():
    assert WebhookService.extract_payment_details({"type": "charge.refunded", "data": {"object": {}}}) is None


def test_non_object_payload_is_rejected():
    event = payment_intent_event()
    event["data"]["object"] = ["pi_1", "new@x.com"]

    assert WebhookService.extract_payment_details(event) is None


def test_non_integer_amount_is_rejected():
    assert WebhookService.extract_payment_details(payment_intent_event(amount="89.00")) is None
    assert WebhookService.extract_payment_details(checkout_session_event(amount_total=45.5)) is None


def test_malformed_nested_fields_are_ignored():
    event = payment_intent_event()
    event["data"]["object"]["shipping"] = "Jane Doe"
    event["data"]["object"]["metadata"] = ["email"]

    details = WebhookService.extract_payment_details(event)

    assert details.email == "new@x.com"
    assert details.name == ""
    assert details.phone is None


def test_verify_event_valid_signature():
    body = json.dumps(payment_intent_event())

    event = WebhookService.verify_event(body.encode(), sign_payload(body))

    assert event["type"] == "payment_intent.succeeded"


def test_verify_event_rejects_bad_signature():
    body = json.dumps(payment_intent_event())

    with pytest.raises(HTTPException) as exc_info:
        WebhookService.verify_event(body.encode(), sign_payload(body, secret="whsec_wrong"))

    assert exc_info.value.status_code == 400


def test_verify_event_rejects_stale_timestamp():
    body = json.dumps(payment_intent_event())

    with pytest.raises(HTTPException) as exc_info:
        WebhookService.verify_event(body.encode(), sign_payload(body, timestamp=1_000_000))

    assert exc_info.value.status_code == 400


def test_verify_event_missing_signature():
    with pytest.raises(HTTPException) as exc_info:
        WebhookService.verify_event(b"{}", None)

    assert exc_info.value.status_code == 400


def test_unsigned_event_accepted_outside_production(monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", None)

    event = WebhookService.verify_event(json.dumps({"type": "ping"}).encode(), None)

    assert event == {"type": "ping"}


def test_unsigned_event_refused_in_production(monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", None)
    monkeypatch.setattr(settings, "ENV", "production")

    with pytest.raises(HTTPException) as exc_info:
        WebhookService.verify_event(b"{}", None)

    assert exc_info.value.status_code == 500


def test_intake_outcome_tracks_state():
    outcome = IntakeOutcome(order=None)
    assert outcome.state == IntakeState.RECEIVED

    outcome.advance(IntakeState.ORDER_CREATED)
    outcome.advance(IntakeState.DONE)

    assert outcome.state == IntakeState.DONE
    assert outcome.history == [IntakeState.RECEIVED, IntakeState.ORDER_CREATED, IntakeState.DONE]
