import hashlib
import hmac
import json
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest

from app.models.subscription import Payment, Subscription
from app.services.payment_service import payment_service
from app.utils.timezone import add_months, ensure_utc

WEBHOOK_SECRET = "whsec_test"


def _signed(client, event, secret=WEBHOOK_SECRET):
    body = json.dumps(event)
    signature = hmac.new(secret.encode(), body.encode(), hashlib.sha256).hexdigest()
    return client.post(
        "/api/payments/webhook",
        content=body,
        headers={"Content-Type": "application/json", "X-Razorpay-Signature": signature},
    )


def _activation_event(student, plan_id="plan_essential_3m", event_type="subscription.activated",
                      provider_id="sub_001", payment_id="pay_001"):
    return {
        "event": event_type,
        "payload": {
            "subscription": {
                "entity": {
                    "id": provider_id,
                    "plan_id": plan_id,
                    "customer_id": "cust_001",
                    "current_start": 1792400000,
                    "notes": {"student_id": str(student.id), "price_id": plan_id, "months": "3", "lang": "es"},
                }
            },
            "payment": {
                "entity": {"id": payment_id, "amount": 43200, "currency": "eur", "status": "captured"}
            },
        },
    }


def test_packages_list_totals(client, auth_headers, student, package):
    response = client.get("/api/packages", headers=auth_headers(student))
    assert response.status_code == 200
    prices = response.json()[0]["prices"]
    assert [p["total"] for p in prices] == [160, 432, 768]
    assert prices[2]["price_id"] == "plan_essential_6m"


def test_create_checkout_returns_hosted_url(client, auth_headers, student, package):
    provider_result = {"success": True, "subscription_id": "sub_001", "url": "https://rzp.io/i/abc"}
    with patch.object(payment_service, "create_subscription_checkout", return_value=provider_result) as create:
        response = client.post(
            "/api/create-checkout", headers=auth_headers(student), json={"priceId": "plan_essential_3m", "lang": "en"}
        )

    assert response.status_code == 200
    assert response.json() == {"url": "https://rzp.io/i/abc"}
    plan_id, notes = create.call_args.args
    assert plan_id == "plan_essential_3m"
    assert notes["student_id"] == str(student.id)
    assert notes["months"] == "3"
    assert notes["lang"] == "en"
    assert create.call_args.kwargs["customer_email"] == "ana@campus.es"


@pytest.mark.parametrize("payload", [{}, {"priceId": "plan_unknown"}])
def test_create_checkout_rejects_bad_price(client, auth_headers, student, package, payload):
    with patch.object(payment_service, "create_subscription_checkout") as create:
        response = client.post("/api/create-checkout", headers=auth_headers(student), json=payload)
    assert response.status_code == 400
    create.assert_not_called()


def test_create_checkout_rejects_active_subscription(client, auth_headers, student, make_subscription):
    make_subscription(student)
    with patch.object(payment_service, "create_subscription_checkout") as create:
        response = client.post(
            "/api/create-checkout", headers=auth_headers(student), json={"priceId": "plan_essential_1m"}
        )
    assert response.status_code == 400
    assert response.json()["detail"] == "Ya tienes una suscripción activa"
    create.assert_not_called()


def test_provider_failure_is_a_bad_gateway(client, auth_headers, student, package):
    failure = {"success": False, "error": "boom", "message": "Failed to create checkout"}
    with patch.object(payment_service, "create_subscription_checkout", return_value=failure):
        response = client.post(
            "/api/create-checkout", headers=auth_headers(student), json={"priceId": "plan_essential_1m"}
        )
    assert response.status_code == 502


def test_webhook_rejects_bad_signature(client, student, package):
    assert _signed(client, _activation_event(student), secret="wrong").status_code == 400

    unsigned = client.post("/api/payments/webhook", content=json.dumps(_activation_event(student)))
    assert unsigned.status_code == 400


def test_webhook_activates_subscription_once(client, db, student, package):
    with patch("app.api.endpoints.checkout.email_service") as email:
        email.send_subscription_confirmation.return_value = {"success": True}
        response = _signed(client, _activation_event(student))
        assert response.status_code == 200
        assert response.json() == {"received": True}
        email.send_subscription_confirmation.assert_called_once()

        # Redelivery of the same event
        _signed(client, _activation_event(student))
        assert email.send_subscription_confirmation.call_count == 1

    subscriptions = db.query(Subscription).all()
    assert len(subscriptions) == 1
    subscription = subscriptions[0]
    assert subscription.status == "active"
    assert subscription.duration_months == 3
    assert subscription.sessions_total == 24
    assert subscription.sessions_used == 0
    assert subscription.provider_subscription_id == "sub_001"
    starts_at = datetime.fromtimestamp(1792400000, tz=timezone.utc)
    assert ensure_utc(subscription.starts_at) == starts_at
    assert ensure_utc(subscription.ends_at) == add_months(starts_at, 3)

    payments = db.query(Payment).all()
    assert len(payments) == 1
    assert payments[0].amount == Decimal("432.00")
    assert payments[0].currency == "EUR"

    db.refresh(student)
    assert student.payment_customer_id == "cust_001"


def test_renewal_charge_records_a_new_payment(client, db, student, package):
    _signed(client, _activation_event(student))
    _signed(client, _activation_event(student, event_type="subscription.charged", payment_id="pay_002"))

    assert db.query(Subscription).count() == 1
    assert db.query(Payment).count() == 2


def test_status_events_update_subscription(client, db, student, package):
    _signed(client, _activation_event(student))
    cancelled = {"event": "subscription.cancelled", "payload": {"subscription": {"entity": {"id": "sub_001"}}}}
    assert _signed(client, cancelled).status_code == 200

    db.expire_all()
    assert db.query(Subscription).one().status == "cancelled"


def test_unknown_events_are_acknowledged(client, db, student, package):
    response = _signed(client, {"event": "invoice.paid", "payload": {}})
    assert response.status_code == 200
    assert db.query(Subscription).count() == 0


def test_missing_notes_are_acknowledged_without_changes(client, db, package):
    event = {"event": "subscription.activated", "payload": {"subscription": {"entity": {"id": "sub_x"}}}}
    assert _signed(client, event).status_code == 200
    assert db.query(Subscription).count() == 0
