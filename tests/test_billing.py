"""Tests for the Stripe portal, checkout and webhook endpoints."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
import stripe

from conftest import create_consumer, create_provider
from models import db
from models.provider import Provider

PERIOD_END = datetime(2026, 6, 1, tzinfo=UTC)


def _subscription(sub_id: str = "sub_123", status: str = "active", price: str = "price_monthly"):
    return {
        "id": sub_id,
        "status": status,
        "items": {
            "data": [
                {
                    "price": {"id": price},
                    "current_period_end": int(PERIOD_END.timestamp()),
                }
            ]
        },
    }


@pytest.fixture()
def provider_headers(app, auth_headers):
    """Headers for a provider that already has a Stripe customer."""

    with app.app_context():
        provider = create_provider(stripe_customer_id="cus_123")
        user_id = provider.user_id
    return auth_headers(user_id)


@pytest.fixture()
def webhook_event(app, monkeypatch):
    """Make ``construct_event`` return whatever event the test sets."""

    holder: dict = {}

    def _mock_construct_event(payload, sig_header, secret):
        assert secret == app.config["STRIPE_WEBHOOK_SECRET"]
        if sig_header != "sig":
            raise stripe.SignatureVerificationError("bad signature", sig_header)
        return holder["event"]

    monkeypatch.setattr(
        stripe.Webhook, "construct_event", staticmethod(_mock_construct_event)
    )

    def _set(event_type: str, data_object: dict) -> None:
        holder["event"] = {"type": event_type, "data": {"object": data_object}}

    return _set


def _post_webhook(client, signature: str | None = "sig"):
    headers = {"Stripe-Signature": signature} if signature else {}
    return client.post("/api/stripe/webhook", data=b"{}", headers=headers)


def test_portal_returns_session_url(app, client, provider_headers, monkeypatch):
    captured = {}

    def _mock_create(**kwargs):
        captured.update(kwargs)
        return {"url": "https://billing.stripe.com/session/abc"}

    monkeypatch.setattr(stripe.billing_portal.Session, "create", staticmethod(_mock_create))

    response = client.post(
        "/api/stripe/portal",
        headers={**provider_headers, "Origin": "https://tenant.example.com"},
    )

    assert response.status_code == 200
    assert response.get_json() == {"url": "https://billing.stripe.com/session/abc"}
    assert captured["customer"] == "cus_123"
    assert captured["return_url"] == "https://tenant.example.com/dashboard/provider?tab=settings"
    assert captured["api_key"] == "sk_test"


def test_portal_without_customer_is_bad_request(app, client, auth_headers):
    with app.app_context():
        user_id = create_provider().user_id

    response = client.post("/api/stripe/portal", headers=auth_headers(user_id))

    assert response.status_code == 400
    assert response.get_json()["error"] == "No billing account found"


def test_portal_upstream_failure_is_bad_gateway(client, provider_headers, monkeypatch):
    def _mock_create(**kwargs):
        raise stripe.StripeError("No such customer")

    monkeypatch.setattr(stripe.billing_portal.Session, "create", staticmethod(_mock_create))

    response = client.post("/api/stripe/portal", headers=provider_headers)

    assert response.status_code == 502
    assert "No such customer" in response.get_json()["error"]


def test_portal_without_stripe_key_is_server_error(app, client, provider_headers):
    app.extensions["stripe_gateway"] = None

    response = client.post("/api/stripe/portal", headers=provider_headers)

    assert response.status_code == 500
    assert response.get_json()["error"] == "Stripe secret key is not configured."


def test_portal_requires_provider(app, client, auth_headers):
    with app.app_context():
        consumer = create_consumer(create_provider(), "kid@example.com")
        user_id = consumer.user_id

    response = client.post("/api/stripe/portal", headers=auth_headers(user_id))

    assert response.status_code == 401


def test_checkout_creates_customer_and_session(app, client, auth_headers, monkeypatch):
    with app.app_context():
        provider = create_provider()
        provider_id, user_id = provider.id, provider.user_id

    captured = {}

    def _mock_customer(**kwargs):
        return {"id": "cus_new"}

    def _mock_session(**kwargs):
        captured.update(kwargs)
        return {"url": "https://checkout.stripe.com/c/pay"}

    monkeypatch.setattr(stripe.Customer, "create", staticmethod(_mock_customer))
    monkeypatch.setattr(stripe.checkout.Session, "create", staticmethod(_mock_session))

    response = client.post(
        "/api/stripe/checkout", json={"plan": "yearly"}, headers=auth_headers(user_id)
    )

    assert response.status_code == 200
    assert response.get_json()["url"] == "https://checkout.stripe.com/c/pay"
    assert captured["line_items"] == [{"price": "price_yearly", "quantity": 1}]
    assert captured["metadata"] == {"providerId": str(provider_id)}
    with app.app_context():
        assert db.session.get(Provider, provider_id).stripe_customer_id == "cus_new"


def test_checkout_rejects_unknown_plan(client, provider_headers):
    response = client.post(
        "/api/stripe/checkout", json={"plan": "weekly"}, headers=provider_headers
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid plan"


def test_webhook_requires_signature(client, webhook_event):
    response = _post_webhook(client, signature=None)

    assert response.status_code == 400
    assert response.get_json()["error"] == "Missing signature"


def test_webhook_rejects_bad_signature(client, webhook_event):
    webhook_event("invoice.payment_failed", {})

    response = _post_webhook(client, signature="forged")

    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid signature"


def test_checkout_completed_activates_subscription(app, client, webhook_event, monkeypatch):
    with app.app_context():
        provider_id = create_provider(stripe_customer_id="cus_123").id

    monkeypatch.setattr(
        stripe.Subscription,
        "retrieve",
        staticmethod(lambda sub_id, **kwargs: _subscription(sub_id)),
    )
    webhook_event(
        "checkout.session.completed",
        {"metadata": {"providerId": str(provider_id)}, "subscription": "sub_123"},
    )

    response = _post_webhook(client)

    assert response.status_code == 200
    assert response.get_json() == {"received": True}
    with app.app_context():
        provider = db.session.get(Provider, provider_id)
        assert provider.stripe_subscription_id == "sub_123"
        assert provider.subscription_status == "active"
        assert provider.subscription_plan == "monthly"
        assert provider.subscription_period_end == PERIOD_END.replace(tzinfo=None)


def test_subscription_updated_changes_plan(app, client, webhook_event):
    with app.app_context():
        provider_id = create_provider(
            stripe_subscription_id="sub_123", subscription_status="active"
        ).id

    webhook_event(
        "customer.subscription.updated",
        _subscription(status="trialing", price="price_yearly"),
    )

    assert _post_webhook(client).status_code == 200
    with app.app_context():
        provider = db.session.get(Provider, provider_id)
        assert provider.subscription_status == "trialing"
        assert provider.subscription_plan == "yearly"


def test_subscription_deleted_cancels(app, client, webhook_event):
    with app.app_context():
        provider_id = create_provider(
            stripe_subscription_id="sub_123", subscription_status="active"
        ).id

    webhook_event("customer.subscription.deleted", {"id": "sub_123"})

    assert _post_webhook(client).status_code == 200
    with app.app_context():
        provider = db.session.get(Provider, provider_id)
        assert provider.subscription_status == "canceled"
        assert provider.stripe_subscription_id is None


def test_invoice_paid_extends_period(app, client, webhook_event, monkeypatch):
    with app.app_context():
        provider_id = create_provider(
            stripe_subscription_id="sub_123",
            subscription_status="past_due",
            subscription_period_end=datetime(2026, 1, 1),
        ).id

    monkeypatch.setattr(
        stripe.Subscription,
        "retrieve",
        staticmethod(lambda sub_id, **kwargs: _subscription(sub_id)),
    )
    webhook_event(
        "invoice.payment_succeeded",
        {"parent": {"subscription_details": {"subscription": "sub_123"}}},
    )

    assert _post_webhook(client).status_code == 200
    with app.app_context():
        provider = db.session.get(Provider, provider_id)
        assert provider.subscription_status == "active"
        assert provider.subscription_period_end - datetime(2026, 1, 1) > timedelta(days=100)


def test_invoice_failed_marks_past_due(app, client, webhook_event):
    with app.app_context():
        provider_id = create_provider(
            stripe_subscription_id="sub_123", subscription_status="active"
        ).id

    webhook_event("invoice.payment_failed", {"subscription": "sub_123"})

    assert _post_webhook(client).status_code == 200
    with app.app_context():
        assert db.session.get(Provider, provider_id).subscription_status == "past_due"


def test_unhandled_event_is_acknowledged(client, webhook_event):
    webhook_event("customer.created", {"id": "cus_999"})

    response = _post_webhook(client)

    assert response.status_code == 200
    assert response.get_json() == {"received": True}
