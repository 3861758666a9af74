"""Tests for admin stats, tenant management, feedback moderation and settings."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from conftest import create_consumer, create_provider, create_user
from models import db
from models.app_settings import AppSettings
from models.booking import Booking
from models.consumer import Consumer
from models.exchange import Exchange
from models.feedback import Feedback
from models.provider import Provider
from models.user import User
from services.admin_stats import collect_platform_stats

NOW = datetime(2026, 3, 1, 12, 0, 0)


@pytest.fixture()
def admin_headers(app, auth_headers):
    with app.app_context():
        admin = create_user("admin@example.com", role="admin", name="Admin")
        admin_id = admin.id
    return auth_headers(admin_id)


def _book(consumer: Consumer, start: datetime) -> Booking:
    booking = Booking(consumer=consumer, start_time=start, end_time=start + timedelta(minutes=30))
    db.session.add(booking)
    return booking


def test_stats_partition_bookings_around_now(app):
    with app.app_context():
        provider = create_provider()
        # an admin's own provider profile is not counted
        create_provider("admin-owner@example.com", role="admin")
        first = create_consumer(provider, "a@example.com")
        second = create_consumer(provider, "b@example.com")
        _book(first, NOW - timedelta(days=2))
        _book(first, NOW - timedelta(seconds=1))
        _book(second, NOW)
        _book(second, NOW + timedelta(days=7))
        db.session.add(
            Exchange(provider_id=provider.id, requester_id=first.id, target_consumer_id=second.id)
        )
        db.session.add(Feedback(user_id=first.user_id, category="bug", message="x"))
        db.session.add(
            Feedback(user_id=first.user_id, category="bug", message="y", status="resolved")
        )
        db.session.commit()

        stats = collect_platform_stats(now=NOW)

    assert stats.to_dict() == {
        "providers": 1,
        "consumers": 2,
        "scheduledBookings": 2,
        "pastBookings": 2,
        "exchanges": 1,
        "openFeedback": 1,
    }
    assert stats.scheduledBookings + stats.pastBookings == 4


def test_stats_endpoint_returns_counts(client, admin_headers):
    response = client.get("/api/admin/stats", headers=admin_headers)

    assert response.status_code == 200
    assert response.get_json() == {
        "providers": 0,
        "consumers": 0,
        "scheduledBookings": 0,
        "pastBookings": 0,
        "exchanges": 0,
        "openFeedback": 0,
    }


def test_stats_failure_fails_whole_aggregation(app, client, admin_headers, monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr("routes.admin.collect_platform_stats", _boom)

    response = client.get("/api/admin/stats", headers=admin_headers)

    assert response.status_code == 500
    assert "providers" not in response.get_json()


def test_list_providers_excludes_admin_accounts(app, client, admin_headers):
    with app.app_context():
        provider = create_provider()
        create_consumer(provider, "c@example.com")
        create_provider("owner@example.com", role="admin", business_name="Admin Biz")

    response = client.get("/api/admin/providers", headers=admin_headers)

    assert response.status_code == 200
    payload = response.get_json()
    assert [p["businessName"] for p in payload] == ["Sunrise Tutoring"]
    assert payload[0]["consumerCount"] == 1
    assert payload[0]["user"]["email"] == "provider@example.com"
    assert payload[0]["settings"]["defaultBookingDuration"] == 30


def test_list_consumers_across_tenants(app, client, admin_headers):
    with app.app_context():
        first = create_provider("one@example.com", business_name="One")
        second = create_provider("two@example.com", business_name="Two")
        create_consumer(first, "c1@example.com")
        create_consumer(second, "c2@example.com")

    response = client.get("/api/admin/consumers", headers=admin_headers)

    assert response.status_code == 200
    payload = response.get_json()
    assert {c["businessName"] for c in payload} == {"One", "Two"}
    assert all(c["hasAccount"] for c in payload)
    assert all(c["providerName"] == "Pat Provider" for c in payload)


def test_update_provider_fields(app, client, admin_headers):
    with app.app_context():
        provider_id = create_provider().id

    response = client.put(
        f"/api/admin/providers/{provider_id}",
        json={"businessName": "Renamed", "subscriptionExempt": True, "email": " NEW@Example.com "},
        headers=admin_headers,
    )

    assert response.status_code == 200
    with app.app_context():
        provider = db.session.get(Provider, provider_id)
        assert provider.business_name == "Renamed"
        assert provider.subscription_exempt is True
        assert provider.user.email == "new@example.com"


def test_delete_provider_removes_account_and_exchanges(app, client, admin_headers):
    with app.app_context():
        provider = create_provider()
        first = create_consumer(provider, "a@example.com")
        second = create_consumer(provider, "b@example.com")
        db.session.add(
            Exchange(provider_id=provider.id, requester_id=first.id, target_consumer_id=second.id)
        )
        db.session.commit()
        provider_id, user_id = provider.id, provider.user_id

    response = client.delete(f"/api/admin/providers/{provider_id}", headers=admin_headers)

    assert response.status_code == 200
    with app.app_context():
        assert db.session.get(Provider, provider_id) is None
        assert db.session.get(User, user_id) is None
        assert Exchange.query.count() == 0
        assert Consumer.query.count() == 0


def test_delete_missing_consumer_is_404(client, admin_headers):
    response = client.delete("/api/admin/consumers/999", headers=admin_headers)

    assert response.status_code == 404
    assert response.get_json()["error"] == "Consumer not found"


def test_update_consumer_validates_duration(app, client, admin_headers):
    with app.app_context():
        consumer_id = create_consumer(create_provider(), "c@example.com").id

    bad = client.put(
        f"/api/admin/consumers/{consumer_id}",
        json={"bookingDuration": "long"},
        headers=admin_headers,
    )
    good = client.put(
        f"/api/admin/consumers/{consumer_id}",
        json={"bookingDuration": "45", "serviceType": "Piano"},
        headers=admin_headers,
    )

    assert bad.status_code == 400
    assert good.status_code == 200
    with app.app_context():
        consumer = db.session.get(Consumer, consumer_id)
        assert consumer.booking_duration == 45
        assert consumer.service_type == "Piano"


def _make_feedback(**fields) -> int:
    user = User.query.filter_by(email="author@example.com").first() or create_user(
        "author@example.com", name="Author"
    )
    feedback = Feedback(user_id=user.id, **fields)
    db.session.add(feedback)
    db.session.commit()
    return feedback.id


def test_feedback_list_filters(app, client, admin_headers):
    with app.app_context():
        _make_feedback(category="bug", message="one")
        _make_feedback(category="question", message="two")
        _make_feedback(category="bug", message="three", status="resolved")

    response = client.get("/api/admin/feedback?category=bug&status=open", headers=admin_headers)

    assert response.status_code == 200
    rows = response.get_json()
    assert [row["message"] for row in rows] == ["one"]
    assert rows[0]["userEmail"] == "author@example.com"
    assert rows[0]["userName"] == "Author"


def test_feedback_update_sets_status_and_response(app, client, admin_headers):
    with app.app_context():
        feedback_id = _make_feedback(category="bug", message="broken")

    response = client.put(
        f"/api/admin/feedback/{feedback_id}",
        json={"status": "resolved", "adminResponse": "Fixed in the next release"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["status"] == "resolved"
    assert payload["adminResponse"] == "Fixed in the next release"

    reopened = client.put(
        f"/api/admin/feedback/{feedback_id}", json={"status": "open"}, headers=admin_headers
    )
    assert reopened.get_json()["status"] == "open"
    assert reopened.get_json()["adminResponse"] == "Fixed in the next release"


def test_feedback_update_rejects_unknown_status(app, client, admin_headers):
    with app.app_context():
        feedback_id = _make_feedback(category="bug", message="broken")

    response = client.put(
        f"/api/admin/feedback/{feedback_id}",
        json={"status": "archived", "adminResponse": "ignored"},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "Status must be 'open' or 'resolved'"
    with app.app_context():
        stored = db.session.get(Feedback, feedback_id)
        assert stored.status == "open"
        assert stored.admin_response is None


def test_feedback_update_missing_is_404(client, admin_headers):
    response = client.put("/api/admin/feedback/404", json={"status": "open"}, headers=admin_headers)

    assert response.status_code == 404


def test_settings_created_on_first_access_and_updated(app, client, admin_headers):
    response = client.get("/api/admin/settings", headers=admin_headers)

    assert response.status_code == 200
    assert response.get_json() == {
        "id": "singleton",
        "paymentsEnabled": False,
        "monthlyPrice": 9.99,
        "yearlyPrice": 99.0,
        "freeConsumerLimit": 3,
    }

    update = client.put(
        "/api/admin/settings",
        json={"paymentsEnabled": True, "freeConsumerLimit": "5", "monthlyPrice": 12.5},
        headers=admin_headers,
    )
    assert update.status_code == 200
    with app.app_context():
        assert AppSettings.query.count() == 1
        settings = AppSettings.get()
        assert settings.payments_enabled is True
        assert settings.free_consumer_limit == 5
        assert settings.monthly_price == 12.5


def test_settings_reject_negative_limit(client, admin_headers):
    response = client.put(
        "/api/admin/settings", json={"freeConsumerLimit": -1}, headers=admin_headers
    )

    assert response.status_code == 400


def test_update_consumer_email_to_taken_address_conflicts(app, client, admin_headers):
    with app.app_context():
        consumer_id = create_consumer(create_provider(), "c@example.com").id

    response = client.put(
        f"/api/admin/consumers/{consumer_id}",
        json={"email": "provider@example.com", "name": "Renamed"},
        headers=admin_headers,
    )

    assert response.status_code == 409
    assert response.get_json()["error"] == "Email already registered"
    with app.app_context():
        consumer = db.session.get(Consumer, consumer_id)
        assert consumer.user.email == "c@example.com"
        assert consumer.user.name == "Casey Consumer"


def test_update_provider_keeps_own_email(app, client, admin_headers):
    with app.app_context():
        provider_id = create_provider().id

    response = client.put(
        f"/api/admin/providers/{provider_id}",
        json={"email": "Provider@Example.com"},
        headers=admin_headers,
    )

    assert response.status_code == 200


@pytest.mark.parametrize(
    "payload",
    [{"name": 42}, {"phone": ["555"]}, {"serviceType": {"a": 1}}],
)
def test_update_consumer_rejects_non_string_fields(app, client, admin_headers, payload):
    with app.app_context():
        consumer_id = create_consumer(create_provider(), "c@example.com").id

    response = client.put(
        f"/api/admin/consumers/{consumer_id}", json=payload, headers=admin_headers
    )

    assert response.status_code == 400


def test_feedback_update_rejects_non_string_response(app, client, admin_headers):
    with app.app_context():
        feedback_id = _make_feedback(category="bug", message="broken")

    response = client.put(
        f"/api/admin/feedback/{feedback_id}",
        json={"adminResponse": {"a": 1}},
        headers=admin_headers,
    )

    assert response.status_code == 400
    with app.app_context():
        assert db.session.get(Feedback, feedback_id).admin_response is None


def test_feedback_update_allows_clearing_response(app, client, admin_headers):
    with app.app_context():
        feedback_id = _make_feedback(category="bug", message="broken", admin_response="old")

    response = client.put(
        f"/api/admin/feedback/{feedback_id}",
        json={"adminResponse": None},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.get_json()["adminResponse"] is None


@pytest.mark.parametrize("status", ["", 0, False, "OPEN"])
def test_feedback_update_rejects_falsy_or_unknown_status(app, client, admin_headers, status):
    with app.app_context():
        feedback_id = _make_feedback(category="bug", message="broken", status="resolved")

    response = client.put(
        f"/api/admin/feedback/{feedback_id}",
        json={"status": status},
        headers=admin_headers,
    )

    assert response.status_code == 400
    with app.app_context():
        assert db.session.get(Feedback, feedback_id).status == "resolved"


@pytest.mark.parametrize("value", [3.7, "3.7"])
def test_settings_reject_fractional_consumer_limit(app, client, admin_headers, value):
    response = client.put(
        "/api/admin/settings", json={"freeConsumerLimit": value}, headers=admin_headers
    )

    assert response.status_code == 400
    with app.app_context():
        assert AppSettings.get().free_consumer_limit == 3


def test_update_consumer_rejects_fractional_duration(app, client, admin_headers):
    with app.app_context():
        consumer_id = create_consumer(create_provider(), "c@example.com").id

    fractional = client.put(
        f"/api/admin/consumers/{consumer_id}",
        json={"bookingDuration": 45.5},
        headers=admin_headers,
    )
    whole = client.put(
        f"/api/admin/consumers/{consumer_id}",
        json={"bookingDuration": 60.0},
        headers=admin_headers,
    )

    assert fractional.status_code == 400
    assert whole.status_code == 200
    with app.app_context():
        assert db.session.get(Consumer, consumer_id).booking_duration == 60
