"""Tests for the public settings endpoint."""

from __future__ import annotations

from conftest import configure_payments
from models.app_settings import AppSettings


def test_public_settings_hide_pricing_when_payments_disabled(app, client):
    response = client.get("/api/settings/public")

    assert response.status_code == 200
    assert response.get_json() == {"paymentsEnabled": False}
    with app.app_context():
        assert AppSettings.query.count() == 1


def test_public_settings_include_pricing_when_enabled(app, client):
    with app.app_context():
        configure_payments(True, free_consumer_limit=5)

    response = client.get("/api/settings/public")

    assert response.status_code == 200
    assert response.get_json() == {
        "paymentsEnabled": True,
        "monthlyPrice": 9.99,
        "yearlyPrice": 99.0,
        "freeConsumerLimit": 5,
    }


def test_public_settings_need_no_authentication(client):
    response = client.get(
        "/api/settings/public", headers={"Authorization": "Bearer garbage"}
    )

    assert response.status_code == 200
