"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient
from flask_jwt_extended import create_access_token

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from models.app_settings import AppSettings  # noqa: E402
from models.consumer import Consumer  # noqa: E402
from models.provider import Provider, ProviderSettings  # noqa: E402
from models.user import User  # noqa: E402


class _BaseTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    RATELIMIT_ENABLED = False
    APP_URL = "https://app.example.com"
    AUTH_URL = "https://app.example.com"
    STRIPE_SECRET_KEY = "sk_test"
    STRIPE_WEBHOOK_SECRET = "whsec_test"
    STRIPE_MONTHLY_PRICE_ID = "price_monthly"
    STRIPE_YEARLY_PRICE_ID = "price_yearly"
    GOOGLE_PLACES_API_KEY = "places-key"
    RESEND_API_KEY = None


@pytest.fixture()
def app() -> Flask:
    """Create a Flask application instance for tests."""

    application = create_app(_BaseTestConfig)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def auth_headers(app):
    def _headers(user_id: int) -> dict[str, str]:
        with app.app_context():
            token = create_access_token(identity=str(user_id))
        return {"Authorization": f"Bearer {token}"}

    return _headers


def create_user(
    email: str,
    role: str = "consumer",
    *,
    name: str = "Test User",
    password: str | None = "Password123",
    verified: bool = True,
) -> User:
    user = User(email=email, name=name, role=role, email_verified=verified)
    if password:
        user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def create_provider(
    email: str = "provider@example.com",
    *,
    business_name: str = "Sunrise Tutoring",
    role: str = "provider",
    **provider_fields,
) -> Provider:
    user = create_user(email, role=role, name="Pat Provider")
    provider = Provider(user=user, business_name=business_name, **provider_fields)
    provider.settings = ProviderSettings()
    db.session.add(provider)
    db.session.commit()
    return provider


def create_consumer(provider: Provider, email: str, name: str = "Casey Consumer") -> Consumer:
    user = create_user(email, role="consumer", name=name)
    consumer = Consumer(user=user, provider=provider)
    db.session.add(consumer)
    db.session.commit()
    return consumer


def configure_payments(enabled: bool, free_consumer_limit: int = 3) -> AppSettings:
    settings = AppSettings.get()
    settings.payments_enabled = enabled
    settings.free_consumer_limit = free_consumer_limit
    db.session.commit()
    return settings
