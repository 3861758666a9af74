"""Database initialization and model exports."""

from datetime import UTC, datetime

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime."""

    return datetime.now(UTC).replace(tzinfo=None)


def isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# Import models to register them with SQLAlchemy metadata.
from .user import User  # noqa: E402,F401
from .provider import Provider, ProviderSettings  # noqa: E402,F401
from .consumer import Consumer  # noqa: E402,F401
from .booking import Booking  # noqa: E402,F401
from .exchange import Exchange  # noqa: E402,F401
from .feedback import Feedback  # noqa: E402,F401
from .enrollment_request import EnrollmentRequest  # noqa: E402,F401
from .app_settings import AppSettings  # noqa: E402,F401

__all__ = [
    "db",
    "utcnow",
    "User",
    "Provider",
    "ProviderSettings",
    "Consumer",
    "Booking",
    "Exchange",
    "Feedback",
    "EnrollmentRequest",
    "AppSettings",
]
