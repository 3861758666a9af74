"""One-time email verification tokens."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta

from models import db, utcnow
from models.user import User

TOKEN_TTL = timedelta(hours=24)
RESEND_COOLDOWN = timedelta(minutes=1)


class InvalidVerificationToken(Exception):
    """Raised for unknown, already used, or expired tokens alike."""


class ResendTooSoon(Exception):
    pass


def issue_verification_token(user: User, now: datetime | None = None) -> str:
    """Attach a fresh token to ``user``; the caller commits."""

    now = now or utcnow()
    token = secrets.token_urlsafe(32)
    user.email_verified = False
    user.email_verification_token = token
    user.email_verification_expiry = now + TOKEN_TTL
    return token


def reissue_verification_token(user: User, now: datetime | None = None) -> str:
    """Issue a new token unless the previous one is under a minute old."""

    now = now or utcnow()
    if user.email_verification_expiry is not None:
        issued_at = user.email_verification_expiry - TOKEN_TTL
        if issued_at > now - RESEND_COOLDOWN:
            raise ResendTooSoon(
                "Please wait at least 1 minute before requesting another email."
            )
    return issue_verification_token(user, now)


def consume_verification_token(token: str, now: datetime | None = None) -> User:
    """Mark the owning user verified and burn the token.

    Wrong and expired tokens raise the same ``InvalidVerificationToken`` so a
    caller cannot tell which one it hit.
    """

    now = now or utcnow()
    if not token:
        raise InvalidVerificationToken()
    user = db.session.execute(
        db.select(User).where(
            User.email_verification_token == token,
            User.email_verification_expiry > now,
        )
    ).scalar_one_or_none()
    if user is None:
        raise InvalidVerificationToken()

    user.mark_email_verified()
    db.session.commit()
    return user


def is_verified_for_polling(email: str) -> bool:
    """Report ``False`` only for an existing, unverified provider account."""

    if not email:
        return True
    user = db.session.execute(
        db.select(User).where(User.email == email)
    ).scalar_one_or_none()
    if user is not None and user.role == "provider" and not user.email_verified:
        return False
    return True
