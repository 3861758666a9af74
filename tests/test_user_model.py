"""Tests for the User model helpers."""

from models import db
from models.user import User


def test_user_verification_helpers(app):
    """Ensure helper methods toggle verification state as expected."""

    with app.app_context():
        user = User(
            email="helper@example.com",
            role="provider",
            email_verification_token="tok",
        )
        user.set_password("password123")
        db.session.add(user)
        db.session.commit()

        assert user.email_verified is False
        assert user.is_admin is False
        assert user.check_password("password123") is True
        assert user.check_password("wrong") is False

        user.mark_email_verified()
        db.session.commit()
        db.session.refresh(user)

        assert user.email_verified is True
        assert user.email_verification_token is None
        assert user.email_verification_expiry is None


def test_placeholder_user_has_no_account(app):
    with app.app_context():
        user = User(email="placeholder@example.com", name="Kid")
        db.session.add(user)
        db.session.commit()

        assert user.role == "consumer"
        assert user.has_account is False
        assert user.check_password("") is False
        assert user.summary(("id", "name")) == {"id": user.id, "name": "Kid"}
