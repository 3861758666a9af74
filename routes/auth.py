"""Authentication blueprint: registration, login and email verification."""

from __future__ import annotations
from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import create_access_token
from werkzeug.exceptions import BadRequest, Conflict, Forbidden, NotFound, Unauthorized

from models import db, utcnow
from models.provider import Provider, ProviderSettings
from models.user import User
from services.verification import (
    ResendTooSoon,
    consume_verification_token,
    is_verified_for_polling,
    issue_verification_token,
    reissue_verification_token,
)
from utils.identity import caller_for_user, require_auth
from utils.request_validation import normalize_email, parse_json_request

SELF_SERVICE_ROLES = {"provider", "consumer"}
auth_bp = Blueprint("auth", __name__)


def _find_user(email: str) -> User | None:
    return db.session.execute(
        db.select(User).where(User.email == email)
    ).scalar_one_or_none()


def _send_verification(user: User, token: str) -> None:
    base_url = current_app.config.get("AUTH_URL") or current_app.config.get("APP_URL")
    verify_url = f"{base_url.rstrip('/')}/auth/verify-email/{token}"
    current_app.extensions["mailer"].send_verification(user.email, user.name, verify_url)


def _serialize_session_user(user: User) -> dict:
    caller = caller_for_user(user)
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "isAdmin": user.is_admin,
        "providerId": getattr(caller, "provider_id", None),
        "consumerIds": list(getattr(caller, "consumer_ids", ())),
    }


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple:
    """Register a provider or consumer account.

    Providers start unverified with a provider profile and default settings,
    and receive a verification email. Consumers are verified immediately.
    """
    payload = parse_json_request(
        request,
        required_keys=("email", "password", "name", "role"),
        message="Missing required fields",
    )
    email = normalize_email(payload.get("email"))
    password = str(payload.get("password"))
    name = str(payload.get("name")).strip()
    role = str(payload.get("role")).strip().lower()

    if not email:
        raise BadRequest("Missing required fields")
    if role not in SELF_SERVICE_ROLES:
        raise BadRequest("Invalid role")

    existing = _find_user(email)
    if existing is not None:
        # An unverified provider whose link expired may sign up again.
        stale = (
            existing.role == "provider"
            and not existing.email_verified
            and existing.email_verification_expiry is not None
            and existing.email_verification_expiry < utcnow()
        )
        if not stale:
            raise Conflict("Email already registered")
        db.session.delete(existing)
        db.session.flush()

    is_provider = role == "provider"
    user = User(
        email=email,
        name=name,
        role=role,
        phone=payload.get("phone") or None,
        email_verified=not is_provider,
    )
    user.set_password(password)
    db.session.add(user)

    if not is_provider:
        db.session.commit()
        return jsonify(_serialize_session_user(user)), HTTPStatus.CREATED

    token = issue_verification_token(user)
    provider = Provider(user=user, business_name=payload.get("businessName") or "My Business")
    provider.settings = ProviderSettings()
    db.session.add(provider)
    db.session.commit()

    _send_verification(user, token)
    return (
        jsonify({"success": True, "requiresVerification": True}),
        HTTPStatus.CREATED,
    )


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate a user and return a JWT access token."""
    payload = parse_json_request(request)
    email = normalize_email(payload.get("email"))
    password = payload.get("password") or ""

    if not email or not password:
        raise BadRequest("Email and password are required")

    user = _find_user(email)
    if user is None or not user.check_password(password):
        raise Unauthorized("Invalid email or password")

    if user.provider_profile is not None and not user.email_verified:
        raise Forbidden("Please verify your email before signing in")

    token = create_access_token(identity=str(user.id))
    return (
        jsonify({"token": token, "user": _serialize_session_user(user)}),
        HTTPStatus.OK,
    )


@auth_bp.route("/me", methods=["GET"])
def me():
    """Return the authenticated user for mobile clients."""
    caller = require_auth()
    user = db.session.get(User, caller.user.id)
    if user is None:
        raise NotFound("User not found")
    return jsonify(_serialize_session_user(user))


@auth_bp.route("/check-verification", methods=["POST"])
def check_verification():
    """Poll verification state without revealing whether an account exists."""
    payload = request.get_json(silent=True)
    email = normalize_email(payload.get("email") if isinstance(payload, dict) else None)
    try:
        verified = is_verified_for_polling(email)
    except Exception:
        current_app.logger.warning("Verification poll failed", exc_info=True)
        db.session.rollback()
        verified = True
    return jsonify({"verified": verified})


@auth_bp.route("/verify-email/<token>", methods=["GET"])
def verify_email(token: str):
    """Consume a verification token; failures surface as a generic 400."""
    consume_verification_token(token)
    return jsonify({"success": True})


@auth_bp.route("/resend-verification", methods=["POST"])
def resend_verification():
    """Re-send the verification email to an unverified provider."""
    payload = request.get_json(silent=True)
    email = normalize_email(payload.get("email") if isinstance(payload, dict) else None)
    if not email:
        return jsonify({"success": True})

    user = _find_user(email)
    if user is None or user.role != "provider" or user.email_verified:
        return jsonify({"success": True})

    try:
        token = reissue_verification_token(user)
    except ResendTooSoon as exc:
        return jsonify({"success": False, "error": str(exc)})

    db.session.commit()
    _send_verification(user, token)
    return jsonify({"success": True})
