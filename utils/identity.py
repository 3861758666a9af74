"""Caller identity resolution and role guards.

Every request is resolved to exactly one caller variant: ``Anonymous``,
``AdminCaller``, ``ProviderCaller`` or ``ConsumerCaller``. Route handlers use
the ``require_*`` guards below instead of inspecting user fields directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flask import g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from werkzeug.exceptions import BadRequest, Unauthorized

from models import db
from models.consumer import Consumer
from models.provider import Provider
from models.user import User


@dataclass(frozen=True)
class Anonymous:
    user: None = None


@dataclass(frozen=True)
class AdminCaller:
    user: User


@dataclass(frozen=True)
class ProviderCaller:
    user: User
    provider_id: int | None


@dataclass(frozen=True)
class ConsumerCaller:
    user: User
    consumer_ids: tuple[int, ...] = field(default_factory=tuple)


Caller = Anonymous | AdminCaller | ProviderCaller | ConsumerCaller


def _load_user() -> User | None:
    verify_jwt_in_request(optional=True)
    identity = get_jwt_identity()
    if identity is None:
        return None
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


def caller_for_user(user: User | None) -> Caller:
    """Build the caller variant for a loaded user."""

    if user is None:
        return Anonymous()
    if user.role == "admin":
        return AdminCaller(user)
    if user.role == "provider":
        provider_id = db.session.execute(
            db.select(Provider.id).where(Provider.user_id == user.id)
        ).scalar_one_or_none()
        return ProviderCaller(user, provider_id)
    if user.role == "consumer":
        consumer_ids = db.session.execute(
            db.select(Consumer.id).where(Consumer.user_id == user.id)
        ).scalars()
        return ConsumerCaller(user, tuple(consumer_ids))
    return Anonymous()


def resolve_caller() -> Caller:
    """Resolve the current request's caller once and cache it on ``g``."""

    if "caller" not in g:
        g.caller = caller_for_user(_load_user())
    return g.caller


def require_auth() -> AdminCaller | ProviderCaller | ConsumerCaller:
    caller = resolve_caller()
    if isinstance(caller, Anonymous):
        raise Unauthorized("Unauthorized")
    return caller


def require_admin() -> AdminCaller:
    caller = resolve_caller()
    if not isinstance(caller, AdminCaller):
        raise Unauthorized("Unauthorized")
    return caller


def require_provider() -> ProviderCaller:
    """Return the provider caller; a provider without a profile is a 400."""

    caller = resolve_caller()
    if not isinstance(caller, ProviderCaller):
        raise Unauthorized("Unauthorized")
    if caller.provider_id is None:
        raise BadRequest("No provider profile")
    return caller
