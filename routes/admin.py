"""Admin blueprint: platform stats, tenant management, feedback and settings."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import BadRequest, Conflict, NotFound

from models import db
from models.app_settings import AppSettings
from models.consumer import Consumer
from models.exchange import Exchange
from models.feedback import FEEDBACK_STATUSES, Feedback
from models.provider import Provider
from models.user import User
from services.admin_stats import collect_platform_stats
from utils.identity import require_admin
from utils.request_validation import (
    normalize_email,
    parse_bool,
    parse_json_request,
    parse_number,
)

admin_bp = Blueprint("admin", __name__)


@admin_bp.before_request
def _admins_only() -> None:
    require_admin()


def _get_or_404(model, object_id: int, label: str):
    instance = db.session.get(model, object_id)
    if instance is None:
        raise NotFound(f"{label} not found")
    return instance


def _consumer_counts(provider_ids: list[int]) -> dict[int, int]:
    if not provider_ids:
        return {}
    rows = db.session.execute(
        db.select(Consumer.provider_id, db.func.count(Consumer.id))
        .where(Consumer.provider_id.in_(provider_ids))
        .group_by(Consumer.provider_id)
    ).all()
    return {provider_id: count for provider_id, count in rows}


def _string_field(payload: dict, key: str, *, nullable: bool = False) -> str | None:
    value = payload[key]
    if value is None and nullable:
        return None
    if not isinstance(value, str):
        raise BadRequest(f"{key} must be a string.")
    return value.strip()


def _update_user_fields(user: User, payload: dict) -> None:
    if "name" in payload:
        user.name = _string_field(payload, "name")
    if "email" in payload:
        email = normalize_email(payload["email"])
        if not email:
            raise BadRequest("email must be a non-empty string.")
        taken = db.session.execute(
            db.select(User.id).where(User.email == email, User.id != user.id)
        ).scalar_one_or_none()
        if taken is not None:
            raise Conflict("Email already registered")
        user.email = email
    if "phone" in payload:
        user.phone = _string_field(payload, "phone", nullable=True) or None


@admin_bp.route("/stats", methods=["GET"])
def platform_stats():
    """Return dashboard counts."""

    return jsonify(collect_platform_stats().to_dict())


@admin_bp.route("/providers", methods=["GET"])
def list_providers():
    """List every provider that does not belong to an admin account."""

    providers = (
        db.session.execute(
            db.select(Provider)
            .join(User, Provider.user_id == User.id)
            .where(User.role != "admin")
            .order_by(Provider.created_at.desc(), Provider.id.desc())
        )
        .scalars()
        .all()
    )
    counts = _consumer_counts([p.id for p in providers])
    return jsonify(
        [
            {
                **provider.to_dict(),
                "user": provider.user.summary(),
                "settings": provider.settings.to_dict() if provider.settings else None,
                "consumerCount": counts.get(provider.id, 0),
            }
            for provider in providers
        ]
    )


@admin_bp.route("/providers/<int:provider_id>", methods=["GET"])
def get_provider(provider_id: int):
    provider = _get_or_404(Provider, provider_id, "Provider")
    return jsonify(
        {
            **provider.to_dict(),
            "user": provider.user.summary(),
            "settings": provider.settings.to_dict() if provider.settings else None,
            "consumers": [consumer.to_dict() for consumer in provider.consumers],
        }
    )


@admin_bp.route("/providers/<int:provider_id>", methods=["PUT"])
def update_provider(provider_id: int):
    provider = _get_or_404(Provider, provider_id, "Provider")
    payload = parse_json_request(request)

    _update_user_fields(provider.user, payload)
    if "businessName" in payload:
        provider.business_name = _string_field(payload, "businessName")
    if "subscriptionExempt" in payload:
        exempt = parse_bool(payload["subscriptionExempt"])
        if exempt is None:
            raise BadRequest("subscriptionExempt must be a boolean.")
        provider.subscription_exempt = exempt

    db.session.commit()
    return jsonify({"success": True})


@admin_bp.route("/providers/<int:provider_id>", methods=["DELETE"])
def delete_provider(provider_id: int):
    """Delete a provider's account along with its consumers and bookings."""

    provider = _get_or_404(Provider, provider_id, "Provider")
    Exchange.delete_for_consumers([consumer.id for consumer in provider.consumers])
    Exchange.query.filter_by(provider_id=provider.id).delete(synchronize_session=False)
    db.session.delete(provider.user)
    db.session.commit()
    return jsonify({"success": True})


@admin_bp.route("/consumers", methods=["GET"])
def list_consumers():
    """List consumers across every tenant."""

    consumers = (
        db.session.execute(
            db.select(Consumer).order_by(Consumer.created_at.desc(), Consumer.id.desc())
        )
        .scalars()
        .all()
    )
    return jsonify(
        [
            {
                **consumer.to_dict(),
                "providerName": consumer.provider.user.name,
                "businessName": consumer.provider.business_name,
            }
            for consumer in consumers
        ]
    )


@admin_bp.route("/consumers/<int:consumer_id>", methods=["GET"])
def get_consumer(consumer_id: int):
    consumer = _get_or_404(Consumer, consumer_id, "Consumer")
    return jsonify(
        {
            **consumer.to_dict(),
            "providerName": consumer.provider.user.name,
            "businessName": consumer.provider.business_name,
        }
    )


@admin_bp.route("/consumers/<int:consumer_id>", methods=["PUT"])
def update_consumer(consumer_id: int):
    consumer = _get_or_404(Consumer, consumer_id, "Consumer")
    payload = parse_json_request(request)

    _update_user_fields(consumer.user, payload)
    if "serviceType" in payload:
        consumer.service_type = _string_field(payload, "serviceType") or "General"
    if "bookingDuration" in payload:
        consumer.booking_duration = parse_number(
            payload["bookingDuration"], "bookingDuration", integer=True
        )

    db.session.commit()
    return jsonify({"success": True})


@admin_bp.route("/consumers/<int:consumer_id>", methods=["DELETE"])
def delete_consumer(consumer_id: int):
    consumer = _get_or_404(Consumer, consumer_id, "Consumer")
    Exchange.delete_for_consumers([consumer.id])
    db.session.delete(consumer)
    db.session.commit()
    return jsonify({"success": True})


@admin_bp.route("/feedback", methods=["GET"])
def list_feedback():
    """List feedback, newest first, optionally filtered by category/status."""

    query = db.select(Feedback)
    category = request.args.get("category")
    if category:
        query = query.where(Feedback.category == category)
    status = request.args.get("status")
    if status:
        query = query.where(Feedback.status == status)

    rows = (
        db.session.execute(query.order_by(Feedback.created_at.desc(), Feedback.id.desc()))
        .scalars()
        .all()
    )
    return jsonify([item.to_admin_row() for item in rows])


@admin_bp.route("/feedback/<int:feedback_id>", methods=["PUT"])
def update_feedback(feedback_id: int):
    """Set the status and/or admin response of a feedback ticket."""

    payload = parse_json_request(request, allow_empty=True)
    status = payload.get("status")
    if status is not None and status not in FEEDBACK_STATUSES:
        raise BadRequest("Status must be 'open' or 'resolved'")
    admin_response = payload.get("adminResponse")
    if admin_response is not None and not isinstance(admin_response, str):
        raise BadRequest("adminResponse must be a string or null.")

    feedback = _get_or_404(Feedback, feedback_id, "Feedback")
    if status is not None:
        feedback.status = status
    if "adminResponse" in payload:
        feedback.admin_response = payload["adminResponse"]

    db.session.commit()
    return jsonify(feedback.to_dict())


@admin_bp.route("/settings", methods=["GET"])
def get_settings():
    settings = AppSettings.get()
    db.session.commit()
    return jsonify(settings.to_dict())


@admin_bp.route("/settings", methods=["PUT"])
def update_settings():
    """Partially update the platform billing settings."""

    payload = parse_json_request(request)
    settings = AppSettings.get()

    if "paymentsEnabled" in payload:
        enabled = parse_bool(payload["paymentsEnabled"])
        if enabled is None:
            raise BadRequest("paymentsEnabled must be a boolean.")
        settings.payments_enabled = enabled
    if "monthlyPrice" in payload:
        settings.monthly_price = parse_number(payload["monthlyPrice"], "monthlyPrice")
    if "yearlyPrice" in payload:
        settings.yearly_price = parse_number(payload["yearlyPrice"], "yearlyPrice")
    if "freeConsumerLimit" in payload:
        settings.free_consumer_limit = parse_number(
            payload["freeConsumerLimit"], "freeConsumerLimit", integer=True
        )

    db.session.commit()
    return jsonify(settings.to_dict())
