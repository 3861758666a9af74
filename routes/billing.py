"""Billing and Stripe integration endpoints."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import BadRequest, NotFound

from models import db
from models.provider import Provider
from services.errors import ConfigurationError
from services.stripe_gateway import (
    PLANS,
    StripeGateway,
    invoice_subscription_id,
    subscription_period_end,
    subscription_price_id,
)
from utils.identity import require_provider

billing_bp = Blueprint("billing", __name__)


def _gateway() -> StripeGateway:
    gateway = current_app.extensions.get("stripe_gateway")
    if gateway is None:
        raise ConfigurationError("Stripe secret key is not configured.")
    return gateway


def _origin() -> str:
    origin = request.headers.get("Origin") or current_app.config.get("APP_URL") or ""
    return origin.rstrip("/")


def _provider_for_subscription(subscription_id: str | None) -> Provider | None:
    if not subscription_id:
        return None
    return db.session.execute(
        db.select(Provider).where(Provider.stripe_subscription_id == subscription_id)
    ).scalar_one_or_none()


def _apply_subscription(provider: Provider, subscription, gateway: StripeGateway) -> None:
    provider.subscription_status = subscription.get("status")
    period_end = subscription_period_end(subscription)
    if period_end is not None:
        provider.subscription_period_end = period_end
    plan = gateway.plan_for_price(subscription_price_id(subscription))
    if plan is not None:
        provider.subscription_plan = plan


@billing_bp.route("/stripe/portal", methods=["POST"])
def create_portal_session():
    """Open a billing-portal session for the calling provider."""

    caller = require_provider()
    gateway = _gateway()
    provider = db.session.get(Provider, caller.provider_id)
    if provider is None or not provider.stripe_customer_id:
        raise BadRequest("No billing account found")

    url = gateway.create_portal_session(
        provider.stripe_customer_id,
        return_url=f"{_origin()}/dashboard/provider?tab=settings",
    )
    return jsonify({"url": url})


@billing_bp.route("/stripe/checkout", methods=["POST"])
def create_checkout_session():
    """Start a subscription checkout, creating the Stripe customer on first use."""

    caller = require_provider()
    gateway = _gateway()
    provider = db.session.get(Provider, caller.provider_id)
    if provider is None:
        raise NotFound("Provider not found")

    data = request.get_json(silent=True) or {}
    plan = data.get("plan") if isinstance(data, dict) else None
    if plan not in PLANS:
        raise BadRequest("Invalid plan")

    if not provider.stripe_customer_id:
        provider.stripe_customer_id = gateway.create_customer(
            email=provider.user.email,
            name=provider.user.name,
            metadata={"providerId": str(provider.id)},
        )
        db.session.commit()

    origin = _origin()
    url = gateway.create_checkout_session(
        provider.stripe_customer_id,
        plan,
        success_url=f"{origin}/dashboard/provider?subscriptionSuccess=true",
        cancel_url=f"{origin}/dashboard/provider?tab=settings",
        metadata={"providerId": str(provider.id)},
    )
    return jsonify({"url": url})


@billing_bp.route("/stripe/webhook", methods=["POST"])
def stripe_webhook():
    """Handle Stripe webhook events for subscription updates."""

    gateway = _gateway()
    signature = request.headers.get("Stripe-Signature")
    if not signature:
        raise BadRequest("Missing signature")

    try:
        event = gateway.construct_event(request.get_data(), signature)
    except ValueError:
        current_app.logger.warning("Webhook signature verification failed")
        raise BadRequest("Invalid signature")

    event_type = event.get("type")
    data_object = event.get("data", {}).get("object", {})

    if event_type == "checkout.session.completed":
        provider_id = (data_object.get("metadata") or {}).get("providerId")
        subscription_id = data_object.get("subscription")
        if isinstance(subscription_id, dict):
            subscription_id = subscription_id.get("id")
        provider = None
        if provider_id and subscription_id:
            try:
                provider = db.session.get(Provider, int(provider_id))
            except (TypeError, ValueError):
                provider = None
        if provider is not None:
            subscription = gateway.retrieve_subscription(subscription_id)
            provider.stripe_subscription_id = subscription_id
            _apply_subscription(provider, subscription, gateway)

    elif event_type == "customer.subscription.updated":
        provider = _provider_for_subscription(data_object.get("id"))
        if provider is not None:
            _apply_subscription(provider, data_object, gateway)

    elif event_type == "customer.subscription.deleted":
        provider = _provider_for_subscription(data_object.get("id"))
        if provider is not None:
            provider.subscription_status = "canceled"
            provider.stripe_subscription_id = None

    elif event_type == "invoice.payment_succeeded":
        subscription_id = invoice_subscription_id(data_object)
        provider = _provider_for_subscription(subscription_id)
        if provider is not None:
            subscription = gateway.retrieve_subscription(subscription_id)
            provider.subscription_status = subscription.get("status")
            period_end = subscription_period_end(subscription)
            if period_end is not None:
                provider.subscription_period_end = period_end

    elif event_type == "invoice.payment_failed":
        provider = _provider_for_subscription(invoice_subscription_id(data_object))
        if provider is not None:
            provider.subscription_status = "past_due"

    db.session.commit()
    return jsonify({"received": True})
