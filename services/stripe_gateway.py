"""Stripe access for billing routes.

One ``StripeGateway`` is built by ``create_app`` and kept in
``app.extensions["stripe_gateway"]``; it is ``None`` when no secret key is
configured.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import stripe

from .errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

PLANS = ("monthly", "yearly")


class StripeGateway:
    """Thin wrapper over the Stripe SDK holding the server credentials."""

    def __init__(
        self,
        api_key: str,
        webhook_secret: str | None = None,
        price_ids: dict[str, str | None] | None = None,
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.price_ids = dict(price_ids or {})

    @classmethod
    def from_config(cls, config) -> "StripeGateway | None":
        api_key = config.get("STRIPE_SECRET_KEY")
        if not api_key:
            return None
        return cls(
            api_key,
            webhook_secret=config.get("STRIPE_WEBHOOK_SECRET"),
            price_ids={
                "monthly": config.get("STRIPE_MONTHLY_PRICE_ID"),
                "yearly": config.get("STRIPE_YEARLY_PRICE_ID"),
            },
        )

    def price_for_plan(self, plan: str) -> str:
        price_id = self.price_ids.get(plan)
        if not price_id:
            raise ConfigurationError(f"Stripe price for the {plan} plan is not configured.")
        return price_id

    def plan_for_price(self, price_id: str | None) -> str | None:
        for plan, configured in self.price_ids.items():
            if configured and configured == price_id:
                return plan
        return None

    def create_customer(self, email: str, name: str, metadata: dict) -> str:
        try:
            customer = stripe.Customer.create(
                email=email, name=name, metadata=metadata, api_key=self.api_key
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe customer creation failed: %s", exc)
            raise UpstreamError(str(exc)) from exc
        return customer["id"]

    def create_checkout_session(
        self,
        customer_id: str,
        plan: str,
        success_url: str,
        cancel_url: str,
        metadata: dict,
    ) -> str:
        price_id = self.price_for_plan(plan)
        try:
            session = stripe.checkout.Session.create(
                customer=customer_id,
                mode="subscription",
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=success_url,
                cancel_url=cancel_url,
                metadata=metadata,
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe checkout session failed: %s", exc)
            raise UpstreamError(str(exc)) from exc
        return session["url"]

    def create_portal_session(self, customer_id: str, return_url: str) -> str:
        try:
            session = stripe.billing_portal.Session.create(
                customer=customer_id,
                return_url=return_url,
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe billing portal session failed: %s", exc)
            raise UpstreamError(str(exc)) from exc
        return session["url"]

    def retrieve_subscription(self, subscription_id: str):
        try:
            return stripe.Subscription.retrieve(subscription_id, api_key=self.api_key)
        except stripe.StripeError as exc:
            logger.warning("Stripe subscription lookup failed: %s", exc)
            raise UpstreamError(str(exc)) from exc

    def construct_event(self, payload: bytes, signature: str):
        """Verify the webhook signature; raises ``ValueError`` on mismatch."""

        if not self.webhook_secret:
            raise ConfigurationError("Stripe webhook secret is not configured.")
        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise ValueError("Invalid signature") from exc


def subscription_period_end(subscription) -> datetime | None:
    """Read the period end from the first subscription item."""

    items = (subscription.get("items") or {}).get("data") or []
    if not items:
        return None
    timestamp = items[0].get("current_period_end")
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, UTC).replace(tzinfo=None)


def subscription_price_id(subscription) -> str | None:
    items = (subscription.get("items") or {}).get("data") or []
    if not items:
        return None
    return (items[0].get("price") or {}).get("id")


def invoice_subscription_id(invoice) -> str | None:
    """Newer API versions nest the subscription under ``parent``."""

    details = (invoice.get("parent") or {}).get("subscription_details") or {}
    subscription = details.get("subscription") or invoice.get("subscription")
    if isinstance(subscription, str):
        return subscription
    if subscription:
        return subscription.get("id")
    return None
