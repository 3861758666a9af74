"""Subscription gating and free tier logic for providers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from models import db, isoformat
from models.app_settings import AppSettings
from models.consumer import Consumer
from models.provider import Provider

from .errors import PaymentRequired

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = frozenset({"active", "trialing"})


@dataclass(frozen=True)
class Entitlement:
    """Plan status and consumer limits computed for one provider."""

    payments_enabled: bool
    needs_subscription: bool
    reason: str | None
    consumer_count: int
    subscription_status: str | None
    subscription_plan: str | None
    is_exempt: bool
    subscription_period_end: str | None
    free_consumer_limit: int | None = None
    monthly_price: float | None = None
    yearly_price: float | None = None

    @property
    def unrestricted(self) -> bool:
        return not self.payments_enabled

    def to_dict(self) -> dict:
        data = {
            "paymentsEnabled": self.payments_enabled,
            "unrestricted": self.unrestricted,
            "needsSubscription": self.needs_subscription,
            "reason": self.reason,
            "consumerCount": self.consumer_count,
            "subscriptionStatus": self.subscription_status,
            "subscriptionPlan": self.subscription_plan,
            "isExempt": self.is_exempt,
            "subscriptionPeriodEnd": self.subscription_period_end,
        }
        if self.payments_enabled:
            data.update(
                {
                    "freeConsumerLimit": self.free_consumer_limit,
                    "monthlyPrice": self.monthly_price,
                    "yearlyPrice": self.yearly_price,
                }
            )
        return data


def _needs_subscription(
    provider: Provider, consumer_count: int, settings: AppSettings
) -> bool:
    if provider.subscription_exempt:
        return False
    if consumer_count < settings.free_consumer_limit:
        return False
    return provider.subscription_status not in ACTIVE_STATUSES


def check_provider_subscription(provider_id: int) -> Entitlement:
    """Evaluate whether ``provider_id`` must subscribe before adding consumers.

    When payments are switched off platform-wide nothing is gated, whatever
    the provider's own billing state. Raises ``LookupError`` for an unknown
    provider.
    """

    provider = db.session.get(Provider, provider_id)
    if provider is None:
        raise LookupError(f"Provider {provider_id} does not exist")

    settings = AppSettings.get()
    consumer_count = db.session.execute(
        db.select(db.func.count(Consumer.id)).where(Consumer.provider_id == provider_id)
    ).scalar_one()

    base = {
        "consumer_count": consumer_count,
        "subscription_status": provider.subscription_status,
        "subscription_plan": provider.subscription_plan,
        "is_exempt": provider.subscription_exempt,
        "subscription_period_end": isoformat(provider.subscription_period_end),
    }

    if not settings.payments_enabled:
        return Entitlement(
            payments_enabled=False, needs_subscription=False, reason=None, **base
        )

    needs_subscription = _needs_subscription(provider, consumer_count, settings)
    reason = None
    if needs_subscription:
        reason = (
            f"You have {consumer_count} consumers, which exceeds the free limit "
            f"of {settings.free_consumer_limit}. Subscribe to add more consumers."
        )
    return Entitlement(
        payments_enabled=True,
        needs_subscription=needs_subscription,
        reason=reason,
        free_consumer_limit=settings.free_consumer_limit,
        monthly_price=settings.monthly_price,
        yearly_price=settings.yearly_price,
        **base,
    )


def ensure_can_add_consumer(provider_id: int) -> Entitlement:
    """Raise ``PaymentRequired`` when the provider is over its free tier."""

    entitlement = check_provider_subscription(provider_id)
    if entitlement.needs_subscription:
        logger.info("Provider %s blocked by consumer limit", provider_id)
        raise PaymentRequired(entitlement.reason)
    return entitlement
