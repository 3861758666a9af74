"""Provider (business tenant) models."""

from . import db, isoformat, utcnow


class Provider(db.Model):
    """A business account that manages consumers and bookings."""

    __tablename__ = "providers"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    business_name = db.Column(db.String(255), nullable=False, default="My Business")
    stripe_customer_id = db.Column(db.String(255), nullable=True, unique=True)
    stripe_subscription_id = db.Column(db.String(255), nullable=True, index=True)
    subscription_status = db.Column(db.String(32), nullable=True)
    subscription_plan = db.Column(db.String(16), nullable=True)
    subscription_period_end = db.Column(db.DateTime, nullable=True)
    subscription_exempt = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.text("false"),
    )

    # Public directory listing
    bio = db.Column(db.Text, nullable=True)
    city = db.Column(db.String(120), nullable=True)
    state = db.Column(db.String(64), nullable=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    is_published = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.text("false"),
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User", back_populates="provider_profile")
    settings = db.relationship(
        "ProviderSettings",
        back_populates="provider",
        uselist=False,
        cascade="all, delete-orphan",
    )
    consumers = db.relationship(
        "Consumer",
        back_populates="provider",
        cascade="all, delete-orphan",
    )
    enrollment_requests = db.relationship(
        "EnrollmentRequest",
        back_populates="provider",
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        """Serialize the provider with its billing state."""

        return {
            "id": self.id,
            "userId": self.user_id,
            "businessName": self.business_name,
            "stripeCustomerId": self.stripe_customer_id,
            "subscriptionStatus": self.subscription_status,
            "subscriptionPlan": self.subscription_plan,
            "subscriptionPeriodEnd": isoformat(self.subscription_period_end),
            "subscriptionExempt": self.subscription_exempt,
            "city": self.city,
            "state": self.state,
            "isPublished": self.is_published,
            "createdAt": isoformat(self.created_at),
        }


class ProviderSettings(db.Model):
    """Per-provider scheduling preferences."""

    __tablename__ = "provider_settings"

    id = db.Column(db.Integer, primary_key=True)
    provider_id = db.Column(
        db.Integer,
        db.ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    default_booking_duration = db.Column(db.Integer, nullable=False, default=30)
    reminders_enabled = db.Column(db.Boolean, nullable=False, default=True)
    timezone = db.Column(db.String(64), nullable=False, default="America/New_York")

    provider = db.relationship("Provider", back_populates="settings")

    def to_dict(self) -> dict:
        return {
            "defaultBookingDuration": self.default_booking_duration,
            "remindersEnabled": self.reminders_enabled,
            "timezone": self.timezone,
        }
