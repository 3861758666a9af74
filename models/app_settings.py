"""Platform-wide settings stored in a single row."""

from . import db, utcnow

SINGLETON_ID = "singleton"


class AppSettings(db.Model):
    """Billing switches and pricing shared by every provider."""

    __tablename__ = "app_settings"

    id = db.Column(db.String(32), primary_key=True, default=SINGLETON_ID)
    payments_enabled = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.text("false"),
    )
    monthly_price = db.Column(db.Float, nullable=False, default=9.99)
    yearly_price = db.Column(db.Float, nullable=False, default=99.0)
    free_consumer_limit = db.Column(db.Integer, nullable=False, default=3)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @classmethod
    def get(cls) -> "AppSettings":
        """Return the settings row, creating it with defaults if absent."""

        settings = db.session.get(cls, SINGLETON_ID)
        if settings is None:
            settings = cls(id=SINGLETON_ID)
            db.session.add(settings)
            db.session.flush()
        return settings

    def pricing(self) -> dict:
        return {
            "monthlyPrice": self.monthly_price,
            "yearlyPrice": self.yearly_price,
            "freeConsumerLimit": self.free_consumer_limit,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "paymentsEnabled": self.payments_enabled,
            **self.pricing(),
        }

    def to_public_dict(self) -> dict:
        """Pricing is only exposed while payments are switched on."""

        data = {"paymentsEnabled": self.payments_enabled}
        if self.payments_enabled:
            data.update(self.pricing())
        return data
