"""Consumer model."""

from . import db, isoformat, utcnow


class Consumer(db.Model):
    """A client record belonging to a provider."""

    __tablename__ = "consumers"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    provider_id = db.Column(
        db.Integer,
        db.ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    service_type = db.Column(db.String(120), nullable=False, default="General")
    booking_duration = db.Column(db.Integer, nullable=False, default=30)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User", back_populates="consumer_profiles")
    provider = db.relationship("Provider", back_populates="consumers")
    bookings = db.relationship(
        "Booking",
        back_populates="consumer",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.UniqueConstraint("user_id", "provider_id", name="uq_consumers_user_provider"),
    )

    def to_dict(self) -> dict:
        """Serialize the consumer with its account summary."""

        return {
            "id": self.id,
            "userId": self.user_id,
            "providerId": self.provider_id,
            "serviceType": self.service_type,
            "bookingDuration": self.booking_duration,
            "createdAt": isoformat(self.created_at),
            "hasAccount": self.user.has_account if self.user else False,
            "user": self.user.summary(("id", "name", "email", "phone"))
            if self.user
            else None,
        }
