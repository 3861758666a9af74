"""Booking model."""

from . import db, isoformat, utcnow

BOOKING_STATUSES = ("scheduled", "cancel_pending", "cancelled", "completed")
CANCELLED_BY = ("provider", "consumer")


class Booking(db.Model):
    """A scheduled session for a consumer."""

    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)
    consumer_id = db.Column(
        db.Integer,
        db.ForeignKey("consumers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="scheduled")
    cancelled_by = db.Column(db.String(16), nullable=True)
    cancellation_reason = db.Column(db.String(500), nullable=True)
    provider_notes = db.Column(db.String(500), nullable=True)
    consumer_notes = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    consumer = db.relationship("Consumer", back_populates="bookings")

    @property
    def provider_id(self) -> int | None:
        return self.consumer.provider_id if self.consumer else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "consumerId": self.consumer_id,
            "providerId": self.provider_id,
            "startTime": isoformat(self.start_time),
            "endTime": isoformat(self.end_time),
            "status": self.status,
            "cancelledBy": self.cancelled_by,
            "cancellationReason": self.cancellation_reason,
            "providerNotes": self.provider_notes,
            "consumerNotes": self.consumer_notes,
            "consumer": {
                "id": self.consumer.id,
                "serviceType": self.consumer.service_type,
                "bookingDuration": self.consumer.booking_duration,
                "name": self.consumer.user.name if self.consumer.user else None,
            }
            if self.consumer
            else None,
        }
