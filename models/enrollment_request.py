"""Enrollment request model."""

from . import db, isoformat, utcnow

ENROLLMENT_STATUSES = ("pending", "accepted", "rejected")


class EnrollmentRequest(db.Model):
    """A prospective consumer's request to join a provider."""

    __tablename__ = "enrollment_requests"

    id = db.Column(db.Integer, primary_key=True)
    provider_id = db.Column(
        db.Integer,
        db.ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64), nullable=True)
    service_type = db.Column(db.String(120), nullable=True)
    message = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="pending")
    provider_notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    provider = db.relationship("Provider", back_populates="enrollment_requests")
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "serviceType": self.service_type,
            "message": self.message,
            "status": self.status,
            "providerNotes": self.provider_notes,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
            "user": self.user.summary(("id", "name", "email")) if self.user else None,
        }
