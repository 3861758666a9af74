"""Feedback model."""

from . import db, isoformat, utcnow

FEEDBACK_CATEGORIES = ("question", "bug", "feature_request", "support")
FEEDBACK_STATUSES = ("open", "resolved")


class Feedback(db.Model):
    """A support ticket or product feedback item submitted by a user."""

    __tablename__ = "feedback"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category = db.Column(db.String(32), nullable=False)
    message = db.Column(db.Text, nullable=False)
    status = db.Column(
        db.String(16),
        nullable=False,
        default="open",
        server_default=db.text("'open'"),
    )
    admin_response = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="feedback")

    __table_args__ = (
        db.CheckConstraint(
            "status IN ('open', 'resolved')", name="ck_feedback_status"
        ),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "category": self.category,
            "message": self.message,
            "status": self.status,
            "adminResponse": self.admin_response,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

    def to_admin_row(self) -> dict:
        """Serialize for the admin list, flattening the author."""

        return {
            "id": self.id,
            "userName": self.user.name if self.user else None,
            "userEmail": self.user.email if self.user else None,
            "category": self.category,
            "message": self.message,
            "status": self.status,
            "adminResponse": self.admin_response,
            "createdAt": isoformat(self.created_at),
        }
