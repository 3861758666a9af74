"""Exchange model."""

from . import db, utcnow


class Exchange(db.Model):
    """A booking swap requested between two consumers of one provider."""

    __tablename__ = "exchanges"

    id = db.Column(db.Integer, primary_key=True)
    provider_id = db.Column(
        db.Integer,
        db.ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # No cascade on the consumer links; rows are removed before consumers are.
    requester_id = db.Column(db.Integer, db.ForeignKey("consumers.id"), nullable=False)
    target_consumer_id = db.Column(
        db.Integer, db.ForeignKey("consumers.id"), nullable=False
    )
    status = db.Column(db.String(16), nullable=False, default="pending")
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @classmethod
    def delete_for_consumers(cls, consumer_ids: list[int]) -> int:
        """Delete every exchange touching one of the given consumers."""

        if not consumer_ids:
            return 0
        return cls.query.filter(
            db.or_(
                cls.requester_id.in_(consumer_ids),
                cls.target_consumer_id.in_(consumer_ids),
            )
        ).delete(synchronize_session=False)
