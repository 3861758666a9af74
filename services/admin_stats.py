"""Platform-wide counts for the admin dashboard."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime

from models import db, utcnow
from models.booking import Booking
from models.consumer import Consumer
from models.exchange import Exchange
from models.feedback import Feedback
from models.provider import Provider
from models.user import User


@dataclass(frozen=True)
class PlatformStats:
    providers: int
    consumers: int
    scheduledBookings: int
    pastBookings: int
    exchanges: int
    openFeedback: int

    def to_dict(self) -> dict:
        return asdict(self)


def _count(model, *criteria):
    return (
        db.select(db.func.count())
        .select_from(model)
        .where(*criteria)
        .scalar_subquery()
    )


def collect_platform_stats(now: datetime | None = None) -> PlatformStats:
    """Compute every dashboard count in a single statement.

    Bookings are split on ``start_time`` against one ``now`` so each booking
    lands in exactly one of scheduled/past. If any count fails the whole
    statement fails and no partial result is returned.
    """

    now = now or utcnow()
    provider_count = (
        db.select(db.func.count(Provider.id))
        .join(User, Provider.user_id == User.id)
        .where(User.role != "admin")
        .scalar_subquery()
    )
    statement = db.select(
        provider_count.label("providers"),
        _count(Consumer).label("consumers"),
        _count(Booking, Booking.start_time >= now).label("scheduledBookings"),
        _count(Booking, Booking.start_time < now).label("pastBookings"),
        _count(Exchange).label("exchanges"),
        _count(Feedback, Feedback.status == "open").label("openFeedback"),
    )
    row = db.session.execute(statement).one()
    return PlatformStats(**row._asdict())
