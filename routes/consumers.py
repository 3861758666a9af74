"""Provider roster management."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import BadRequest, Conflict

from models import db
from models.booking import Booking
from models.consumer import Consumer
from models.provider import Provider
from models.user import User
from services.scheduling import ScheduleError, weekly_slots
from services.subscription import ensure_can_add_consumer
from utils.identity import require_provider
from utils.request_validation import normalize_email, parse_json_request, parse_number

consumers_bp = Blueprint("consumers", __name__)

DEFAULT_TIMEZONE = "America/New_York"


@consumers_bp.route("", methods=["GET"])
def list_consumers():
    """List the calling provider's consumers by name."""

    caller = require_provider()
    consumers = (
        db.session.execute(
            db.select(Consumer)
            .join(User, Consumer.user_id == User.id)
            .where(Consumer.provider_id == caller.provider_id)
            .order_by(User.name.asc())
        )
        .scalars()
        .all()
    )
    return jsonify([consumer.to_dict() for consumer in consumers])


@consumers_bp.route("", methods=["POST"])
def add_consumer():
    """Add a consumer, creating a placeholder account for unknown emails.

    Blocked with 402 when the provider is past its free tier and has no
    active subscription.
    """

    caller = require_provider()
    ensure_can_add_consumer(caller.provider_id)

    payload = parse_json_request(
        request,
        required_keys=("name", "email"),
        message="Name and email are required",
    )
    email = normalize_email(payload.get("email"))
    if not email:
        raise BadRequest("Name and email are required")

    user = db.session.execute(
        db.select(User).where(User.email == email)
    ).scalar_one_or_none()
    if user is not None:
        duplicate = db.session.execute(
            db.select(Consumer.id).where(
                Consumer.user_id == user.id,
                Consumer.provider_id == caller.provider_id,
            )
        ).scalar_one_or_none()
        if duplicate is not None:
            raise Conflict("This consumer is already on your roster")
    else:
        user = User(
            email=email,
            name=str(payload["name"]).strip(),
            role="consumer",
            phone=payload.get("phone") or None,
            email_verified=True,
        )
        db.session.add(user)

    provider = db.session.get(Provider, caller.provider_id)
    default_duration = provider.settings.default_booking_duration if provider.settings else 30
    duration = payload.get("bookingDuration")
    consumer = Consumer(
        user=user,
        provider_id=caller.provider_id,
        service_type=payload.get("serviceType") or "General",
        booking_duration=parse_number(duration, "bookingDuration", integer=True)
        if duration
        else default_duration,
    )
    db.session.add(consumer)

    slots = _schedule_from_payload(payload, consumer.booking_duration, provider)
    for start, end in slots:
        consumer.bookings.append(Booking(start_time=start, end_time=end))

    db.session.commit()
    return (
        jsonify({**consumer.to_dict(), "bookingsCreated": len(slots)}),
        HTTPStatus.CREATED,
    )


def _schedule_from_payload(payload: dict, duration: int, provider: Provider) -> list:
    """Weekly bookings requested alongside a new consumer, if any."""

    day = payload.get("bookingDayOfWeek")
    if day is None or day == "" or not (
        payload.get("bookingTime") and payload.get("startDate") and payload.get("numberOfBookings")
    ):
        return []

    timezone = payload.get("timezone") or (
        provider.settings.timezone if provider.settings else DEFAULT_TIMEZONE
    )
    try:
        return weekly_slots(
            payload["startDate"],
            parse_number(day, "bookingDayOfWeek", integer=True),
            payload["bookingTime"],
            parse_number(payload["numberOfBookings"], "numberOfBookings", integer=True),
            duration,
            timezone,
        )
    except ScheduleError as exc:
        raise BadRequest(str(exc))
