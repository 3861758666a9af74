"""Bookings: listing, creation, cancellation and session notes."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import BadRequest, Forbidden, NotFound

from models import db, utcnow
from models.booking import Booking
from models.consumer import Consumer
from services.scheduling import ScheduleError, parse_instant
from utils.identity import ConsumerCaller, ProviderCaller, require_auth, require_provider
from utils.request_validation import parse_bool, parse_json_request

bookings_bp = Blueprint("bookings", __name__)

MAX_TEXT_LENGTH = 500


def _get_booking(booking_id: int) -> Booking:
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise NotFound("Booking not found")
    return booking


def _owns_as_provider(caller, booking: Booking) -> bool:
    return (
        isinstance(caller, ProviderCaller)
        and caller.provider_id is not None
        and caller.provider_id == booking.provider_id
    )


def _owns_as_consumer(caller, booking: Booking) -> bool:
    return isinstance(caller, ConsumerCaller) and booking.consumer_id in caller.consumer_ids


def _clip(value: object) -> str | None:
    return value[:MAX_TEXT_LENGTH] if isinstance(value, str) else None


def _instant_arg(name: str):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return parse_instant(raw, name)
    except ScheduleError as exc:
        raise BadRequest(str(exc))


@bookings_bp.route("", methods=["GET"])
def list_bookings():
    """List the caller's bookings.

    Providers see every booking of their roster, consumers their own. With
    ``past=true`` only bookings that already started are returned, newest
    first; otherwise ``from``/``to`` bound ``startTime``.
    """

    caller = require_auth()
    query = db.select(Booking).join(Consumer, Booking.consumer_id == Consumer.id)
    if isinstance(caller, ProviderCaller) and caller.provider_id is not None:
        query = query.where(Consumer.provider_id == caller.provider_id)
    elif isinstance(caller, ConsumerCaller):
        query = query.where(Booking.consumer_id.in_(caller.consumer_ids))
    else:
        raise Forbidden("Forbidden")

    past = parse_bool(request.args.get("past")) is True
    if past:
        query = query.where(Booking.start_time < utcnow())
    else:
        start_from = _instant_arg("from")
        start_to = _instant_arg("to")
        if start_from is not None:
            query = query.where(Booking.start_time >= start_from)
        if start_to is not None:
            query = query.where(Booking.start_time <= start_to)

    order = Booking.start_time.desc() if past else Booking.start_time.asc()
    bookings = db.session.execute(query.order_by(order, Booking.id)).scalars().all()
    return jsonify([booking.to_dict() for booking in bookings])


@bookings_bp.route("", methods=["POST"])
def create_booking():
    caller = require_provider()
    payload = parse_json_request(
        request,
        required_keys=("consumerId", "startTime", "endTime"),
        message="Missing required fields",
    )

    consumer = db.session.execute(
        db.select(Consumer).where(
            Consumer.id == payload["consumerId"],
            Consumer.provider_id == caller.provider_id,
        )
    ).scalar_one_or_none()
    if consumer is None:
        raise NotFound("Consumer not found")

    try:
        start = parse_instant(payload["startTime"], "startTime")
        end = parse_instant(payload["endTime"], "endTime")
    except ScheduleError as exc:
        raise BadRequest(str(exc))
    if end <= start:
        raise BadRequest("endTime must be after startTime")

    booking = Booking(consumer=consumer, start_time=start, end_time=end)
    db.session.add(booking)
    db.session.commit()
    return jsonify(booking.to_dict()), HTTPStatus.CREATED


@bookings_bp.route("/<int:booking_id>/cancel", methods=["POST"])
def cancel_booking(booking_id: int):
    """Cancel an upcoming booking.

    The owning provider cancels outright; the booked consumer only requests
    it, leaving the booking ``cancel_pending`` until the provider decides.
    """

    caller = require_auth()
    payload = request.get_json(silent=True)
    reason = _clip(payload.get("reason")) if isinstance(payload, dict) else None

    booking = _get_booking(booking_id)
    if booking.status != "scheduled":
        raise BadRequest("Only scheduled bookings can be cancelled")
    if booking.start_time <= utcnow():
        raise BadRequest("Cannot cancel a past booking")

    if _owns_as_provider(caller, booking):
        booking.status = "cancelled"
        booking.cancelled_by = "provider"
    elif _owns_as_consumer(caller, booking):
        booking.status = "cancel_pending"
        booking.cancelled_by = "consumer"
    else:
        raise Forbidden("Forbidden")

    booking.cancellation_reason = reason
    db.session.commit()
    return jsonify(booking.to_dict())


@bookings_bp.route("/<int:booking_id>/cancel", methods=["PATCH"])
def decide_cancellation(booking_id: int):
    """Approve or decline a consumer's pending cancellation."""

    caller = require_auth()
    if not isinstance(caller, ProviderCaller) or caller.provider_id is None:
        raise Forbidden("Only providers can approve/decline")

    payload = parse_json_request(request)
    action = payload.get("action")
    if action not in ("approve", "decline"):
        raise BadRequest("Invalid action")

    booking = _get_booking(booking_id)
    if booking.status != "cancel_pending":
        raise BadRequest("Booking is not pending cancellation")
    if not _owns_as_provider(caller, booking):
        raise Forbidden("Forbidden")

    if action == "approve":
        booking.status = "cancelled"
    else:
        booking.status = "scheduled"
        booking.cancelled_by = None
        booking.cancellation_reason = None
    db.session.commit()
    return jsonify(booking.to_dict())


@bookings_bp.route("/<int:booking_id>/notes", methods=["PATCH"])
def update_notes(booking_id: int):
    """Attach session notes to a booking that has already started."""

    caller = require_auth()
    payload = request.get_json(silent=True)
    notes = (_clip(payload.get("notes")) if isinstance(payload, dict) else None) or ""

    booking = _get_booking(booking_id)
    if booking.start_time > utcnow():
        raise BadRequest("Notes can only be added to past bookings")

    if _owns_as_provider(caller, booking):
        booking.provider_notes = notes
        db.session.commit()
        return jsonify({"providerNotes": booking.provider_notes})
    if _owns_as_consumer(caller, booking):
        booking.consumer_notes = notes
        db.session.commit()
        return jsonify({"consumerNotes": booking.consumer_notes})
    raise Forbidden("Forbidden")
