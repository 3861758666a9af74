"""Public provider directory with text and distance search."""

from __future__ import annotations

import math
import re
from http import HTTPStatus

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import BadRequest, NotFound

from models import db
from models.enrollment_request import EnrollmentRequest
from models.provider import Provider
from models.user import User
from utils.geo import bounding_box, haversine_distance
from utils.identity import Anonymous, resolve_caller
from utils.request_validation import normalize_email, parse_json_request

directory_bp = Blueprint("directory", __name__)

DEFAULT_RADIUS_MILES = 25.0
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _float_arg(name: str, default: float | None = None) -> float | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise BadRequest(f"{name} must be a number.")
    if not math.isfinite(value):
        raise BadRequest(f"{name} must be a number.")
    return value


def _int_arg(name: str, default: int, low: int, high: int) -> int:
    raw = request.args.get(name)
    try:
        value = int(raw) if raw else default
    except ValueError:
        raise BadRequest(f"{name} must be an integer.")
    return max(low, min(high, value))


@directory_bp.route("/directory", methods=["GET"])
def search_directory():
    """Search published providers by text and, optionally, distance."""

    q = (request.args.get("q") or "").strip()
    lat = _float_arg("lat")
    lng = _float_arg("lng")
    radius = _float_arg("radius", DEFAULT_RADIUS_MILES)
    page = _int_arg("page", 1, 1, 10_000)
    limit = _int_arg("limit", 20, 1, 100)
    geo = lat is not None and lng is not None

    query = (
        db.select(Provider)
        .join(User, Provider.user_id == User.id)
        .where(Provider.is_published.is_(True), User.role != "admin")
    )
    if geo:
        box = bounding_box(lat, lng, radius)
        query = query.where(
            Provider.latitude.between(box.min_lat, box.max_lat),
            Provider.longitude.between(box.min_lng, box.max_lng),
        )
    if q:
        like = f"%{q.lower()}%"
        query = query.where(
            db.or_(
                db.func.lower(Provider.bio).like(like),
                db.func.lower(Provider.city).like(like),
                db.func.lower(Provider.state).like(like),
                db.func.lower(Provider.business_name).like(like),
                db.func.lower(User.name).like(like),
            )
        )

    providers = db.session.execute(query.order_by(Provider.id.desc())).scalars().all()

    results = []
    for provider in providers:
        distance = None
        if geo and provider.latitude is not None and provider.longitude is not None:
            distance = round(
                haversine_distance(lat, lng, provider.latitude, provider.longitude), 1
            )
        results.append(
            {
                "id": provider.id,
                "name": provider.user.name,
                "businessName": provider.business_name,
                "bio": provider.bio,
                "city": provider.city,
                "state": provider.state,
                "latitude": provider.latitude,
                "longitude": provider.longitude,
                "distance": distance,
            }
        )

    if geo:
        results = [r for r in results if r["distance"] is not None and r["distance"] <= radius]
        results.sort(key=lambda r: r["distance"])

    total = len(results)
    start = (page - 1) * limit
    return jsonify(
        {
            "providers": results[start : start + limit],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": math.ceil(total / limit),
            },
        }
    )


def _optional_text(payload: dict, key: str) -> str | None:
    value = payload.get(key)
    if not isinstance(value, str):
        return None
    return value.strip() or None


@directory_bp.route("/<int:provider_id>/enroll", methods=["POST"])
def request_enrollment(provider_id: int):
    """Ask a published provider to take the caller on as a consumer.

    Open to anonymous visitors; a signed-in caller is linked to the request
    so the provider's decision can be pushed to them.
    """

    payload = parse_json_request(
        request,
        required_keys=("name", "email"),
        message="Name and email are required",
    )
    name = payload["name"].strip() if isinstance(payload["name"], str) else ""
    email = normalize_email(payload["email"])
    if not name or not email:
        raise BadRequest("Name and email are required")
    if not EMAIL_PATTERN.match(email):
        raise BadRequest("Invalid email format")

    provider = db.session.get(Provider, provider_id)
    if provider is None:
        raise NotFound("Provider not found")
    if not provider.is_published:
        raise BadRequest("This provider is not currently accepting enrollment requests")

    caller = resolve_caller()
    enrollment = EnrollmentRequest(
        provider=provider,
        user=None if isinstance(caller, Anonymous) else caller.user,
        name=name,
        email=email,
        phone=_optional_text(payload, "phone"),
        service_type=_optional_text(payload, "serviceType"),
        message=_optional_text(payload, "message"),
    )
    db.session.add(enrollment)
    db.session.commit()
    return jsonify(enrollment.to_dict()), HTTPStatus.CREATED
