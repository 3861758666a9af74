"""Provider area: enrollment requests and subscription status."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import BadRequest, NotFound

from models import db
from models.enrollment_request import ENROLLMENT_STATUSES, EnrollmentRequest
from services.push_notifications import send_push_to_user
from services.subscription import check_provider_subscription
from utils.identity import require_provider
from utils.request_validation import parse_json_request

provider_bp = Blueprint("provider", __name__)


def _get_own_request(provider_id: int, request_id: int) -> EnrollmentRequest:
    enrollment = db.session.execute(
        db.select(EnrollmentRequest).where(
            EnrollmentRequest.id == request_id,
            EnrollmentRequest.provider_id == provider_id,
        )
    ).scalar_one_or_none()
    if enrollment is None:
        raise NotFound("Enrollment request not found")
    return enrollment


@provider_bp.route("/provider/enrollment-requests", methods=["GET"])
def list_enrollment_requests():
    """Return the caller's enrollment requests, newest first."""

    caller = require_provider()
    rows = (
        db.session.execute(
            db.select(EnrollmentRequest)
            .where(EnrollmentRequest.provider_id == caller.provider_id)
            .order_by(EnrollmentRequest.created_at.desc(), EnrollmentRequest.id.desc())
        )
        .scalars()
        .all()
    )
    return jsonify([row.to_dict() for row in rows])


@provider_bp.route("/provider/enrollment-requests/<int:request_id>", methods=["GET"])
def get_enrollment_request(request_id: int):
    caller = require_provider()
    return jsonify(_get_own_request(caller.provider_id, request_id).to_dict())


@provider_bp.route("/provider/enrollment-requests/<int:request_id>", methods=["PUT"])
def update_enrollment_request(request_id: int):
    """Accept, reject or annotate one of the caller's enrollment requests."""

    caller = require_provider()
    enrollment = _get_own_request(caller.provider_id, request_id)
    payload = parse_json_request(request, allow_empty=True)

    status = payload.get("status")
    if status is not None and status not in ENROLLMENT_STATUSES:
        raise BadRequest(
            "Status must be one of: {}".format(", ".join(ENROLLMENT_STATUSES))
        )

    status_changed = status is not None and status != enrollment.status
    if status is not None:
        enrollment.status = status
    if "providerNotes" in payload:
        enrollment.provider_notes = payload["providerNotes"]
    db.session.commit()

    if status_changed and enrollment.user_id is not None:
        business = enrollment.provider.business_name
        send_push_to_user(
            current_app.extensions.get("push_client"),
            enrollment.user_id,
            "Enrollment update",
            f"Your request to join {business} was {status}.",
            {"enrollmentRequestId": enrollment.id, "status": status},
        )

    return jsonify(enrollment.to_dict())


@provider_bp.route("/subscription/status", methods=["GET"])
def subscription_status():
    """Return plan status and limits for the calling provider."""

    caller = require_provider()
    try:
        entitlement = check_provider_subscription(caller.provider_id)
    except LookupError:
        raise BadRequest("No provider profile")
    db.session.commit()
    return jsonify(entitlement.to_dict())
