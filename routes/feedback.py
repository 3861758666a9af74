"""Feedback submitted by signed-in users."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import BadRequest

from models import db
from models.feedback import FEEDBACK_CATEGORIES, Feedback
from utils.identity import require_auth
from utils.request_validation import parse_json_request

feedback_bp = Blueprint("feedback", __name__)


@feedback_bp.route("", methods=["POST"])
def submit_feedback():
    caller = require_auth()
    payload = parse_json_request(
        request,
        required_keys=("category", "message"),
        message="Category and message are required",
    )
    category = payload["category"]
    if category not in FEEDBACK_CATEGORIES:
        raise BadRequest(
            "Invalid category. Must be one of: {}".format(", ".join(FEEDBACK_CATEGORIES))
        )

    feedback = Feedback(user_id=caller.user.id, category=category, message=payload["message"])
    db.session.add(feedback)
    db.session.commit()
    return jsonify(feedback.to_dict()), HTTPStatus.CREATED


@feedback_bp.route("", methods=["GET"])
def my_feedback():
    caller = require_auth()
    rows = (
        db.session.execute(
            db.select(Feedback)
            .where(Feedback.user_id == caller.user.id)
            .order_by(Feedback.created_at.desc(), Feedback.id.desc())
        )
        .scalars()
        .all()
    )
    return jsonify([item.to_dict() for item in rows])
