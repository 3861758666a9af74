"""Per-user device registration for mobile push notifications."""

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import BadRequest

from models import db
from utils.identity import require_auth

user_bp = Blueprint("user", __name__)


@user_bp.route("/push-token", methods=["POST"])
def register_push_token():
    caller = require_auth()
    payload = request.get_json(silent=True)
    token = payload.get("token") if isinstance(payload, dict) else None
    if not token or not isinstance(token, str):
        raise BadRequest("Push token is required")

    caller.user.expo_push_token = token
    db.session.commit()
    return jsonify({"success": True})


@user_bp.route("/push-token", methods=["DELETE"])
def clear_push_token():
    caller = require_auth()
    caller.user.expo_push_token = None
    db.session.commit()
    return jsonify({"success": True})
