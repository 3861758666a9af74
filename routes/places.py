"""Location search proxied through Google Places."""

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import BadRequest

places_bp = Blueprint("places", __name__)


def _client():
    return current_app.extensions["places_client"]


@places_bp.route("/autocomplete", methods=["GET"])
def autocomplete():
    text = (request.args.get("input") or "").strip()
    if not text:
        raise BadRequest("Input is required")
    return jsonify({"predictions": _client().autocomplete(text)})


@places_bp.route("/details", methods=["GET"])
def details():
    place_id = (request.args.get("placeId") or "").strip()
    if not place_id:
        raise BadRequest("placeId is required")
    return jsonify(_client().details(place_id))
