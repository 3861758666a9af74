"""Public platform settings."""

from flask import Blueprint, jsonify

from models import db
from models.app_settings import AppSettings

settings_bp = Blueprint("settings", __name__)


@settings_bp.route("/public", methods=["GET"])
def public_settings():
    """Expose the payments flag, plus pricing only while payments are on."""

    settings = AppSettings.get()
    db.session.commit()
    return jsonify(settings.to_public_dict())
