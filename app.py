"""Application factory."""

import json
import logging
import os
import uuid

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from werkzeug.exceptions import BadGateway, BadRequest, HTTPException, InternalServerError

from config import Config
from models import db
from routes.admin import admin_bp
from routes.auth import auth_bp
from routes.billing import billing_bp
from routes.bookings import bookings_bp
from routes.consumers import consumers_bp
from routes.directory import directory_bp
from routes.feedback import feedback_bp
from routes.places import places_bp
from routes.provider import provider_bp
from routes.settings import settings_bp
from routes.user import user_bp
from services.errors import ConfigurationError, UpstreamError
from services.mailer import Mailer
from services.places import PlacesClient
from services.push_notifications import PushClient
from services.stripe_gateway import StripeGateway
from services.verification import InvalidVerificationToken

migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    _configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Rate limiting, one limiter per app so each keeps its own default limit
    storage_uri = app.config.get("RATELIMIT_STORAGE_URI", "memory://")
    headers_enabled = app.config.get("RATELIMIT_HEADERS_ENABLED", True)
    key_prefix = app.config.get("RATELIMIT_KEY_PREFIX") or str(uuid.uuid4())

    global limiter
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[lambda: app.config.get("RATE_LIMIT", "60 per minute")],
        storage_uri=storage_uri,
        headers_enabled=headers_enabled,
        key_prefix=key_prefix,
    )
    limiter.init_app(app)
    app.config["RATELIMIT_KEY_PREFIX"] = key_prefix

    # Outbound clients, built once and shared by every request
    timeout = float(app.config.get("UPSTREAM_TIMEOUT", 8))
    app.extensions["stripe_gateway"] = StripeGateway.from_config(app.config)
    app.extensions["places_client"] = PlacesClient(
        app.config.get("GOOGLE_PLACES_API_KEY"), timeout=timeout
    )
    app.extensions["push_client"] = PushClient(
        app.config.get("EXPO_PUSH_URL"), timeout=timeout
    )
    app.extensions["mailer"] = Mailer(
        app.config.get("RESEND_API_KEY"), app.config.get("EMAIL_FROM")
    )

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(settings_bp, url_prefix="/api/settings")
    app.register_blueprint(provider_bp, url_prefix="/api")
    app.register_blueprint(consumers_bp, url_prefix="/api/consumers")
    app.register_blueprint(bookings_bp, url_prefix="/api/bookings")
    app.register_blueprint(billing_bp, url_prefix="/api")
    app.register_blueprint(places_bp, url_prefix="/api/places")
    app.register_blueprint(user_bp, url_prefix="/api/user")
    app.register_blueprint(feedback_bp, url_prefix="/api/feedback")
    app.register_blueprint(directory_bp, url_prefix="/api/providers")

    # Health
    @app.route("/health", methods=["GET"])
    @limiter.exempt
    def health_check():
        return jsonify({"status": "ok"})

    # Errors
    _register_jwt_handlers()
    _register_error_handlers(app)

    return app


def _configure_logging(level: str) -> None:
    """Attach a console handler to the root logger once."""

    root = logging.getLogger()
    if root.handlers:
        return
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)


def _error_response(message: str, status: int):
    request_id = g.get("request_id") or str(uuid.uuid4())
    response = jsonify({"error": message, "request_id": request_id})
    response.status_code = status
    response.headers.setdefault("X-Request-ID", request_id)
    return response


def _register_jwt_handlers() -> None:
    """Render token failures in the same JSON shape as other errors."""

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return _error_response("Unauthorized", 401)

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return _error_response("Unauthorized", 401)

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return _error_response("Unauthorized", 401)


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():  # pragma: no cover
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):  # pragma: no cover
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        request_id = g.get("request_id") or str(uuid.uuid4())
        response = error.get_response()
        payload = {
            "error": error.description or getattr(error, "name", "Error"),
            "request_id": request_id,
        }
        response.data = json.dumps(payload)
        response.content_type = "application/json"
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(UpstreamError)
    def _handle_upstream(error: UpstreamError):
        return _handle_http_exception(BadGateway(str(error) or "Upstream service error"))

    @app.errorhandler(ConfigurationError)
    def _handle_configuration(error: ConfigurationError):
        app.logger.error("Configuration error: %s", error)
        return _handle_http_exception(InternalServerError(str(error)))

    @app.errorhandler(InvalidVerificationToken)
    def _handle_invalid_token(error: InvalidVerificationToken):
        return _handle_http_exception(BadRequest("Invalid or expired verification link"))

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):  # pragma: no cover
        app.logger.exception("Unhandled application error", exc_info=error)
        db.session.rollback()
        return _error_response("An unexpected error occurred.", 500)


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
