"""
campusshare/__init__.py — Flask application factory.

create_app(config_name) builds a configured app; nothing is initialised at
import time, so tests can build isolated instances.

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging from LOG_LEVEL
  3. Initialise SQLAlchemy and import every model so the metadata is complete
  4. Register the route blueprints under /api
  5. Register global error handlers (AppError, ValidationError, Exception)
  6. Serialise Decimal as string (prices are never JSON numbers)
  7. Register the `flask reconcile-memberships` repair command
"""

from __future__ import annotations

import logging
import traceback
from decimal import Decimal

import click
from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from backend.config import config_by_name, validate_production_config

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ── Custom JSON provider ───────────────────────────────────────────────────

class DecimalJSONProvider(DefaultJSONProvider):
    """
    Serialises Decimal as str so prices keep their two places.

    Example: Decimal("20.00") → "20.00" (not 20.0)
    """

    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        return super().default(o)


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Args:
        config_name: One of "development", "testing", "production".
                     Unknown names fall back to "development".
    """
    app = Flask(__name__)
    app.json_provider_class = DecimalJSONProvider
    app.json = DecimalJSONProvider(app)

    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    from backend.campusshare.extensions import db
    db.init_app(app)

    # Populates db.metadata for create_all() and Alembic.
    with app.app_context():
        from backend.campusshare.models import (  # noqa: F401
            favorite,
            group_membership,
            listing,
            proposal,
            study_group,
            user,
        )

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_cors(app)
    _register_commands(app)

    return app


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    logging.getLogger("backend.campusshare").setLevel(level)
    app.logger.setLevel(level)


def _register_blueprints(app: Flask) -> None:
    """
    Each route file only declares paths relative to its resource
    (e.g. "/" and "/<listing_id>"); the prefix is set here.
    """
    from backend.campusshare.routes.auth import auth_bp
    from backend.campusshare.routes.favorites import favorites_bp
    from backend.campusshare.routes.groups import groups_bp
    from backend.campusshare.routes.listings import listings_bp
    from backend.campusshare.routes.proposals import proposals_bp
    from backend.campusshare.routes.users import users_bp

    app.register_blueprint(auth_bp,      url_prefix="/api/auth")
    app.register_blueprint(users_bp,     url_prefix="/api/users")
    app.register_blueprint(listings_bp,  url_prefix="/api/listings")
    app.register_blueprint(proposals_bp, url_prefix="/api/proposals")
    app.register_blueprint(favorites_bp, url_prefix="/api/favorites")
    app.register_blueprint(groups_bp,    url_prefix="/api/groups")

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"data": {"status": "OK"}, "warnings": []}), 200


def _register_error_handlers(app: Flask) -> None:
    """
    Handlers:
      AppError        → its own envelope and status
      ValidationError → 400; first field error as code/message/field, the
                        full per-field map under "details"
      Exception       → 500 INTERNAL_ERROR; traceback logged, never returned
    """
    from backend.campusshare.errors import AppError, ErrorCode

    known_codes = {
        value for name, value in vars(ErrorCode).items() if not name.startswith("_")
    }

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        if error.http_status >= 500:
            app.logger.error("%r", error)
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        messages = error.messages  # e.g. {"price": ["FREE_LISTING_PRICE"]}

        field = None
        raw_message = "Invalid input."

        if isinstance(messages, dict) and messages:
            field_name, field_errors = next(iter(messages.items()))
            field = field_name if field_name != "_schema" else None
            raw_message = _first_message(field_errors)
        elif isinstance(messages, list) and messages:
            raw_message = str(messages[0])

        if raw_message in known_codes:
            code = raw_message
            message = _code_to_message(code)
        elif raw_message.startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD
            message = raw_message
        else:
            code = ErrorCode.INVALID_FIELD
            message = raw_message

        response_body = {
            "error": {
                "code": code,
                "message": message,
                "details": messages,
            }
        }
        if field is not None:
            response_body["error"]["field"] = field

        return jsonify(response_body), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        """Unknown routes, wrong methods and unparseable bodies."""
        code = {
            404: ErrorCode.ROUTE_NOT_FOUND,
            405: ErrorCode.METHOD_NOT_ALLOWED,
        }.get(error.code, ErrorCode.MALFORMED_REQUEST)
        return jsonify({
            "error": {
                "code": code,
                "message": error.description or error.name,
            }
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers when DEBUG or TESTING is set so a frontend on another
    local port can call the API with an Authorization header.
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))

        if allow_all:
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"

        return response


def _register_commands(app: Flask) -> None:

    @app.cli.command("reconcile-memberships")
    @click.option("--group-id", default=None, help="Repair one group instead of all.")
    def reconcile_memberships_command(group_id: str | None) -> None:
        """Rebuild the study-group reverse index from the member lists."""
        from backend.campusshare.extensions import db
        from backend.campusshare.repositories import Repositories
        from backend.campusshare.services import study_group_service

        repos = Repositories.from_session(db.session)
        try:
            if group_id:
                result = study_group_service.reconcile_memberships(group_id, repos)
            else:
                result = study_group_service.reconcile_all(repos)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        click.echo(", ".join(f"{name}={count}" for name, count in result.items()))


def _first_message(field_errors) -> str:
    """Digs the first string out of marshmallow's nested message structure."""
    if isinstance(field_errors, dict):
        if not field_errors:
            return "Invalid value."
        return _first_message(next(iter(field_errors.values())))
    if isinstance(field_errors, list):
        return _first_message(field_errors[0]) if field_errors else "Invalid value."
    return str(field_errors)


def _code_to_message(code: str) -> str:
    """
    Human-readable text for a ValidationError whose message is an error code
    constant (e.g. FREE_LISTING_PRICE raised from a schema).
    """
    _messages = {
        "FREE_LISTING_PRICE": "A free listing must have a price of 0.",
    }
    return _messages.get(code, "Invalid input.")
