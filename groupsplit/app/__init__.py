"""
app/__init__.py — Flask application factory.

Importing this package builds nothing. Each create_app() call returns a new,
fully wired host, so the test suite and a dev server never share state.

Responsibilities:
  1. Pick the config class for config_name (config.py)
  2. Initialise the SQLAlchemy extension via init_app()
  3. Create the local snapshot table if it does not exist yet
  4. Register all route blueprints under /api/v1
  5. Register global error handlers (AppError → JSON, Exception → 500)
  6. Register a custom JSON provider to serialise Decimal as string
     (monetary amounts are transmitted as strings, never JS numbers)
"""

from __future__ import annotations

import logging
import traceback
from decimal import Decimal

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from marshmallow import ValidationError

from groupsplit.config import config_by_name, validate_production_config


# ── Custom JSON provider ───────────────────────────────────────────────────
# All monetary amounts in API responses are serialised as strings to
# preserve precision. (The exported snapshot file is the exception; see
# schemas/snapshot_schema.py.)

class DecimalJSONProvider(DefaultJSONProvider):
    """
    Writes Decimal values as their exact string form, so jsonify() returns
    Decimal("30.00") as "30.00" rather than a lossy float.
    """

    sort_keys = False

    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        return super().default(o)


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Builds the local groupsplit host.

    Args:
        config_name: "development" (default), "testing" or "production".
                     Unknown names fall back to development.
    """
    app = Flask(__name__)
    app.json_provider_class = DecimalJSONProvider
    app.json = DecimalJSONProvider(app)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # ── Extensions ─────────────────────────────────────────────────────────
    # Deferred import, matching the blueprint and model imports below.
    from groupsplit.app.extensions import db
    db.init_app(app)

    # ── Local store ────────────────────────────────────────────────────────
    # One table, one JSON row per snapshot key. create_all() is idempotent.
    with app.app_context():
        from groupsplit.app.models import snapshot  # noqa: F401
        db.create_all()

    # ── Blueprints ─────────────────────────────────────────────────────────
    _register_blueprints(app)

    # ── Error handlers ─────────────────────────────────────────────────────
    _register_error_handlers(app)
    _register_cors(app)

    app.logger.debug(
        "groupsplit app created (config=%s, snapshot key=%s)",
        config_name,
        app.config["SNAPSHOT_KEY"],
    )
    return app


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints under the /api/v1 prefix.

    Blueprint names match the route files in app/routes/. Each route file
    spells out its own resource paths (/group, /expenses, /balances, ...).
    """
    from groupsplit.app.routes.balances import balances_bp
    from groupsplit.app.routes.expenses import expenses_bp
    from groupsplit.app.routes.groups import groups_bp
    from groupsplit.app.routes.payments import payments_bp

    app.register_blueprint(groups_bp,   url_prefix="/api/v1")
    app.register_blueprint(expenses_bp, url_prefix="/api/v1")
    app.register_blueprint(payments_bp, url_prefix="/api/v1")
    app.register_blueprint(balances_bp, url_prefix="/api/v1")


def _first_validation_message(messages) -> tuple[str | None, str]:
    """
    Walks marshmallow's messages down to the first (field, message) pair.
    Nested dict/list fields report the top-level field name.
    """
    if isinstance(messages, dict):
        for field_name, field_errors in messages.items():
            _, message = _first_validation_message(field_errors)
            return (field_name if field_name != "_schema" else None), message
    if isinstance(messages, list):
        if not messages:
            return None, "Invalid value."
        return _first_validation_message(messages[0])
    return None, str(messages)


def _register_error_handlers(app: Flask) -> None:
    """
    Every failure leaves the API as {"error": {"code", "message", "field"?}}.

      AppError        → its own code and status
      ValidationError → 400; the first field error only
      HTTPException   → werkzeug's status, code derived from its name
      Exception       → 500 INTERNAL_ERROR, traceback logged
    """
    from werkzeug.exceptions import HTTPException

    from groupsplit.app.errors import AppError, ErrorCode

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """
        Services raise AppError and routes let it through; this is the one
        place it becomes an HTTP response.
        """
        if error.http_status >= 500:
            app.logger.error("%r", error)
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Schema failures become a 400 with the usual error envelope.

        Only the FIRST error is returned ("one error, not many").

        The error code from the ValidationError message is used directly if it
        matches a known ErrorCode constant; otherwise INVALID_FIELD, or
        MISSING_FIELD for marshmallow's required-field message.
        """
        field, raw_message = _first_validation_message(error.messages)
        known_codes = {
            value for name, value in vars(ErrorCode).items() if not name.startswith("_")
        }

        if raw_message in known_codes:
            code = raw_message
            message = _code_to_message(code)
        elif raw_message.startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD
            message = raw_message
        else:
            code = ErrorCode.INVALID_FIELD
            message = raw_message

        response_body = {"error": {"code": code, "message": message}}
        if field is not None:
            response_body["error"]["field"] = field

        return jsonify(response_body), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        """404/405 and friends keep their status but use the error envelope."""
        return jsonify({
            "error": {
                "code": error.name.upper().replace(" ", "_"),
                "message": error.description,
            }
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Last resort for anything not handled above: a generic 500.

        The traceback goes to app.logger; the response body only ever
        carries the generic INTERNAL_ERROR envelope.
        """
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
    Lets a browser frontend on another local port (say :8000) call the API
    on :5000. Only active when DEBUG or TESTING is set.
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))

        if allow_all:
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Expose-Headers"] = "Content-Disposition"

        return response


def _code_to_message(code: str) -> str:
    """
    Default wording for schema errors whose message is an ErrorCode value,
    such as INVALID_SPLIT_METHOD from the split_method enum field.
    """
    _messages = {
        "INVALID_AMOUNT_PRECISION": "Amounts must have at most 2 decimal places.",
        "INVALID_SPLIT_METHOD": "split_method must be one of: evenly, amount, percentage, item.",
        "INVALID_EXPENSE_TYPE": "The expense type is not valid.",
        "INVALID_PAYMENT_METHOD": "payment_method must be one of: Cash, Venmo, Zelle, Other.",
        "INVALID_HISTORY_FILTER": "kind must be all|expenses|payments and order must be asc|desc.",
    }
    return _messages.get(code, "Invalid input.")
