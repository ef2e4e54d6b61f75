# agritrace/errors.py
"""
API error taxonomy.

Services raise these; the handlers registered by `register_error_handlers`
turn them into the `{success: false, message, errors?}` envelope.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from flask import current_app, jsonify
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.errors = errors

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(ApiError):
    status_code = 400
    default_message = "Validation failed"


class InvalidState(ApiError):
    status_code = 400
    default_message = "Invalid state"


class Conflict(ApiError):
    status_code = 400
    default_message = "Already exists"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Unauthorized(ApiError):
    status_code = 403
    default_message = "Not authorized"


class ServerError(ApiError):
    status_code = 500
    default_message = "Server error"


def pydantic_errors(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]


def register_error_handlers(app):

    @app.errorhandler(ApiError)
    def _api_error(e: ApiError):
        if e.status_code >= 500:
            current_app.logger.error("%s: %s", type(e).__name__, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(PydanticValidationError)
    def _validation_error(e: PydanticValidationError):
        return jsonify({
            "success": False,
            "message": "Validation failed",
            "errors": pydantic_errors(e),
        }), 400

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return jsonify({"success": False, "message": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        current_app.logger.exception("Unhandled error: %s", e)
        return jsonify({"success": False, "message": "Server error"}), 500
