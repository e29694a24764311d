"""Centralized JSON error handling for the API."""
import json

from flask import current_app, g, jsonify, request
from werkzeug.exceptions import HTTPException

from domain.photo_library.errors import LocalImageProviderError, LocalImageProviderErrors


ERROR_STATUS_CODES = {
    LocalImageProviderErrors.MISSING_OR_INVALID_ARG: 400,
    LocalImageProviderErrors.IMG_NOT_FOUND: 404,
    LocalImageProviderErrors.UNIMPLEMENTED: 501,
    LocalImageProviderErrors.IMG_LOAD_FAILED: 500,
}


def provider_error_response(error: LocalImageProviderError):
    """Return the JSON error envelope for a method channel failure."""

    payload = {"status": "error", **error.to_dict()}
    status_code = ERROR_STATUS_CODES.get(error.code, 500)
    return jsonify(payload), status_code


def _log_extra(code: int) -> dict:
    return {
        "event": "api.http_4xx" if code < 500 else "api.http_5xx",
        "request_id": getattr(g, "request_id", None),
        "path": request.path,
    }


def register_error_handlers(app):
    """Register global error handlers returning JSON bodies."""

    @app.errorhandler(LocalImageProviderError)
    def handle_provider_error(error):
        return provider_error_response(error)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        code = error.code or 500
        log_dict = {
            "method": request.method,
            "path": request.path,
            "status": code,
        }
        logger = current_app.logger.warning if code < 500 else current_app.logger.error
        logger(json.dumps(log_dict, ensure_ascii=False), extra=_log_extra(code))

        payload = {
            "status": "error",
            "code": code,
            "message": error.description if code < 500 else error.name,
        }
        # flask-smorest attaches validation messages to ``error.data``
        messages = (getattr(error, "data", None) or {}).get("messages")
        if messages:
            payload["errors"] = messages
        return jsonify(payload), code

    @app.errorhandler(Exception)
    def handle_exception(error):
        log_dict = {
            "method": request.method,
            "path": request.path,
            "status": 500,
        }
        # 5xx のみ stacktrace
        current_app.logger.exception(
            json.dumps(log_dict, ensure_ascii=False),
            extra=_log_extra(500),
        )
        return (
            jsonify({"status": "error", "code": 500, "message": "Internal Server Error"}),
            500,
        )
