from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, NoReturn, Optional

from flask import Flask, g, jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


@dataclass
class ApiError(Exception):
    """Raise to return a consistent JSON error response."""

    status_code: int
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.status_code} {self.code}: {self.message}"

    def to_dict(self, request_id: str | None = None) -> Dict[str, Any]:
        return error_payload(self.code, self.message, self.details, request_id)


def error_payload(code: str, message: str, details: Optional[Dict[str, Any]] = None, request_id: str | None = None) -> Dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
            "request_id": request_id,
        }
    }


def abort_json(status_code: int, code: str, message: str, details: Optional[Dict[str, Any]] = None) -> NoReturn:
    """Convenience wrapper."""
    raise ApiError(status_code=status_code, code=code, message=message, details=details)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        if err.status_code >= 500:
            logger.error("api error: %s", err)
        return jsonify(err.to_dict(g.get("request_id"))), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        # Normalize Werkzeug errors into our JSON shape
        payload = error_payload("http_error", err.description, {"name": err.name}, g.get("request_id"))
        if err.code == 404:
            payload["error"]["code"] = "not_found"
        return jsonify(payload), err.code or 500

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        app.logger.exception("Unhandled exception")
        payload = error_payload("internal_error", "Internal server error", None, g.get("request_id"))
        return jsonify(payload), 500
