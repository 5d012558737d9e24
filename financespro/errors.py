"""
financespro/errors.py

Error taxonomy and the JSON response envelope.

Every response body has the shape:
    {"status": "success" | "error", "message"?: str, "data"?: any, "errors"?: list}

Routes and registries raise APIError subclasses; the handlers registered by
register_error_handlers() turn them into envelopes. Unexpected exceptions are
logged server-side with their stack trace and surfaced as a generic 500.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any, Optional

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class APIError(Exception):
    status_code = 500
    message = "Erreur interne du serveur"

    def __init__(self, message: Optional[str] = None, errors: Optional[list] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.errors = errors


class ValidationError(APIError):
    """400: body failed validation. `errors` holds [{field, message}]."""

    status_code = 400
    message = "Erreurs de validation"


class AuthenticationError(APIError):
    status_code = 401
    message = "Authentification requise"


class NoTokenError(AuthenticationError):
    message = "Token d'accès requis"


class InvalidTokenError(AuthenticationError):
    message = "Token invalide"


class UserNotFoundError(AuthenticationError):
    message = "Utilisateur introuvable"


class AuthorizationError(APIError):
    status_code = 403
    message = "Accès refusé"


class InsufficientPrivilegeError(AuthorizationError):
    message = "Accès refusé. Privilèges administrateur requis."


class NotFoundError(APIError):
    status_code = 404
    message = "Ressource introuvable"


class InternalError(APIError):
    status_code = 500


def field_error(field: str, message: str) -> dict:
    return {"field": field, "message": message}


# ---------------------------------------------------------------------
# Envelope helpers
# ---------------------------------------------------------------------
def success(data: Any = None, message: Optional[str] = None, status: int = 200):
    body: dict[str, Any] = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def failure(message: str, status: int, errors: Optional[list] = None, **extra: Any):
    body: dict[str, Any] = {"status": "error", "message": message}
    if errors:
        body["errors"] = errors
    body.update(extra)
    return jsonify(body), status


# ---------------------------------------------------------------------
# Flask wiring
# ---------------------------------------------------------------------
def register_error_handlers(app: Flask) -> None:
    """Convert every failure into the JSON envelope."""

    @app.errorhandler(APIError)
    def _api_error(exc: APIError):
        if exc.status_code >= 500:
            logger.error("api_error status=%s message=%s", exc.status_code, exc.message)
        return failure(exc.message, exc.status_code, exc.errors)

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        if exc.code == 404:
            return failure("Route introuvable", 404)
        return failure(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def _unexpected(exc: Exception):
        logger.exception("unhandled_error type=%s", type(exc).__name__)
        if app.config.get("EXPOSE_ERRORS"):
            return failure(
                str(exc) or InternalError.message,
                500,
                stack=traceback.format_exception(type(exc), exc, exc.__traceback__),
            )
        return failure(InternalError.message, 500)
