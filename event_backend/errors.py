"""
API error taxonomy.

Every failure a route can report is an `ApiError`; the gateway renders
them as JSON bodies of the form {"message": ..., "errors": [...]}.
"""

import functools
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from flask import Response, jsonify, request

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500
    message = "Server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message
        if status_code:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationError(ApiError):
    """Malformed or missing input; carries the per-field errors."""

    status_code = 400
    message = "Validation failed"

    def __init__(self, errors: Optional[List[Dict[str, str]]] = None, message: Optional[str] = None) -> None:
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class Unauthorized(ApiError):
    status_code = 401
    message = "Access denied. No token provided."


class InvalidToken(ApiError):
    status_code = 400
    message = "Invalid token."


class Forbidden(ApiError):
    status_code = 403
    message = "Forbidden"


class NotFound(ApiError):
    status_code = 404
    message = "Not found"


class Conflict(ApiError):
    """Duplicate resource (409) or duplicate action (400)."""

    status_code = 409
    message = "Conflict"


class ServerError(ApiError):
    status_code = 500
    message = "Server error"


def handle_api_error(error: ApiError) -> Tuple[Response, int]:
    """Flask error handler turning an ApiError into a JSON response."""
    return jsonify(error.to_dict()), error.status_code


def server_error_boundary(message: str) -> Callable:
    """
    Decorate a view so unexpected exceptions become a ServerError.

    ApiErrors pass through untouched; anything else is logged with its
    traceback and reported to the client as a 500 with `message`.
    """

    def decorator(view: Callable) -> Callable:
        @functools.wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except ApiError:
                raise
            except Exception as e:
                logger.exception(f"{message}: {e}")
                raise ServerError(message) from e

        return wrapper

    return decorator


def json_object_body() -> Dict[str, Any]:
    """
    The request's JSON body as a dict; an absent or unparsable body is empty.

    Raises:
        ValidationError: The body is JSON but not an object (e.g. a list or a string).
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(message="Request body must be a JSON object")
    return data
