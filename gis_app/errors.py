"""Error taxonomy for the API.

Every error carries the HTTP status it maps to. The global handlers in
``main.py`` render them through the response envelope, so a handler can
raise from any depth and the request ends there.
"""
from typing import Any, Optional


class ApiError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details


class BadRequestError(ApiError):
    status_code = 400


class UploadError(ApiError):
    """Invalid photo type or size, or the file could not be stored."""
    status_code = 400


class AuthError(ApiError):
    status_code = 401

    def __init__(self, message: str = "Authentication required", **kwargs):
        super().__init__(message, **kwargs)


class NotFoundError(ApiError):
    status_code = 404


class ConflictError(ApiError):
    status_code = 409


class ValidationError(ApiError):
    status_code = 422

    def __init__(self, errors, message: Optional[str] = None):
        errors = list(errors)
        super().__init__(message or "Validation failed: " + ", ".join(errors), details=errors)
        self.errors = errors


class RateLimitError(ApiError):
    status_code = 429


class PersistenceError(ApiError):
    """Database failure. The original error is logged, never sent to the client."""
    status_code = 500

    def __init__(self, message: str = "Database error", **kwargs):
        super().__init__(message, **kwargs)
