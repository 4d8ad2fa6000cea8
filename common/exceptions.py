"""
Design Gallery - Custom Exceptions
===================================
Business-level exceptions. Each one carries a stable machine-readable code
and the HTTP status it maps to; main.py converts them to the JSON envelope.
"""

from typing import Optional


class AppError(Exception):
    """Base exception for all business logic errors."""
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str = "Internal server error", detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(self.message)


class ValidationError(AppError):
    """Raised when client input is rejected."""
    code = "VALIDATION_ERROR"
    status_code = 400


class AuthenticationError(AppError):
    """Raised when authentication fails."""
    code = "AUTHENTICATION_ERROR"
    status_code = 401

    def __init__(self, message: str = "Authentication required", detail: Optional[str] = None):
        super().__init__(message, detail)


class AuthorizationError(AppError):
    """Raised when user lacks permission."""
    code = "AUTHORIZATION_ERROR"
    status_code = 403

    def __init__(self, message: str = "Insufficient permissions", detail: Optional[str] = None):
        super().__init__(message, detail)


class NotFoundError(AppError):
    """Raised when a requested resource doesn't exist (or is hidden from the caller)."""
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, message: str = "Resource not found", detail: Optional[str] = None):
        super().__init__(message, detail)


class ConflictError(AppError):
    """Raised for unique constraint violations at the business level."""
    code = "CONFLICT"
    status_code = 409


class RateLimitedError(AppError):
    """Raised when a client exceeds its request window."""
    code = "RATE_LIMIT_EXCEEDED"
    status_code = 429

    def __init__(self, retry_after: int, limit: int = 0, message: str = "Too many requests, please try again later"):
        self.retry_after = retry_after
        self.limit = limit
        super().__init__(message)
