"""Application error taxonomy.

Each exception carries the HTTP status and the machine readable ``code`` the
client relies on. Handlers in ``acceluni.main`` render them as
``{error, message, code, details, redirect}`` bodies, so the status of a
failure is decided where it is raised rather than guessed from its message.
"""

from __future__ import annotations

from typing import Any, Optional


class AppError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    error: str = "Internal server error"
    redirect: Optional[str] = None

    def __init__(self, message: str | None = None, *, details: Any = None):
        super().__init__(message or self.error)
        self.message = message or self.error
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "error": self.error,
            "message": self.message,
            "code": self.code,
        }
        if self.details is not None:
            payload["details"] = self.details
        if self.redirect:
            payload["redirect"] = self.redirect
        return payload


class AuthenticationError(AppError):
    status_code = 401
    code = "AUTHENTICATION_REQUIRED"
    error = "Authentication required"
    redirect = "/"


class NotFoundError(AppError):
    """The record does not exist or belongs to another user.

    Both cases answer 404 so a caller cannot probe for foreign identifiers.
    """

    status_code = 404
    code = "NOT_FOUND"
    error = "Not found or access denied"


class InvalidRequestError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    error = "Invalid request"


class ConflictError(AppError):
    status_code = 400
    code = "ALREADY_EXISTS"
    error = "Already exists"


class SubscriptionRequiredError(AppError):
    status_code = 403
    code = "SUBSCRIPTION_REQUIRED"
    error = "Subscription required"
    redirect = "/pay"


class UpstreamGenerationError(AppError):
    """The LLM call failed. Generators catch it and use fallback templates."""

    status_code = 500
    code = "GENERATION_FAILED"
    error = "Content generation failed"
