"""Application error hierarchy and error payload helpers.

Every error a tool can surface to a client is an ``AppError`` carrying an
HTTP-style status code and a stable machine-readable ``code``. Tools convert
them to payloads with :func:`create_error_response`.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for operational errors reported to clients."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str | None = None,
        is_operational: bool = True,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.is_operational = is_operational


class ValidationError(AppError):
    """Input failed validation."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 400, "VALIDATION_ERROR")


class AuthenticationError(AppError):
    """Credentials were missing or rejected."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, 401, "AUTHENTICATION_ERROR")


class RateLimitError(AppError):
    """Too many requests inside the rate-limit window."""

    def __init__(self, message: str = "Rate limit exceeded", retry_after: int | None = None) -> None:
        super().__init__(message, 429, "RATE_LIMIT_EXCEEDED")
        self.retry_after = retry_after


class ExternalAPIError(AppError):
    """An upstream service failed or returned something unusable."""

    def __init__(
        self,
        message: str,
        service: str,
        status_code: int = 502,
        code: str = "EXTERNAL_API_ERROR",
    ) -> None:
        super().__init__(message, status_code, code)
        self.service = service


class InternalServerError(AppError):
    """Programming or environment fault; not expected in normal operation."""

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message, 500, "INTERNAL_SERVER_ERROR", is_operational=False)


class AIServiceError(ExternalAPIError):
    """Failure while obtaining or validating an AI analysis.

    ``code`` is one of MISSING_API_KEY, INVALID_API_KEY, RATE_LIMIT_EXCEEDED,
    INVALID_JSON_RESPONSE, INVALID_AI_RESPONSE_STRUCTURE,
    INVALID_RESPONSE_QUALITY or AI_ANALYSIS_ERROR.
    """

    def __init__(
        self,
        message: str,
        code: str = "AI_ANALYSIS_ERROR",
        status_code: int = 502,
        service: str = "claude",
    ) -> None:
        super().__init__(message, service=service, status_code=status_code, code=code)


# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------

def create_error_response(exc: BaseException) -> dict[str, Any]:
    """Convert an exception into the client-facing error payload."""
    if isinstance(exc, AppError):
        payload: dict[str, Any] = {
            "success": False,
            "error": exc.message,
            "code": exc.code or "INTERNAL_SERVER_ERROR",
        }
        if isinstance(exc, RateLimitError) and exc.retry_after is not None:
            payload["retry_after"] = exc.retry_after
        return payload

    logger.error("Unhandled error converted to response: %r", exc)
    return {
        "success": False,
        "error": "Internal server error",
        "code": "INTERNAL_SERVER_ERROR",
    }


def format_validation_error(exc: Any) -> ValidationError:
    """Build a ValidationError from a pydantic ``ValidationError``.

    The message lists each failing location and reason, e.g.
    ``Validation failed: batteryLevel: Input should be less than or equal to 100``.
    """
    parts: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return ValidationError("Validation failed: " + ", ".join(parts))
