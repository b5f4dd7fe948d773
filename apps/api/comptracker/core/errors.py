"""Domain exceptions and standardized error responses across all API endpoints."""
from typing import Any

import sentry_sdk
import structlog
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error envelope returned by all API error handlers."""
    error: str
    message: str
    detail: Any = None
    request_id: str = "unknown"

logger = structlog.get_logger()


# ── Domain exceptions ─────────────────────────────────────────────────────────


class ComplianceError(Exception):
    """Base class for every error the compliance core raises."""

    error_code = "compliance_error"
    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class NotAuthenticated(ComplianceError):
    error_code = "not_authenticated"
    status_code = 401

    def __init__(self, message: str = "Not authenticated", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class PermissionDenied(ComplianceError):
    error_code = "permission_denied"
    status_code = 403


class NotFound(ComplianceError):
    error_code = "not_found"
    status_code = 404


class InvalidTransition(ComplianceError):
    """Requested status is not reachable from the current one."""

    error_code = "invalid_transition"
    status_code = 409

    def __init__(self, current: str, requested: str, allowed: list[str]) -> None:
        super().__init__(
            f"Cannot change status from '{current}' to '{requested}'",
            details={"current": current, "requested": requested, "allowed": allowed},
        )
        self.current = current
        self.requested = requested
        self.allowed = allowed


class Conflict(ComplianceError):
    """Request clashes with the current state of a record."""

    error_code = "conflict"
    status_code = 409


class TemplateValidationError(ComplianceError):
    error_code = "template_validation"
    status_code = 422


class StoreWriteFailed(ComplianceError):
    """Persisting a change through the record store failed."""

    error_code = "store_write_failed"
    status_code = 500


class NotificationFailed(ComplianceError):
    error_code = "notification_failed"
    status_code = 500


class EmailQueueFailed(ComplianceError):
    error_code = "email_queue_failed"
    status_code = 500


# ── Handlers ──────────────────────────────────────────────────────────────────


async def compliance_error_handler(request: Request, exc: ComplianceError) -> JSONResponse:
    """Render domain exceptions into the standard JSON envelope."""
    request_id = request.headers.get("x-request-id", "unknown")

    if exc.status_code >= 500:
        logger.error(
            "compliance_error",
            error=exc.error_code,
            message=exc.message,
            path=request.url.path,
            request_id=request_id,
        )
        sentry_sdk.capture_exception(exc)

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "detail": exc.details or None,
            "request_id": request_id,
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch unhandled exceptions and return a consistent JSON envelope."""
    request_id = request.headers.get("x-request-id", "unknown")

    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        request_id=request_id,
    )

    sentry_sdk.capture_exception(exc)

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Our team has been notified.",
            "request_id": request_id,
        },
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Standardize HTTPException responses into the same JSON envelope."""
    request_id = request.headers.get("x-request-id", "unknown")

    if isinstance(exc.detail, dict):
        error = exc.detail.get("error", f"http_{exc.status_code}")
        message = exc.detail.get("message", str(exc.detail))
        detail: Any = exc.detail.get("detail")
    else:
        error = f"http_{exc.status_code}"
        message = str(exc.detail)
        detail = exc.detail

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": error,
            "message": message,
            "detail": detail,
            "request_id": request_id,
        },
        headers=dict(exc.headers or {}),
    )
