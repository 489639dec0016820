"""
Custom exceptions and error handlers for consistent error responses.

Every error leaves the API as {"error_code", "message", "details"}.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, List

logger = logging.getLogger("fleetflow.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class BusinessRuleError(AppException):
    """Raised when a request is well-formed but breaks a domain rule."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_BUSINESS_RULE",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class DuplicateResourceError(AppException):
    """Raised when a unique field (email, plate, license number) is taken."""

    def __init__(self, resource: str, field: str):
        super().__init__(
            message=f"{resource} with this {field.replace('_', ' ')} already exists",
            error_code="ERR_CONFLICT",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"resource": resource, "field": field}
        )


class TripRuleViolationError(AppException):
    """Raised when a trip fails one or more assignment rules."""

    def __init__(self, violations: List[str]):
        self.violations = violations
        super().__init__(
            message="; ".join(violations),
            error_code="ERR_TRIP_RULES",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"violations": violations}
        )


class InvalidTransitionError(AppException):
    """Raised when a trip status change is not allowed from its current status."""

    def __init__(self, current: str, target: str, reason: str = None):
        message = reason or f"Cannot move trip from {current} to {target}"
        super().__init__(
            message=message,
            error_code="ERR_TRIP_TRANSITION_INVALID",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"current_status": current, "target_status": target}
        )


class TransitionFailedError(AppException):
    """Raised when a transition passed its checks but could not be persisted."""

    def __init__(self, trip_id: int, target: str):
        super().__init__(
            message=f"Trip {trip_id} could not be moved to {target}; no changes were saved",
            error_code="ERR_TRIP_TRANSITION",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"trip_id": trip_id, "target_status": target}
        )


class EmailDeliveryError(AppException):
    """Raised when the transactional email provider rejects or fails a send."""

    def __init__(self, message: str = "Failed to send verification email. Please try again."):
        super().__init__(
            message=message,
            error_code="ERR_EMAIL_DELIVERY",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_errors(exc)
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold the raw exception object from a custom validator
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors
