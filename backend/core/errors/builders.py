"""Domain-Specific Error Builders

Ergonomic constructors for the error kinds a bind can end with.
Each builder creates an Err wrapping an AppError with the matching code.
"""
from typing import Any

from .types import AppError, ErrorCode, ErrorContext, Err


# =============================================================================
# Validation Errors (E2xxx)
# =============================================================================

def validation_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC,
    field: str | None = None,
    value: Any = None,
    origin: str = "",
    **metadata,
) -> Err[AppError]:
    """Create validation error."""
    meta = {"field": field, "value": value, **metadata}
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={k: v for k, v in meta.items() if v is not None},
    ))


def required_field(key: str, origin: str = "") -> Err[AppError]:
    return validation_error(
        f"missing {key}",
        code=ErrorCode.E2001_REQUIRED_FIELD_MISSING,
        field=key,
        origin=origin,
    )


def empty_value(key: str, origin: str = "") -> Err[AppError]:
    return validation_error(
        f"{key} can not be empty",
        code=ErrorCode.E2005_CONSTRAINT_VIOLATION,
        field=key,
        constraint="not_empty",
        origin=origin,
    )


def invalid_type(
    key: str, expected: str | None = None, got: str | None = None, origin: str = ""
) -> Err[AppError]:
    return validation_error(
        f"{key} type error",
        code=ErrorCode.E2004_INVALID_TYPE,
        field=key,
        expected=expected,
        got=got,
        origin=origin,
    )


def invalid_json(message: str, origin: str = "") -> Err[AppError]:
    return validation_error(
        f"Invalid JSON: {message}",
        code=ErrorCode.E2021_INVALID_JSON,
        origin=origin,
    )


# =============================================================================
# Business Logic Errors (E5xxx)
# =============================================================================

def business_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E5000_BUSINESS_GENERIC,
    origin: str = "",
    cause: Exception | None = None,
    **metadata,
) -> Err[AppError]:
    """Create business logic error."""
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata=metadata,
        cause=cause,
    ))


def precondition_failed(
    message: str, origin: str = "", cause: Exception | None = None, **metadata
) -> Err[AppError]:
    return business_error(
        message,
        code=ErrorCode.E5003_PRECONDITION_FAILED,
        origin=origin,
        cause=cause,
        **metadata,
    )


# =============================================================================
# Internal Errors (E9xxx)
# =============================================================================

def internal_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E9001_UNEXPECTED_ERROR,
    origin: str = "",
    cause: Exception | None = None,
    **metadata,
) -> Err[AppError]:
    """Create internal/unexpected error."""
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata=metadata,
        cause=cause,
    ))
