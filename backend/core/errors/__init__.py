"""Monadic Error Handling System

Type-safe error handling inspired by Haskell's Either monad and Rust's
Result type.

Key components:
- Result[T, E]: Monadic container for success/failure
- AppError: Base error type with full context
- ErrorCode: Hierarchical error code taxonomy
- Builder functions: Ergonomic error construction
- FastAPI handlers: AppError -> JSON response

Usage:
    from core.errors import Ok, Err, Result, AppError, required_field

    def lookup(params: dict, key: str) -> Result[object, AppError]:
        if key not in params:
            return required_field(key, origin="binder")
        return Ok(params[key])

    match lookup(params, "user_id"):
        case Ok(value):
            ...
        case Err(error):
            log.error(error.message, code=error.code.name)
"""
from .types import (
    # Core types
    Result,
    Ok,
    Err,
    AppError,
    ErrorCode,
    ErrorContext,
    # Constructors
    from_exception,
    # Combinators
    sequence_results,
)

from .builders import (
    # Validation (E2xxx)
    validation_error,
    required_field,
    empty_value,
    invalid_type,
    invalid_json,
    # Business (E5xxx)
    business_error,
    precondition_failed,
    # Internal (E9xxx)
    internal_error,
)

from .handlers import (
    AppErrorException,
    register_error_handlers,
    result_to_response,
    raise_error,
    raise_result,
)

__all__ = [
    # Core types
    "Result",
    "Ok",
    "Err",
    "AppError",
    "ErrorCode",
    "ErrorContext",
    "from_exception",
    "sequence_results",
    # Validation (E2xxx)
    "validation_error",
    "required_field",
    "empty_value",
    "invalid_type",
    "invalid_json",
    # Business (E5xxx)
    "business_error",
    "precondition_failed",
    # Internal (E9xxx)
    "internal_error",
    # Handlers
    "AppErrorException",
    "register_error_handlers",
    "result_to_response",
    "raise_error",
    "raise_result",
]
