"""Binding failures.

Each exception wraps an AppError from the shared taxonomy so the FastAPI
handlers render it like any other application error. The first violation
ends the bind call; nothing is aggregated.
"""
from __future__ import annotations

from core.errors import (
    AppError,
    AppErrorException,
    empty_value,
    internal_error,
    invalid_type,
    precondition_failed,
    required_field,
)

ORIGIN = "binder"


class BindingError(AppErrorException):
    """Base class for every failure raised out of a bind call."""

    def __init__(self, error: AppError):
        super().__init__(error)

    @property
    def key(self) -> str | None:
        """Parameter key the failure is about, if any."""
        return self.error.metadata.get("field")

    @property
    def message(self) -> str:
        return self.error.message


class MissParamException(BindingError):
    """A required or not-empty field's key is absent, or a scalar field got a composite value."""

    def __init__(self, key: str, *, type_error: bool = False, got: str | None = None):
        if type_error:
            error = invalid_type(key, expected="scalar", got=got, origin=ORIGIN).error
        else:
            error = required_field(key, origin=ORIGIN).error
        super().__init__(error)

    @property
    def is_type_error(self) -> bool:
        return self.error.metadata.get("expected") == "scalar"


class CanNotEmptyException(BindingError):
    """A not-empty field resolved to an empty value."""

    def __init__(self, key: str):
        super().__init__(empty_value(key, origin=ORIGIN).error)


class TypeErrorException(BindingError):
    """A value's shape does not match the field's declared type."""

    def __init__(self, key: str, expected: str | None = None, got: str | None = None):
        super().__init__(invalid_type(key, expected=expected, got=got, origin=ORIGIN).error)


class BusinessCheckFailException(BindingError):
    """A before-init callback raised."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(precondition_failed(message, origin=ORIGIN, cause=cause).error)


class CallbackFailedException(BindingError):
    """An after-init or after-object callback raised."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(internal_error(message, origin=ORIGIN, cause=cause).error)
