"""Binding Engine

Populates a request schema from an untyped parameter map. Fields are
visited in declaration order; for each one:

    before callback -> key resolution -> presence -> emptiness
        -> coercion / construction -> after callback -> defer object callback

then the deferred object callbacks replay in declaration order and the
instance's ``after_init()`` hook runs. The first violation raises and the
partially built instance is dropped.

Nested schemas and arrays of schemas are bound by re-entrant calls, so a
tree of objects is resolved depth-first before the outer field completes.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Callable, TypeVar, get_origin

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.errors import Err, Ok, sequence_results
from core.logging import binding_logger

from .coercion import DEFAULT_COERCER, ScalarCoercion, ScalarKind, is_scalar
from .exceptions import (
    BindingError,
    BusinessCheckFailException,
    CallbackFailedException,
    CanNotEmptyException,
    MissParamException,
    TypeErrorException,
)
from .introspection import DEFAULT_INTROSPECTOR, FieldDescriptor, FieldKind, SchemaIntrospector
from .names import resolve
from .registry import find_schema
from .schema import BaseRequest

log = binding_logger()

R = TypeVar("R", bound=BaseRequest)


def is_empty(value: Any) -> bool:
    """Empty values fail a not-empty check: None, False, zero, "", "0" and empty collections."""
    if isinstance(value, str):
        return value in ("", "0")
    return not value


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


class Binder:
    """Binds parameter maps into request schemas.

    Usage:
        binder = Binder()
        request = binder.bind({"user_id": "42"}, GetUser)
    """

    __slots__ = ("introspector", "coercer")

    def __init__(
        self,
        introspector: SchemaIntrospector | None = None,
        coercer: ScalarCoercion | None = None,
    ):
        self.introspector = introspector or DEFAULT_INTROSPECTOR
        self.coercer = coercer or DEFAULT_COERCER

    def bind(self, params: Mapping[str, Any], schema: type[R]) -> R:
        """Bind params into a new instance of schema.

        An empty map returns a default instance without running any field
        processing or hooks.
        """
        if not (isinstance(schema, type) and issubclass(schema, BaseRequest)):
            raise TypeError(f"{schema!r} is not a BaseRequest schema")
        if not isinstance(params, Mapping):
            raise TypeError(f"Parameters must be a mapping, got {type(params).__name__}")

        log.debug("bind_started", schema=schema.__name__, keys=len(params))
        try:
            instance = self._bind(params, schema)
        except BindingError as exc:
            log.warning(
                "bind_failed",
                schema=schema.__name__,
                error_code=exc.error.code.name,
                key=exc.key,
                message=exc.message,
            )
            raise
        log.debug("bind_completed", schema=schema.__name__)
        return instance

    def _bind(self, params: Mapping[str, Any], schema: type[R]) -> R:
        instance = schema()
        if not params:
            return instance

        deferred: list[tuple[str, Callable[[], Any]]] = []
        for descriptor in self.introspector.fields(schema):
            name = descriptor.name

            if callback := self._callback(instance, descriptor.before_init):
                setattr(instance, name, self._invoke(callback, BusinessCheckFailException))

            key = resolve(name, descriptor.annotations, params)
            required = descriptor.required or schema.is_required(name, key)
            not_empty = descriptor.not_empty or schema.is_not_empty(name, key)

            if key not in params:
                if required or not_empty:
                    raise MissParamException(key)
                continue

            raw = params[key]
            if not_empty and is_empty(raw):
                raise CanNotEmptyException(key)

            setattr(instance, name, self._convert(instance, descriptor, key, raw))

            if callback := self._callback(instance, descriptor.after_init):
                setattr(instance, name, self._invoke(callback, CallbackFailedException))

            if callback := self._callback(instance, descriptor.after_obj_init):
                deferred.append((name, callback))

        for name, callback in deferred:
            setattr(instance, name, self._invoke(callback, CallbackFailedException))

        instance.after_init()
        return instance

    def _convert(self, instance: BaseRequest, descriptor: FieldDescriptor, key: str, raw: Any) -> Any:
        module = type(instance).__module__
        match descriptor.kind:
            case FieldKind.SCALAR:
                return self._scalar(descriptor.declared_type, key, raw)
            case FieldKind.ARRAY:
                current = getattr(instance, descriptor.name, None)
                return self._array(descriptor.item_type, key, raw, current, module)
            case _:
                return self._object(descriptor.declared_type, key, raw, module)

    def _scalar(self, kind: ScalarKind, key: str, raw: Any) -> Any:
        match self.coercer.coerce(raw, kind):
            case Ok(value):
                return value
            case Err(_):
                raise MissParamException(key, type_error=True, got=type(raw).__name__)

    def _array(self, item_type: Any, key: str, raw: Any, current: Any, module: str) -> list:
        """Coerce or construct every element, appended after the field's current items."""
        if not _is_sequence(raw):
            raise TypeErrorException(key, expected="array", got=type(raw).__name__)
        items = list(current) if isinstance(current, (list, tuple)) else []

        if (kind := ScalarKind.parse(item_type)) is not None:
            if not all(is_scalar(v) for v in raw):
                raise TypeErrorException(key, expected=f"array of {kind.value}")
            match sequence_results([self.coercer.coerce(v, kind) for v in raw]):
                case Ok(values):
                    return items + values
                case Err(_):
                    raise TypeErrorException(key, expected=f"array of {kind.value}")

        target = self._resolve_schema(item_type, module)
        if target is None:
            raise TypeErrorException(key, expected=f"array of {item_type}")
        for value in raw:
            if not isinstance(value, Mapping):
                raise TypeErrorException(key, expected=f"array of {target.__name__}", got=type(value).__name__)
            items.append(self._construct(target, key, value))
        return items

    def _object(self, declared: Any, key: str, raw: Any, module: str) -> Any:
        if not isinstance(raw, Mapping):
            raise TypeErrorException(key, expected="object", got=type(raw).__name__)
        if declared is dict or get_origin(declared) is dict:
            return dict(raw)
        target = self._resolve_schema(declared, module)
        if target is None:
            raise TypeErrorException(key, expected=str(declared))
        return self._construct(target, key, raw)

    def _construct(self, target: type, key: str, raw: Mapping[str, Any]) -> Any:
        if issubclass(target, BaseRequest):
            return self._bind(raw, target)
        try:
            return target.model_validate(dict(raw))
        except PydanticValidationError as exc:
            raise TypeErrorException(key, expected=target.__name__) from exc

    @staticmethod
    def _resolve_schema(ref: Any, module: str) -> type | None:
        """Schema class for a type or registered name; None if it cannot be bound.

        Names resolve against the declaring schema's module first.
        """
        if isinstance(ref, str):
            ref = find_schema(ref, module)
        if isinstance(ref, type) and issubclass(ref, (BaseRequest, BaseModel)):
            return ref
        return None

    @staticmethod
    def _callback(instance: BaseRequest, method: str | None) -> Callable[[], Any] | None:
        if not method:
            return None
        callback = getattr(instance, method, None)
        return callback if callable(callback) else None

    @staticmethod
    def _invoke(callback: Callable[[], Any], wrapper: type[BindingError]) -> Any:
        try:
            return callback()
        except Exception as exc:
            raise wrapper(str(exc), cause=exc) from exc


# Default binder instance
DEFAULT_BINDER = Binder()


def bind(params: Mapping[str, Any], schema: type[R]) -> R:
    """Convenience function using default binder."""
    return DEFAULT_BINDER.bind(params, schema)
