"""Schema Introspection

Turns a schema class into an ordered tuple of FieldDescriptors: one per
annotated attribute, in declaration order (base classes first), with the
declared type classified and the annotation markers collected.

Descriptors derive only from static declarations, so they are computed once
per schema type and shared. Concurrent first computations are harmless:
both produce equal tuples and whichever lands first is kept.
"""
from __future__ import annotations

import collections.abc
import types
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, ClassVar, ForwardRef, Mapping, Union, get_args, get_origin, get_type_hints

from core.config import settings
from core.logging import binding_logger

from .coercion import ScalarKind
from .markers import (
    AFTER_INIT,
    AFTER_OBJ_INIT,
    BEFORE_INIT,
    CALLBACK_ANNOTATIONS,
    ITEM_TYPE,
    NOT_EMPTY,
    REQUEST_VAR,
    REQUIRED,
    Doc,
    Marker,
    parse_doc,
)

log = binding_logger()

MISSING = object()

_ARRAY_TYPES = (list, tuple, collections.abc.Sequence, collections.abc.MutableSequence)


class FieldKind(str, Enum):
    """How a field's value is produced from the raw parameter."""
    SCALAR = "scalar"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """Static description of one schema field."""
    name: str
    declared_type: Any
    kind: FieldKind
    annotations: Mapping[str, Any] = field(default_factory=dict)
    default: Any = MISSING

    @property
    def required(self) -> bool:
        return bool(self.annotations.get(REQUIRED))

    @property
    def not_empty(self) -> bool:
        return bool(self.annotations.get(NOT_EMPTY))

    @property
    def request_var(self) -> str:
        return self.annotations.get(REQUEST_VAR) or self.name

    @property
    def item_type(self) -> Any:
        return self.annotations.get(ITEM_TYPE, ScalarKind.STRING)

    @property
    def before_init(self) -> str | None:
        return self.annotations.get(BEFORE_INIT)

    @property
    def after_init(self) -> str | None:
        return self.annotations.get(AFTER_INIT)

    @property
    def after_obj_init(self) -> str | None:
        return self.annotations.get(AFTER_OBJ_INIT)


def _split_annotated(hint: Any) -> tuple[Any, tuple[Any, ...]]:
    if get_origin(hint) is Annotated:
        base, *metadata = get_args(hint)
        return base, tuple(metadata)
    return hint, ()


def _unwrap_optional(hint: Any) -> Any:
    """``X | None`` and ``Optional[X]`` declare X."""
    if get_origin(hint) in (Union, types.UnionType):
        args = [a for a in get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _classify(hint: Any) -> tuple[FieldKind, Any, Any]:
    """Return (kind, declared type, item type hint or None)."""
    if (scalar := ScalarKind.parse(hint)) is not None:
        return FieldKind.SCALAR, scalar, None
    if hint in _ARRAY_TYPES or get_origin(hint) in _ARRAY_TYPES:
        args = get_args(hint)
        item = args[0] if args else None
        if isinstance(item, ForwardRef):
            item = item.__forward_arg__
        return FieldKind.ARRAY, list, item
    return FieldKind.OBJECT, hint, None


def _collect_annotations(metadata: tuple[Any, ...]) -> dict[str, Any]:
    annotations: dict[str, Any] = {}
    for doc in (m for m in metadata if isinstance(m, Doc)):
        annotations.update(parse_doc(doc.text))
    for marker in (m for m in metadata if isinstance(m, Marker)):
        if marker.payload not in ("", None):
            annotations[marker.annotation] = marker.payload
    return annotations


class SchemaIntrospector:
    """Computes and caches field descriptors per schema type."""

    __slots__ = ("cache_enabled", "_cache")

    def __init__(self, cache_enabled: bool | None = None):
        self.cache_enabled = settings.BINDER_CACHE_SCHEMAS if cache_enabled is None else cache_enabled
        self._cache: dict[type, tuple[FieldDescriptor, ...]] = {}

    def fields(self, schema: type) -> tuple[FieldDescriptor, ...]:
        """Ordered field descriptors of a schema."""
        if self.cache_enabled and (cached := self._cache.get(schema)) is not None:
            return cached
        descriptors = self._describe(schema)
        if self.cache_enabled:
            descriptors = self._cache.setdefault(schema, descriptors)
        return descriptors

    def clear(self) -> None:
        self._cache.clear()

    def _describe(self, schema: type) -> tuple[FieldDescriptor, ...]:
        hints = get_type_hints(schema, include_extras=True)
        descriptors = tuple(
            self._describe_field(schema, name, hint)
            for name, hint in hints.items()
            if not name.startswith("_") and hint is not ClassVar and get_origin(hint) is not ClassVar
        )
        self._check_callbacks(schema, descriptors)
        log.debug("schema_introspected", schema=schema.__name__, fields=[d.name for d in descriptors])
        return descriptors

    @staticmethod
    def _describe_field(schema: type, name: str, hint: Any) -> FieldDescriptor:
        base, metadata = _split_annotated(hint)
        kind, declared, item = _classify(_unwrap_optional(base))
        annotations = _collect_annotations(metadata)
        if kind is FieldKind.ARRAY and item is not None:
            annotations.setdefault(ITEM_TYPE, item)
        return FieldDescriptor(
            name=name,
            declared_type=declared,
            kind=kind,
            annotations=types.MappingProxyType(annotations),
            default=getattr(schema, name, MISSING),
        )

    @staticmethod
    def _check_callbacks(schema: type, descriptors: tuple[FieldDescriptor, ...]) -> None:
        """Warn about callback names with no method behind them; binding skips those."""
        for descriptor in descriptors:
            for annotation in CALLBACK_ANNOTATIONS:
                method = descriptor.annotations.get(annotation)
                if method and not callable(getattr(schema, method, None)):
                    log.warning(
                        "callback_not_found",
                        schema=schema.__name__,
                        field=descriptor.name,
                        annotation=annotation,
                        callback=method,
                    )


# Shared introspector instance
DEFAULT_INTROSPECTOR = SchemaIntrospector()
