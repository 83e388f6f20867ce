"""Field Annotation Markers

Markers attach binding metadata to schema fields through ``typing.Annotated``.
Every marker maps to one annotation name and a payload; the introspector
collects them into a field's annotation mapping.

Usage:
    from binding import BaseRequest, Required, NotEmpty, RequestVar, ItemType, Doc

    class CreatePost(BaseRequest):
        title: Annotated[str, Required, NotEmpty]
        author_id: Annotated[int, RequestVar("uid")]
        tags: Annotated[list, ItemType("Tag")]
        slug: Annotated[str, Doc('''
            @afterInitCallBack normalize_slug
        ''')]

Free-text ``Doc`` blocks are scanned for ``@marker payload`` lines. Typed
markers win over text markers for the same annotation.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

# Annotation names
REQUIRED = "required"
NOT_EMPTY = "notEmpty"
REQUEST_VAR = "requestVar"
ITEM_TYPE = "itemType"
BEFORE_INIT = "beforeInitCallBack"
AFTER_INIT = "afterInitCallBack"
AFTER_OBJ_INIT = "afterObjInitCallback"

FLAG_ANNOTATIONS = (REQUIRED, NOT_EMPTY)
VALUE_ANNOTATIONS = (REQUEST_VAR, ITEM_TYPE, BEFORE_INIT, AFTER_INIT, AFTER_OBJ_INIT)
CALLBACK_ANNOTATIONS = (BEFORE_INIT, AFTER_INIT, AFTER_OBJ_INIT)


class Marker(ABC):
    """Base class for annotation markers."""
    __slots__ = ()

    annotation: str = ""

    @property
    @abstractmethod
    def payload(self) -> Any:
        """Value stored under ``annotation``."""


@dataclass(frozen=True, slots=True)
class Flag(Marker):
    """Presence marker: the annotation is set, it carries no value."""
    annotation: str

    @property
    def payload(self) -> bool:
        return True


Required = Flag(REQUIRED)
NotEmpty = Flag(NOT_EMPTY)


@dataclass(frozen=True, slots=True)
class RequestVar(Marker):
    """Explicit source key, used regardless of what the parameter map holds."""
    name: str
    annotation = REQUEST_VAR

    @property
    def payload(self) -> str:
        return self.name.strip()


@dataclass(frozen=True, slots=True)
class ItemType(Marker):
    """Element type of an array field: a scalar name/type, a schema class or a registered schema name."""
    type_ref: Any
    annotation = ITEM_TYPE

    @property
    def payload(self) -> Any:
        return self.type_ref.strip() if isinstance(self.type_ref, str) else self.type_ref


@dataclass(frozen=True, slots=True)
class _Callback(Marker):
    method: str

    @property
    def payload(self) -> str:
        return self.method.strip()


@dataclass(frozen=True, slots=True)
class BeforeInit(_Callback):
    """Method whose return value seeds the field before it is read from the request."""
    annotation = BEFORE_INIT


@dataclass(frozen=True, slots=True)
class AfterInit(_Callback):
    """Method whose return value replaces the field right after it is bound."""
    annotation = AFTER_INIT


@dataclass(frozen=True, slots=True)
class AfterObjInit(_Callback):
    """Method whose return value replaces the field once every field is bound."""
    annotation = AFTER_OBJ_INIT


@dataclass(frozen=True, slots=True)
class Doc:
    """Free-text documentation block holding ``@marker`` lines."""
    text: str


_FLAG_PATTERNS = {name: re.compile(rf"@{name}\b") for name in FLAG_ANNOTATIONS}
_VALUE_PATTERNS = {name: re.compile(rf"@{name}\b(?P<payload>[^\n]*)") for name in VALUE_ANNOTATIONS}


def parse_doc(text: str) -> dict[str, Any]:
    """Extract annotation payloads from a documentation block.

    Flags are set when the marker occurs anywhere in the text. Value markers
    take the rest of their line, trimmed; an empty payload counts as absent.
    """
    annotations: dict[str, Any] = {}
    if not text:
        return annotations
    for name, pattern in _FLAG_PATTERNS.items():
        if pattern.search(text):
            annotations[name] = True
    for name, pattern in _VALUE_PATTERNS.items():
        if (match := pattern.search(text)) and (payload := match.group("payload").strip()):
            annotations[name] = payload
    return annotations
