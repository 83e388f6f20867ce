"""Request Schemas

A request schema is a plain class whose annotated attributes are the fields
to bind. Binding reads each field from an untyped parameter map, checks
presence and emptiness, coerces or recursively constructs the value and
runs the declared lifecycle callbacks.

Key resolution, per field:
- the field name itself, if the parameters contain it
- otherwise its snake_case form (``userId`` -> ``user_id``)
- a ``RequestVar`` marker overrides both

Callbacks, named by marker and resolved against the instance:
- ``BeforeInit``: seeds the field before it is read, even if the key is absent
- ``AfterInit``: replaces the field right after it is bound
- ``AfterObjInit``: replaces the field once all fields are bound, in
  declaration order
A name with no method behind it is skipped. ``after_init()`` runs last.

Usage:
    class Tag(BaseRequest):
        name: Annotated[str, NotEmpty]

    class CreatePost(BaseRequest):
        required_vars = {"title"}

        title: str
        author_id: int = 0
        tags: list[Tag] = []
        slug: Annotated[str, AfterObjInit("make_slug")] = ""

        def make_slug(self) -> str:
            return self.slug or self.title.lower().replace(" ", "-")

    post = CreatePost.parse({"title": "Hello", "authorId": "7", "tags": [{"name": "a"}]})
"""
from __future__ import annotations

import copy
from typing import Any, ClassVar, Iterable, Mapping, Self

from pydantic import BaseModel

from core.errors import AppError, Err, Ok, Result

from .exceptions import BindingError
from .introspection import DEFAULT_INTROSPECTOR, MISSING
from .registry import register


class BaseRequest:
    """Base class for bindable request schemas.

    ``required_vars`` and ``not_empty_vars`` list names (field names or
    parameter keys) that are always required / always not-empty checked,
    whatever their markers say.
    """

    required_vars: ClassVar[Iterable[str]] = frozenset()
    not_empty_vars: ClassVar[Iterable[str]] = frozenset()

    def __init_subclass__(cls, **kwargs):
        """Freeze the static name sets and register the schema by name."""
        super().__init_subclass__(**kwargs)
        cls.required_vars = frozenset(cls.required_vars)
        cls.not_empty_vars = frozenset(cls.not_empty_vars)
        register(cls)

    def __init__(self) -> None:
        """Default instance: every field holds its own copy of the class default, or None."""
        for descriptor in DEFAULT_INTROSPECTOR.fields(type(self)):
            default = descriptor.default
            setattr(self, descriptor.name, None if default is MISSING else copy.deepcopy(default))

    @classmethod
    def is_required(cls, *names: str) -> bool:
        return any(name in cls.required_vars for name in names)

    @classmethod
    def is_not_empty(cls, *names: str) -> bool:
        return any(name in cls.not_empty_vars for name in names)

    @classmethod
    def parse(cls, params: Mapping[str, Any] | None = None) -> Self:
        """Bind a parameter map into a new instance.

        Raises a BindingError subclass on the first violation.
        """
        from .binder import DEFAULT_BINDER

        return DEFAULT_BINDER.bind(params or {}, cls)

    @classmethod
    def parse_result(cls, params: Mapping[str, Any] | None = None) -> Result[Self, AppError]:
        """Parse returning Result type for monadic error handling."""
        try:
            return Ok(cls.parse(params))
        except BindingError as e:
            return Err(e.error)

    def after_init(self) -> None:
        """Hook called once every field is bound. Override to post-process the instance."""

    def to_dict(self) -> dict[str, Any]:
        """Serialize bound fields, nested schemas included."""
        return {
            descriptor.name: _dump(getattr(self, descriptor.name, None))
            for descriptor in DEFAULT_INTROSPECTOR.fields(type(self))
        }

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.to_dict().items())
        return f"{type(self).__name__}({fields})"


def _dump(value: Any) -> Any:
    if isinstance(value, BaseRequest):
        return value.to_dict()
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, (list, tuple)):
        return [_dump(v) for v in value]
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    return value
