"""Declarative Request Binding

Binds an untyped parameter map (decoded query/body parameters) into a typed
request schema, enforcing required / not-empty constraints, coercing
scalars, constructing nested schemas and running lifecycle callbacks.

Usage:
    from typing import Annotated
    from binding import BaseRequest, Required, NotEmpty, RequestVar, ItemType

    class Tag(BaseRequest):
        name: Annotated[str, NotEmpty]

    class CreatePost(BaseRequest):
        title: Annotated[str, Required]
        author_id: Annotated[int, RequestVar("uid")] = 0
        tags: Annotated[list, ItemType(Tag)] = []

    post = CreatePost.parse({"title": "Hello", "uid": "7", "tags": [{"name": "news"}]})

    result = CreatePost.parse_result({})
    if result.is_err():
        ...
"""

# Schema declaration
from .schema import BaseRequest
from .markers import (
    Required,
    NotEmpty,
    RequestVar,
    ItemType,
    BeforeInit,
    AfterInit,
    AfterObjInit,
    Doc,
    parse_doc,
)

# Introspection
from .introspection import (
    FieldKind,
    FieldDescriptor,
    SchemaIntrospector,
    DEFAULT_INTROSPECTOR,
)

# Key resolution
from .names import snake, resolve

# Coercion
from .coercion import (
    ScalarKind,
    CoercionRule,
    ToInt,
    ToFloat,
    ToString,
    ToBool,
    ScalarCoercion,
    DEFAULT_COERCER,
    coerce,
    is_scalar,
)

# Binding
from .binder import Binder, DEFAULT_BINDER, bind, is_empty
from .registry import register, find_schema, get_schema

# Errors
from .exceptions import (
    BindingError,
    MissParamException,
    CanNotEmptyException,
    TypeErrorException,
    BusinessCheckFailException,
    CallbackFailedException,
)

__all__ = [
    # Schema declaration
    "BaseRequest",
    "Required",
    "NotEmpty",
    "RequestVar",
    "ItemType",
    "BeforeInit",
    "AfterInit",
    "AfterObjInit",
    "Doc",
    "parse_doc",
    # Introspection
    "FieldKind",
    "FieldDescriptor",
    "SchemaIntrospector",
    "DEFAULT_INTROSPECTOR",
    # Key resolution
    "snake",
    "resolve",
    # Coercion
    "ScalarKind",
    "CoercionRule",
    "ToInt",
    "ToFloat",
    "ToString",
    "ToBool",
    "ScalarCoercion",
    "DEFAULT_COERCER",
    "coerce",
    "is_scalar",
    # Binding
    "Binder",
    "DEFAULT_BINDER",
    "bind",
    "is_empty",
    "register",
    "find_schema",
    "get_schema",
    # Errors
    "BindingError",
    "MissParamException",
    "CanNotEmptyException",
    "TypeErrorException",
    "BusinessCheckFailException",
    "CallbackFailedException",
]
