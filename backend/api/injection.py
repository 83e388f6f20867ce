"""Request Injection for FastAPI

Builds a request schema straight from the incoming HTTP request: query
parameters, overlaid by a JSON object body or form fields, make up the
parameter map handed to the binder.

Usage:
    from fastapi import Depends
    from api import inject

    @router.post("/posts")
    async def create_post(post: CreatePost = Depends(inject(CreatePost))):
        ...

Binding failures propagate as AppErrorException subclasses and are rendered
by the handlers installed with ``core.errors.register_error_handlers``.
"""
from typing import Any, Awaitable, Callable, Iterable, TypeVar

from fastapi import Request

from binding import DEFAULT_BINDER, BaseRequest
from core.config import settings
from core.errors import invalid_json, invalid_type, raise_error
from core.logging import api_logger

log = api_logger()

R = TypeVar("R", bound=BaseRequest)

FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def group_items(items: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Fold repeated keys into lists; ``key[]`` always yields a list under ``key``.

    ``key`` and ``key[]`` share one list, in arrival order.
    """
    grouped: dict[str, list[Any]] = {}
    bracketed: set[str] = set()
    for key, value in items:
        if key.endswith("[]"):
            key = key[:-2]
            bracketed.add(key)
        grouped.setdefault(key, []).append(value)
    return {
        key: values if key in bracketed or len(values) > 1 else values[0]
        for key, values in grouped.items()
    }


async def collect_params(request: Request) -> dict[str, Any]:
    """Parameter map of a request."""
    params: dict[str, Any] = {}
    if settings.BINDER_MERGE_QUERY:
        params.update(group_items(request.query_params.multi_items()))

    content_type = request.headers.get("content-type", "")
    if "json" in content_type:
        if await request.body():
            try:
                payload = await request.json()
            except ValueError as e:
                raise_error(invalid_json(str(e), origin="api").error)
            if not isinstance(payload, dict):
                raise_error(invalid_type("$", expected="object", got=type(payload).__name__, origin="api").error)
            params.update(payload)
    elif content_type.startswith(FORM_TYPES):
        form = await request.form()
        params.update(group_items(form.multi_items()))

    return params


def inject(schema: type[R]) -> Callable[[Request], Awaitable[R]]:
    """FastAPI dependency that binds the current request into ``schema``."""

    async def dependency(request: Request) -> R:
        params = await collect_params(request)
        log.debug("request_params_collected", schema=schema.__name__, keys=sorted(params))
        return DEFAULT_BINDER.bind(params, schema)

    dependency.__name__ = f"inject_{schema.__name__}"
    return dependency
