"""Source key resolution.

A field is looked up under its own name, then under its snake_case form;
an explicit ``requestVar`` annotation overrides both.
"""
import re
from functools import lru_cache
from typing import Any, Mapping

from .markers import REQUEST_VAR

_WHITESPACE = re.compile(r"\s+")
_UPPER_BOUNDARY = re.compile(r"(.)(?=[A-Z])")


@lru_cache(maxsize=1024)
def snake(name: str) -> str:
    """Convert an identifier to snake_case (``userId`` -> ``user_id``)."""
    if name.islower() and name.isalpha():
        return name
    value = _WHITESPACE.sub("", " ".join(word[:1].upper() + word[1:] for word in name.split()))
    return _UPPER_BOUNDARY.sub(r"\1_", value).lower()


def resolve(field_name: str, annotations: Mapping[str, Any], params: Mapping[str, Any]) -> str:
    """Effective parameter key for a field."""
    key = field_name if field_name in params else snake(field_name)
    if override := annotations.get(REQUEST_VAR):
        key = override
    return key
