"""Explicit Scalar Coercion

Request parameters arrive loosely typed: numbers as strings, flags as "0"/"1",
missing values as null. Each scalar kind has one total coercion rule with a
defined result for every scalar input; composite values are rejected.

    None   -> 0 / 0.0 / "" / False
    bool   -> 0|1 / 0.0|1.0 / ""|"1" / as is
    int    -> as is / float / decimal text / non-zero
    float  -> truncated (nan, inf -> 0) / as is / shortest text / non-zero
    str    -> leading numeric prefix (none -> 0) / as is / "" and "0" are False

Usage:
    coercer = ScalarCoercion()
    coercer.coerce("42", ScalarKind.INT)     # Ok(42)
    coercer.coerce([1, 2], ScalarKind.INT)   # Err(AppError)
"""
from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from core.errors import AppError, Err, ErrorCode, Ok, Result


class ScalarKind(str, Enum):
    """Scalar kinds a field or array item can be coerced to."""
    INT = "int"
    STRING = "string"
    FLOAT = "float"
    BOOL = "bool"

    @classmethod
    def parse(cls, ref: Any) -> ScalarKind | None:
        """Resolve a type name or builtin type to a scalar kind, None if it is not scalar."""
        if isinstance(ref, ScalarKind):
            return ref
        if isinstance(ref, str):
            return _KIND_NAMES.get(ref.strip().lower())
        if isinstance(ref, type):
            return _KIND_TYPES.get(ref)
        return None


_KIND_NAMES = {
    "int": ScalarKind.INT,
    "integer": ScalarKind.INT,
    "string": ScalarKind.STRING,
    "str": ScalarKind.STRING,
    "float": ScalarKind.FLOAT,
    "double": ScalarKind.FLOAT,
    "bool": ScalarKind.BOOL,
    "boolean": ScalarKind.BOOL,
}

_KIND_TYPES = {
    int: ScalarKind.INT,
    str: ScalarKind.STRING,
    float: ScalarKind.FLOAT,
    bool: ScalarKind.BOOL,
}

SCALAR_TYPES = (str, int, float, Decimal)

# Optional sign, digits with optional fraction (or a bare fraction), optional exponent
_NUMERIC_PREFIX = re.compile(r"\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


def is_scalar(value: Any) -> bool:
    """True for strings, numbers and booleans. None is not a scalar."""
    return isinstance(value, SCALAR_TYPES)


def numeric_prefix(text: str) -> str | None:
    """Leading numeric part of a string, ignoring leading whitespace."""
    match = _NUMERIC_PREFIX.match(text)
    return match.group(1) if match else None


def _composite_error(value: Any, kind: ScalarKind) -> Err[AppError]:
    return Err(AppError(
        code=ErrorCode.E2004_INVALID_TYPE,
        message=f"Cannot coerce {type(value).__name__} to {kind.value}",
        metadata={"source_type": type(value).__name__, "target_type": kind.value},
    ))


@dataclass(frozen=True, slots=True)
class CoercionRule(ABC):
    """Total coercion of scalar (or null) input to one scalar kind."""

    @property
    @abstractmethod
    def kind(self) -> ScalarKind:
        """Kind this rule coerces to."""

    @abstractmethod
    def convert(self, value: Any) -> Any:
        """Convert a scalar or None. Never raises for those inputs."""

    def coerce(self, value: Any) -> Result[Any, AppError]:
        if value is not None and not is_scalar(value):
            return _composite_error(value, self.kind)
        return Ok(self.convert(value))

    def __call__(self, value: Any) -> Result[Any, AppError]:
        return self.coerce(value)


@dataclass(frozen=True, slots=True)
class ToInt(CoercionRule):
    """Coerce to integer, truncating toward zero."""

    @property
    def kind(self) -> ScalarKind:
        return ScalarKind.INT

    def convert(self, value: Any) -> int:
        if value is None:
            return 0
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            prefix = numeric_prefix(value)
            if prefix is None:
                return 0
            if prefix.lstrip("+-").isdigit():
                # Decimal parses digit strings of any length
                return int(Decimal(prefix))
            value = float(prefix)
        if isinstance(value, Decimal):
            return int(value) if value.is_finite() else 0
        return int(value) if math.isfinite(value) else 0


@dataclass(frozen=True, slots=True)
class ToFloat(CoercionRule):
    """Coerce to float."""

    @property
    def kind(self) -> ScalarKind:
        return ScalarKind.FLOAT

    def convert(self, value: Any) -> float:
        if value is None:
            return 0.0
        if isinstance(value, str):
            prefix = numeric_prefix(value)
            return float(prefix) if prefix is not None else 0.0
        if isinstance(value, int):
            # ints beyond float range become inf instead of raising OverflowError
            return float(Decimal(value))
        return float(value)


@dataclass(frozen=True, slots=True)
class ToString(CoercionRule):
    """Coerce to string. Booleans become "1" / "" and integral floats drop the fraction."""

    @property
    def kind(self) -> ScalarKind:
        return ScalarKind.STRING

    def convert(self, value: Any) -> str:
        if value is None or value is False:
            return ""
        if value is True:
            return "1"
        if isinstance(value, float):
            if value.is_integer() and abs(value) < 1e15:
                return str(int(value))
            return repr(value)
        if isinstance(value, int):
            return str(Decimal(value))
        return str(value)


@dataclass(frozen=True, slots=True)
class ToBool(CoercionRule):
    """Coerce to boolean. Only "" and "0" are false among strings."""
    false_strings: frozenset[str] = frozenset({"", "0"})

    @property
    def kind(self) -> ScalarKind:
        return ScalarKind.BOOL

    def convert(self, value: Any) -> bool:
        if isinstance(value, str):
            return value not in self.false_strings
        return bool(value)


@dataclass(frozen=True, slots=True)
class ScalarCoercion:
    """One coercion rule per scalar kind.

    Usage:
        coercer = ScalarCoercion()
        result = coercer.coerce("1.5", ScalarKind.FLOAT)  # Ok(1.5)
    """
    rules: tuple[CoercionRule, ...] = field(default_factory=lambda: (
        ToInt(),
        ToFloat(),
        ToString(),
        ToBool(),
    ))

    def with_rule(self, rule: CoercionRule) -> ScalarCoercion:
        """Replace the rule for ``rule.kind``, returning a new instance."""
        return ScalarCoercion(rules=(*(r for r in self.rules if r.kind != rule.kind), rule))

    def rule_for(self, kind: ScalarKind) -> CoercionRule:
        for rule in self.rules:
            if rule.kind == kind:
                return rule
        raise LookupError(f"No coercion rule for '{kind.value}'")

    def coerce(self, value: Any, kind: ScalarKind) -> Result[Any, AppError]:
        """Coerce value to the given scalar kind."""
        return self.rule_for(kind).coerce(value)


# Default coercion instance
DEFAULT_COERCER = ScalarCoercion()


def coerce(value: Any, kind: ScalarKind | str | type) -> Result[Any, AppError]:
    """Convenience function using default coercer."""
    resolved = ScalarKind.parse(kind)
    if resolved is None:
        return Err(AppError(
            code=ErrorCode.E2004_INVALID_TYPE,
            message=f"'{kind}' is not a scalar type",
        ))
    return DEFAULT_COERCER.coerce(value, resolved)
