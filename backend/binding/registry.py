"""Schema registry - lets item types be referenced by name.

Schemas are stored under their qualified ``module.QualName``. A bare class
name resolves against the referring schema's module first, then to the one
schema registered under that name; a bare name shared by several schemas is
ambiguous and does not resolve.
"""
from core.logging import binding_logger

log = binding_logger()

_SCHEMAS: dict[str, type] = {}
_BY_NAME: dict[str, dict[str, type]] = {}


def _qualified(schema: type) -> str:
    return f"{schema.__module__}.{schema.__qualname__}"


def register(schema: type) -> None:
    """Register a schema under its qualified module path and its class name."""
    qualified = _qualified(schema)
    _SCHEMAS[qualified] = schema
    namesakes = _BY_NAME.setdefault(schema.__name__, {})
    namesakes[qualified] = schema
    if len(namesakes) > 1:
        log.warning(
            "schema_name_ambiguous",
            name=schema.__name__,
            schemas=sorted(namesakes),
        )


def find_schema(name: str, module: str | None = None) -> type | None:
    """Look up a schema by qualified or bare name, None if unknown or ambiguous.

    ``module`` is the referring schema's module, searched first for bare names.
    """
    name = name.strip()
    if (schema := _SCHEMAS.get(name)) is not None:
        return schema
    if module and (schema := _SCHEMAS.get(f"{module}.{name}")) is not None:
        return schema
    namesakes = _BY_NAME.get(name, {})
    if len(namesakes) == 1:
        return next(iter(namesakes.values()))
    return None


def get_schema(name: str, module: str | None = None) -> type:
    """Get a schema by name."""
    if (schema := find_schema(name, module)) is None:
        if len(_BY_NAME.get(name.strip(), {})) > 1:
            raise ValueError(f"Schema '{name}' is ambiguous: {', '.join(sorted(_BY_NAME[name.strip()]))}")
        available = ", ".join(sorted(_SCHEMAS)) or "none"
        raise ValueError(f"Schema '{name}' not registered. Available: {available}")
    return schema
