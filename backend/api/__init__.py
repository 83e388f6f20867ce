"""HTTP integration: bind request schemas from FastAPI requests."""
from .injection import collect_params, group_items, inject

__all__ = ["collect_params", "group_items", "inject"]
