"""
Validación de dotted paths ("modulo.func") usados por RQ.

Fail-fast: un path roto se detecta al construir la cola, no en el worker.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import import_module


@lru_cache(maxsize=32)
def is_importable_dotted_path(dotted_path: str) -> bool:
    """True si el path existe y apunta a un callable."""
    if not dotted_path or "." not in dotted_path:
        return False
    module_name, attr_name = dotted_path.rsplit(".", 1)
    if not module_name or not attr_name:
        return False
    try:
        module = import_module(module_name)
    except ModuleNotFoundError:
        return False
    return callable(getattr(module, attr_name, None))
