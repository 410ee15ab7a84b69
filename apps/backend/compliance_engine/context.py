"""
===============================================================================
TARJETA CRC - compliance_engine/context.py (Contexto de logging)
===============================================================================

Responsabilidades:
  - Guardar en ContextVars el contexto de la unidad de trabajo actual
    (request HTTP, job RQ o corrida por cron) y del evento en evaluación.
  - Exponerlo como dict plano para el JSONFormatter.

Colaboradores:
  - crosscutting.middleware (request_id / method / path)
  - worker.jobs, scripts/run_dispatch.py (request_id del job)
  - application.usecases.dispatch_pending_events (event_id)
  - crosscutting.logger (get_context_dict)

Notas:
  - "" significa ausente; get_context_dict() omite esas claves.
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Dict

_FIELDS: Dict[str, ContextVar[str]] = {
    name: ContextVar(f"compliance_{name}", default="")
    for name in ("request_id", "event_id", "method", "path")
}


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = ""
) -> None:
    _FIELDS["request_id"].set(request_id or "")
    _FIELDS["method"].set(method or "")
    _FIELDS["path"].set(path or "")


def set_event_context(event_id: str = "") -> None:
    _FIELDS["event_id"].set(event_id or "")


def get_context_dict() -> Dict[str, str]:
    return {name: var.get() for name, var in _FIELDS.items() if var.get()}


def clear_context() -> None:
    for var in _FIELDS.values():
        var.set("")
