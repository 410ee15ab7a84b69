"""
===============================================================================
TARJETA CRC - domain/services.py
===============================================================================

Módulo:
    Puertos de servicios (reloj, cola de corridas asíncronas)

Responsabilidades:
    - Definir contratos que la capa de aplicación usa sin conocer la
      implementación (RQ, reloj del sistema, reloj fijo en tests).

Colaboradores:
    - application.rules_engine (Clock)
    - application.usecases.dispatch_pending_events (Clock)
    - infrastructure.queue.RQDispatchQueue (DispatchQueue)
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

# Reloj inyectable: devuelve "ahora" en UTC.
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DispatchQueue(Protocol):
    """Encola una corrida del dispatcher para que la ejecute el worker."""

    def enqueue_dispatch(self, *, limit: Optional[int] = None) -> str:
        """Retorna el job_id."""
        ...
