"""
===============================================================================
TARJETA CRC - domain/__init__.py
===============================================================================

Módulo:
    Exportaciones de la Capa de Dominio (API pública del dominio)

Responsabilidades:
    - Centralizar exports para imports limpios en application/interfaces.
    - Mantener estable el “surface area” del dominio.

Reglas:
    - Solo re-exporta contratos/entidades del dominio.
    - No importar infraestructura aquí.
===============================================================================
"""

from .entities import (
    ActionLogEntry,
    Event,
    EventStatus,
    EventType,
    Finding,
    OpenRequest,
    Severity,
    Task,
    TaskKind,
    TaskStatus,
    can_transition,
    ensure_transitions,
    max_severity,
)
from .repositories import (
    ActionLogRepository,
    ComplianceRepository,
    EventStore,
    HistoricalQueryService,
)
from .services import Clock, DispatchQueue, utc_now

__all__ = [
    # Entities
    "ActionLogEntry",
    "Event",
    "EventStatus",
    "EventType",
    "Finding",
    "OpenRequest",
    "Severity",
    "Task",
    "TaskKind",
    "TaskStatus",
    "can_transition",
    "ensure_transitions",
    "max_severity",
    # Repositories
    "ActionLogRepository",
    "ComplianceRepository",
    "EventStore",
    "HistoricalQueryService",
    # Services
    "Clock",
    "DispatchQueue",
    "utc_now",
]
