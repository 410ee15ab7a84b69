"""
===============================================================================
TARJETA CRC - domain/entities.py
===============================================================================

Módulo:
    Entidades del Dominio (Event, Finding, Task, OpenRequest, ActionLogEntry)

Responsabilidades:
    - Definir estructuras centrales del motor de compliance (sin infraestructura).
    - Fijar vocabularios cerrados: severidad, tipo de task, estados.
    - Brindar helpers mínimos para mantener reglas simples
      (orden total de severidad, transiciones de estado permitidas).

Colaboradores:
    - domain.repositories: persisten/recuperan estas entidades.
    - application.detectors / rules_engine: construyen Findings y Tasks.
    - interfaces/api: serializan DTOs basados en estas entidades.

Principios:
    - Sin dependencias a DB/Redis/FastAPI.
    - Findings y Tasks son inmutables: se crean una vez (append-only).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Optional
from uuid import UUID


def _utcnow() -> datetime:
    """Fecha/hora UTC (helper interno)."""
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Vocabularios cerrados
# ---------------------------------------------------------------------------


class EventType(str, Enum):
    """Tipos de evento que el motor sabe evaluar (el stream puede traer otros)."""

    MESSAGE_SENT = "message.sent"
    QUOTE_SUBMITTED = "quote.submitted"
    SANCTIONS_MATCH = "sanctions.match"
    AIRCRAFT_AVAILABILITY_UPDATED = "aircraft.availability.updated"


class EventStatus(str, Enum):
    """
    Estado de procesamiento de un evento.

    Transiciones válidas:
      pending -> in_progress       (claim)
      in_progress -> processed     (finalización)
      in_progress -> pending       (release por falla / claim vencido)
    processed es terminal.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    PROCESSED = "processed"


_ALLOWED_EVENT_TRANSITIONS: Dict[EventStatus, frozenset[EventStatus]] = {
    EventStatus.PENDING: frozenset({EventStatus.IN_PROGRESS}),
    EventStatus.IN_PROGRESS: frozenset({EventStatus.PROCESSED, EventStatus.PENDING}),
    EventStatus.PROCESSED: frozenset(),
}


def can_transition(from_status: EventStatus, to_status: EventStatus) -> bool:
    """True si la transición de estado de evento es válida."""
    return to_status in _ALLOWED_EVENT_TRANSITIONS[EventStatus(from_status)]


def ensure_transitions(
    from_statuses: Iterable[EventStatus], to_status: EventStatus
) -> None:
    """ValueError si algún par from -> to no está permitido (processed es terminal)."""
    target = EventStatus(to_status)
    for status in from_statuses:
        source = EventStatus(status)
        if not can_transition(source, target):
            raise ValueError(
                f"Invalid event status transition: {source.value} -> {target.value}"
            )


class Severity(str, Enum):
    """Nivel de riesgo con orden total: info < warn < high < critical."""

    INFO = "info"
    WARN = "warn"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def ordered(cls) -> list["Severity"]:
        return sorted(cls, key=lambda s: s.rank)


_SEVERITY_RANK: Dict[Severity, int] = {
    Severity.INFO: 0,
    Severity.WARN: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


def max_severity(severities: Iterable[Severity]) -> Optional[Severity]:
    """Severidad más alta (None si no hay ninguna)."""
    values = list(severities)
    if not values:
        return None
    return max(values, key=lambda s: Severity(s).rank)


class TaskKind(str, Enum):
    ALERT = "alert"
    REVIEW = "review"
    ENRICH = "enrich"
    GENERATE_REPORT = "generate_report"
    ROUTE = "route"


class TaskStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    DONE = "done"


# ---------------------------------------------------------------------------
# Event
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Event:
    """
    Hecho inmutable registrado por productores upstream.

    Importante:
      - El motor solo lee eventos y cambia su status.
      - payload es un mapa abierto; cada detector valida lo que necesita.
    """

    id: UUID
    type: str
    payload: Dict[str, Any]
    occurred_at: datetime
    actor_user_id: Optional[str] = None
    status: EventStatus = EventStatus.PENDING
    claimed_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Finding / Task (append-only, propiedad exclusiva del motor)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Finding:
    """Veredicto de un detector, siempre trazable al evento que lo produjo."""

    event_id: UUID
    severity: Severity
    label: str
    details: Dict[str, Any] = field(default_factory=dict)
    linked_object_type: Optional[str] = None
    linked_object_id: Optional[str] = None

    # Asignados por storage
    id: Optional[UUID] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Task:
    """Seguimiento accionable derivado de un finding."""

    kind: TaskKind
    summary: str
    suggested_action: Dict[str, Any] = field(default_factory=dict)
    event_id: Optional[UUID] = None
    due_at: Optional[datetime] = None
    assignee: str = "admin"
    status: TaskStatus = TaskStatus.OPEN

    # Asignados por storage
    id: Optional[UUID] = None
    created_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Read models consumidos por detectores
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OpenRequest:
    """RFQ abierto (read model upstream) usado por el detector de empty legs."""

    id: str
    aircraft_class: str
    departure_at: datetime
    origin: Optional[str] = None
    destination: Optional[str] = None
    origin_lat: Optional[float] = None
    origin_lon: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.origin_lat is not None and self.origin_lon is not None


# ---------------------------------------------------------------------------
# Action log
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActionLogEntry:
    """Entrada del log operativo del motor (qué se procesó y con qué resultado)."""

    action: str
    target_type: str
    target_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    id: Optional[UUID] = None
    created_at: datetime = field(default_factory=_utcnow)
