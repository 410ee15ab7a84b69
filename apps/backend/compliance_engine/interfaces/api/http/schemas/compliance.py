"""
===============================================================================
TARJETA CRC - schemas/compliance.py
===============================================================================

Módulo:
    Schemas HTTP del motor de compliance

Responsabilidades:
    - DTOs de request/response para dispatch, stats y listados.
    - Mantener el contrato de la invocación estable (claves del resumen).

Colaboradores:
    - application.usecases.DispatchSummary / ComplianceStats
    - domain.entities.Finding / Task
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from compliance_engine.domain.entities import Severity, TaskKind, TaskStatus


# =============================================================================
# Dispatch
# =============================================================================


class DispatchRes(BaseModel):
    message: str
    processed: int
    findings_created: int
    tasks_created: int
    timestamp: datetime
    fetched: int = 0
    skipped: int = 0
    failed: int = 0
    released_claims: int = 0


class DispatchEnqueuedRes(BaseModel):
    job_id: str
    queue: str | None = None
    limit: int | None = None


# =============================================================================
# Stats
# =============================================================================


class ComplianceStatsRes(BaseModel):
    total_events: int
    pending_events: int
    total_findings: int
    critical_findings: int
    open_tasks: int
    completed_tasks: int
    events_by_status: dict[str, int] = Field(default_factory=dict)
    findings_by_severity: dict[str, int] = Field(default_factory=dict)
    tasks_by_status: dict[str, int] = Field(default_factory=dict)


# =============================================================================
# Listados
# =============================================================================


class FindingRes(BaseModel):
    id: UUID | None = None
    event_id: UUID
    severity: Severity
    label: str
    details: dict[str, Any] = Field(default_factory=dict)
    linked_object_type: str | None = None
    linked_object_id: str | None = None
    created_at: datetime | None = None


class FindingsRes(BaseModel):
    findings: list[FindingRes]
    next_offset: int | None = None


class TaskRes(BaseModel):
    id: UUID | None = None
    event_id: UUID | None = None
    kind: TaskKind
    summary: str
    suggested_action: dict[str, Any] = Field(default_factory=dict)
    due_at: datetime | None = None
    assignee: str
    status: TaskStatus
    created_at: datetime | None = None


class TasksRes(BaseModel):
    tasks: list[TaskRes]
    next_offset: int | None = None
