"""
===============================================================================
USE CASES: Compliance read side (consola operativa)
===============================================================================

Responsibilities:
    - Estadísticas agregadas: eventos por estado, findings por severidad,
      tasks por estado.
    - Listados paginados de findings y tasks con filtros simples.

Collaborators:
    - EventStore.count_by_status
    - ComplianceRepository: count_*, list_findings, list_tasks

Notes:
    - Solo lectura: nada acá modifica findings, tasks ni eventos.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from uuid import UUID

from ...domain.entities import (
    EventStatus,
    Finding,
    Severity,
    Task,
    TaskKind,
    TaskStatus,
)
from ...domain.repositories import ComplianceRepository, EventStore


def _complete(counts: Dict[str, int], keys: List[str]) -> Dict[str, int]:
    """Rellena con 0 las claves faltantes (respuesta de forma estable)."""
    out = {key: int(counts.get(key, 0)) for key in keys}
    for key, value in counts.items():
        out.setdefault(key, int(value))
    return out


@dataclass(frozen=True)
class ComplianceStats:
    events_by_status: Dict[str, int] = field(default_factory=dict)
    findings_by_severity: Dict[str, int] = field(default_factory=dict)
    tasks_by_status: Dict[str, int] = field(default_factory=dict)

    @property
    def total_events(self) -> int:
        return sum(self.events_by_status.values())

    @property
    def pending_events(self) -> int:
        return self.events_by_status.get(EventStatus.PENDING.value, 0)

    @property
    def total_findings(self) -> int:
        return sum(self.findings_by_severity.values())

    @property
    def critical_findings(self) -> int:
        return self.findings_by_severity.get(Severity.CRITICAL.value, 0)

    @property
    def open_tasks(self) -> int:
        return self.tasks_by_status.get(TaskStatus.OPEN.value, 0)

    @property
    def completed_tasks(self) -> int:
        return self.tasks_by_status.get(TaskStatus.DONE.value, 0)


class GetComplianceStatsUseCase:
    def __init__(self, events: EventStore, compliance: ComplianceRepository) -> None:
        self._events = events
        self._compliance = compliance

    def execute(self) -> ComplianceStats:
        return ComplianceStats(
            events_by_status=_complete(
                self._events.count_by_status(), [s.value for s in EventStatus]
            ),
            findings_by_severity=_complete(
                self._compliance.count_findings_by_severity(),
                [s.value for s in Severity.ordered()],
            ),
            tasks_by_status=_complete(
                self._compliance.count_tasks_by_status(), [s.value for s in TaskStatus]
            ),
        )


@dataclass(frozen=True)
class ListFindingsInput:
    severity: Optional[Severity] = None
    event_id: Optional[UUID] = None
    limit: int = 50
    offset: int = 0


@dataclass(frozen=True)
class ListFindingsOutput:
    findings: List[Finding]
    next_offset: Optional[int] = None


class ListFindingsUseCase:
    def __init__(self, compliance: ComplianceRepository) -> None:
        self._compliance = compliance

    def execute(self, input_data: ListFindingsInput) -> ListFindingsOutput:
        findings = self._compliance.list_findings(
            severity=input_data.severity,
            event_id=input_data.event_id,
            limit=input_data.limit,
            offset=input_data.offset,
        )
        next_offset = (
            input_data.offset + input_data.limit
            if len(findings) == input_data.limit
            else None
        )
        return ListFindingsOutput(findings=findings, next_offset=next_offset)


@dataclass(frozen=True)
class ListTasksInput:
    status: Optional[TaskStatus] = None
    kind: Optional[TaskKind] = None
    limit: int = 50
    offset: int = 0


@dataclass(frozen=True)
class ListTasksOutput:
    tasks: List[Task]
    next_offset: Optional[int] = None


class ListTasksUseCase:
    def __init__(self, compliance: ComplianceRepository) -> None:
        self._compliance = compliance

    def execute(self, input_data: ListTasksInput) -> ListTasksOutput:
        tasks = self._compliance.list_tasks(
            status=input_data.status,
            kind=input_data.kind,
            limit=input_data.limit,
            offset=input_data.offset,
        )
        next_offset = (
            input_data.offset + input_data.limit
            if len(tasks) == input_data.limit
            else None
        )
        return ListTasksOutput(tasks=tasks, next_offset=next_offset)
