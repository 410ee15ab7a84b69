"""
===============================================================================
TARJETA CRC - interfaces/api/http/routers/compliance.py
===============================================================================

Name:
    Compliance Router

Responsibilities:
    - Invocación del dispatcher (síncrona y encolada en RQ).
    - Lectura para la consola: stats, findings y tasks.
    - Validaciones de borde (limit, filtros) y mapping DTO.

Collaborators:
    - container.get_dispatch_use_case / get_stats_use_case / get_list_*_use_case
    - container.get_dispatch_queue
    - schemas.compliance
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from compliance_engine.application.usecases import (
    DispatchPendingEventsInput,
    DispatchPendingEventsUseCase,
    GetComplianceStatsUseCase,
    ListFindingsInput,
    ListFindingsUseCase,
    ListTasksInput,
    ListTasksUseCase,
)
from compliance_engine.container import (
    get_dispatch_queue,
    get_dispatch_use_case,
    get_list_findings_use_case,
    get_list_tasks_use_case,
    get_stats_use_case,
)
from compliance_engine.crosscutting.error_responses import (
    OPENAPI_ERROR_RESPONSES,
    service_unavailable,
    validation_error,
)
from compliance_engine.domain.entities import (
    Finding,
    Severity,
    Task,
    TaskKind,
    TaskStatus,
)
from compliance_engine.domain.services import DispatchQueue
from fastapi import APIRouter, Depends, Query

from ..schemas.compliance import (
    ComplianceStatsRes,
    DispatchEnqueuedRes,
    DispatchRes,
    FindingRes,
    FindingsRes,
    TaskRes,
    TasksRes,
)

router = APIRouter(
    prefix="/compliance", tags=["compliance"], responses=OPENAPI_ERROR_RESPONSES
)


# =============================================================================
# Adapters dominio -> DTO
# =============================================================================


def _to_finding_res(finding: Finding) -> FindingRes:
    return FindingRes(
        id=finding.id,
        event_id=finding.event_id,
        severity=finding.severity,
        label=finding.label,
        details=finding.details or {},
        linked_object_type=finding.linked_object_type,
        linked_object_id=finding.linked_object_id,
        created_at=finding.created_at,
    )


def _to_task_res(task: Task) -> TaskRes:
    return TaskRes(
        id=task.id,
        event_id=task.event_id,
        kind=task.kind,
        summary=task.summary,
        suggested_action=task.suggested_action or {},
        due_at=task.due_at,
        assignee=task.assignee,
        status=task.status,
        created_at=task.created_at,
    )


# =============================================================================
# Dispatch
# =============================================================================


@router.post("/dispatch", response_model=DispatchRes)
def dispatch_pending_events(
    limit: int | None = Query(None, description="Tamaño del batch (default 50)"),
    use_case: DispatchPendingEventsUseCase = Depends(get_dispatch_use_case),
):
    """
    Drena un batch de eventos pendientes.

    Fetch fallido => 503 EVENT_FETCH_ERROR (mapeado por exception handlers).
    """
    if limit is not None and limit <= 0:
        raise validation_error("limit debe ser mayor a 0")

    summary = use_case.execute(DispatchPendingEventsInput(limit=limit))
    return DispatchRes(**summary.to_dict())


@router.post("/dispatch/async", response_model=DispatchEnqueuedRes, status_code=202)
def enqueue_dispatch(
    limit: int | None = Query(None, ge=1),
    queue: DispatchQueue | None = Depends(get_dispatch_queue),
):
    if queue is None:
        raise service_unavailable("Dispatch queue (REDIS_URL no configurado)")

    job_id = queue.enqueue_dispatch(limit=limit)
    return DispatchEnqueuedRes(
        job_id=job_id,
        queue=getattr(queue, "queue_name", None),
        limit=limit,
    )


# =============================================================================
# Consola (read side)
# =============================================================================


@router.get("/stats", response_model=ComplianceStatsRes)
def get_compliance_stats(
    use_case: GetComplianceStatsUseCase = Depends(get_stats_use_case),
):
    stats = use_case.execute()
    return ComplianceStatsRes(
        total_events=stats.total_events,
        pending_events=stats.pending_events,
        total_findings=stats.total_findings,
        critical_findings=stats.critical_findings,
        open_tasks=stats.open_tasks,
        completed_tasks=stats.completed_tasks,
        events_by_status=stats.events_by_status,
        findings_by_severity=stats.findings_by_severity,
        tasks_by_status=stats.tasks_by_status,
    )


@router.get("/findings", response_model=FindingsRes)
def list_findings(
    severity: Severity | None = Query(None),
    event_id: UUID | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    use_case: ListFindingsUseCase = Depends(get_list_findings_use_case),
):
    result = use_case.execute(
        ListFindingsInput(
            severity=severity, event_id=event_id, limit=limit, offset=offset
        )
    )
    return FindingsRes(
        findings=[_to_finding_res(f) for f in result.findings],
        next_offset=result.next_offset,
    )


@router.get("/tasks", response_model=TasksRes)
def list_tasks(
    status: TaskStatus | None = Query(None),
    kind: TaskKind | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    use_case: ListTasksUseCase = Depends(get_list_tasks_use_case),
):
    result = use_case.execute(
        ListTasksInput(status=status, kind=kind, limit=limit, offset=offset)
    )
    return TasksRes(
        tasks=[_to_task_res(t) for t in result.tasks],
        next_offset=result.next_offset,
    )
