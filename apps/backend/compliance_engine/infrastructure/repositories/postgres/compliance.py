"""
============================================================
TARJETA CRC - infrastructure/repositories/postgres/compliance.py
============================================================
Class: PostgresComplianceRepository

Responsibilities:
  - Persistir findings y tasks (tablas findings / tasks, append-only).
  - Listar con filtros opcionales y paginación estable.
  - Agregados para el endpoint de stats.

Collaborators:
  - domain.entities.Finding / Task
  - psycopg.types.json.Json (details / suggested_action como JSONB)
  - PostgresRepositoryBase

Constraints / Notes:
  - IDs y created_at se asignan en Python antes del INSERT: el caller
    recibe las entidades tal cual quedaron persistidas.
  - Cada batch se inserta en una sola transacción.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from psycopg.types.json import Json

from ....domain.entities import Finding, Severity, Task, TaskKind, TaskStatus
from .base import PostgresRepositoryBase

_FINDING_COLUMNS = (
    "id, event_id, severity, label, details, linked_object_type, "
    "linked_object_id, created_at"
)
_TASK_COLUMNS = (
    "id, event_id, kind, summary, suggested_action, due_at, assignee, status, "
    "created_at"
)


class PostgresComplianceRepository(PostgresRepositoryBase):
    """Repositorio PostgreSQL para findings y tasks."""

    # ------------------------------------------------------------
    # Escritura (append-only)
    # ------------------------------------------------------------
    def insert_findings(self, findings: List[Finding]) -> List[Finding]:
        if not findings:
            return []

        now = datetime.now(timezone.utc)
        stored = [
            replace(f, id=f.id or uuid4(), created_at=f.created_at or now)
            for f in findings
        ]
        self._executemany(
            query=f"""
                INSERT INTO findings ({_FINDING_COLUMNS})
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """,
            rows=[
                (
                    f.id,
                    f.event_id,
                    Severity(f.severity).value,
                    f.label,
                    Json(f.details or {}),
                    f.linked_object_type,
                    f.linked_object_id,
                    f.created_at,
                )
                for f in stored
            ],
            error_message="PostgresComplianceRepository: Failed to insert findings",
            extra={"count": len(stored), "event_id": str(stored[0].event_id)},
        )
        return stored

    def insert_tasks(self, tasks: List[Task]) -> List[Task]:
        if not tasks:
            return []

        now = datetime.now(timezone.utc)
        stored = [
            replace(t, id=t.id or uuid4(), created_at=t.created_at or now)
            for t in tasks
        ]
        self._executemany(
            query=f"""
                INSERT INTO tasks ({_TASK_COLUMNS})
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            rows=[
                (
                    t.id,
                    t.event_id,
                    TaskKind(t.kind).value,
                    t.summary,
                    Json(t.suggested_action or {}),
                    t.due_at,
                    t.assignee,
                    TaskStatus(t.status).value,
                    t.created_at,
                )
                for t in stored
            ],
            error_message="PostgresComplianceRepository: Failed to insert tasks",
            extra={"count": len(stored)},
        )
        return stored

    # ------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------
    def list_findings(
        self,
        *,
        severity: Optional[Severity] = None,
        event_id: Optional[UUID] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Finding]:
        if limit <= 0:
            return []
        offset = max(offset, 0)

        conditions: list[str] = []
        params: list[object] = []
        if severity is not None:
            conditions.append("severity = %s")
            params.append(Severity(severity).value)
        if event_id is not None:
            conditions.append("event_id = %s")
            params.append(event_id)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        rows = self._fetchall(
            query=f"""
                SELECT {_FINDING_COLUMNS}
                FROM findings
                {where}
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s
            """,
            params=[*params, limit, offset],
            error_message="PostgresComplianceRepository: Failed to list findings",
            extra={"limit": limit, "offset": offset},
        )
        return [self._row_to_finding(row) for row in rows]

    def list_tasks(
        self,
        *,
        status: Optional[TaskStatus] = None,
        kind: Optional[TaskKind] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Task]:
        if limit <= 0:
            return []
        offset = max(offset, 0)

        conditions: list[str] = []
        params: list[object] = []
        if status is not None:
            conditions.append("status = %s")
            params.append(TaskStatus(status).value)
        if kind is not None:
            conditions.append("kind = %s")
            params.append(TaskKind(kind).value)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        rows = self._fetchall(
            query=f"""
                SELECT {_TASK_COLUMNS}
                FROM tasks
                {where}
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s
            """,
            params=[*params, limit, offset],
            error_message="PostgresComplianceRepository: Failed to list tasks",
            extra={"limit": limit, "offset": offset},
        )
        return [self._row_to_task(row) for row in rows]

    def count_findings_by_severity(self) -> Dict[str, int]:
        rows = self._fetchall(
            query="SELECT severity, COUNT(*) FROM findings GROUP BY severity",
            params=[],
            error_message="PostgresComplianceRepository: Failed to count findings",
        )
        return {severity: int(count) for severity, count in rows}

    def count_tasks_by_status(self) -> Dict[str, int]:
        rows = self._fetchall(
            query="SELECT status, COUNT(*) FROM tasks GROUP BY status",
            params=[],
            error_message="PostgresComplianceRepository: Failed to count tasks",
        )
        return {status: int(count) for status, count in rows}

    # ------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------
    @staticmethod
    def _row_to_finding(row: tuple) -> Finding:
        (
            finding_id,
            event_id,
            severity,
            label,
            details,
            linked_type,
            linked_id,
            created_at,
        ) = row
        return Finding(
            id=finding_id,
            event_id=event_id,
            severity=Severity(severity),
            label=label,
            details=details or {},
            linked_object_type=linked_type,
            linked_object_id=linked_id,
            created_at=created_at,
        )

    @staticmethod
    def _row_to_task(row: tuple) -> Task:
        (
            task_id,
            event_id,
            kind,
            summary,
            suggested_action,
            due_at,
            assignee,
            status,
            created_at,
        ) = row
        return Task(
            id=task_id,
            event_id=event_id,
            kind=TaskKind(kind),
            summary=summary,
            suggested_action=suggested_action or {},
            due_at=due_at,
            assignee=assignee,
            status=TaskStatus(status),
            created_at=created_at,
        )
