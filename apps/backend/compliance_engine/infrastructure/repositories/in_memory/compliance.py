"""
In-Memory findings/tasks repository for testing and development.

NOT FOR PRODUCTION USE - data is lost on restart.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from ....domain.entities import Finding, Severity, Task, TaskKind, TaskStatus


class InMemoryComplianceRepository:
    """
    In-memory implementation of ComplianceRepository.

    fail_on_insert permite simular fallas de storage en tests del dispatcher.
    """

    def __init__(self) -> None:
        self._findings: List[Finding] = []
        self._tasks: List[Task] = []
        self._lock = threading.Lock()
        self.fail_on_insert: Optional[Exception] = None

    @property
    def findings(self) -> List[Finding]:
        with self._lock:
            return list(self._findings)

    @property
    def tasks(self) -> List[Task]:
        with self._lock:
            return list(self._tasks)

    def insert_findings(self, findings: List[Finding]) -> List[Finding]:
        if self.fail_on_insert is not None:
            raise self.fail_on_insert
        now = datetime.now(timezone.utc)
        stored = [
            replace(f, id=f.id or uuid4(), created_at=f.created_at or now)
            for f in findings
        ]
        with self._lock:
            self._findings.extend(stored)
        return stored

    def insert_tasks(self, tasks: List[Task]) -> List[Task]:
        if self.fail_on_insert is not None:
            raise self.fail_on_insert
        now = datetime.now(timezone.utc)
        stored = [
            replace(t, id=t.id or uuid4(), created_at=t.created_at or now)
            for t in tasks
        ]
        with self._lock:
            self._tasks.extend(stored)
        return stored

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
        results = self.findings
        if severity is not None:
            results = [f for f in results if f.severity == Severity(severity)]
        if event_id is not None:
            results = [f for f in results if f.event_id == event_id]
        # Newest first; insertion order breaks ties on equal timestamps
        results = list(reversed(results))
        results.sort(key=lambda f: f.created_at, reverse=True)
        offset = max(offset, 0)
        return results[offset : offset + limit]

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
        results = self.tasks
        if status is not None:
            results = [t for t in results if t.status == TaskStatus(status)]
        if kind is not None:
            results = [t for t in results if t.kind == TaskKind(kind)]
        results = list(reversed(results))
        results.sort(key=lambda t: t.created_at, reverse=True)
        offset = max(offset, 0)
        return results[offset : offset + limit]

    def count_findings_by_severity(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for finding in self.findings:
            key = Severity(finding.severity).value
            counts[key] = counts.get(key, 0) + 1
        return counts

    def count_tasks_by_status(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for task in self.tasks:
            key = TaskStatus(task.status).value
            counts[key] = counts.get(key, 0) + 1
        return counts
