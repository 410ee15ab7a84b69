"""
CRC - domain/repositories.py

Name
- Domain Repository Interfaces (Protocols)

Responsibilities
- Define persistence contracts for the compliance engine (ports).
- Keep the application/domain independent from infrastructure (PostgreSQL, in-memory).
- Enable dependency inversion and straightforward unit testing (mock/stub repositories).

Collaborators
- domain.entities: Event, Finding, Task, OpenRequest, ActionLogEntry
- infrastructure.repositories: postgres/*, in_memory/* implementations

Constraints
- Pure interfaces only: no side effects, no infrastructure imports, no SQL.
- Implementations MUST match method signatures exactly.
- Status transitions are conditional: they only apply when the current
  status is one of from_statuses (claim-queue semantics).

Notes
- We use typing.Protocol for structural subtyping ("duck typing").
- Outputs are concrete lists for predictable iteration/serialization.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol
from uuid import UUID

from .entities import (
    ActionLogEntry,
    Event,
    EventStatus,
    Finding,
    OpenRequest,
    Severity,
    Task,
    TaskKind,
    TaskStatus,
)


class EventStore(Protocol):
    """
    R: Interface for the domain event log (owned by upstream producers).

    The engine only reads events and flips their status.
    """

    def fetch_pending_events(self, limit: int) -> List[Event]:
        """R: Pending events ordered by occurred_at ASC (id as tie-break)."""
        ...

    def claim_event(self, event_id: UUID, *, claimed_at: datetime) -> bool:
        """
        R: Atomically move pending -> in_progress.

        Returns False when the event is no longer pending (claimed elsewhere).
        """
        ...

    def update_event_status(
        self,
        event_id: UUID,
        *,
        from_statuses: List[EventStatus],
        to_status: EventStatus,
        processed_at: Optional[datetime] = None,
        claimed_at: Optional[datetime] = None,
    ) -> bool:
        """
        R: Conditional transition; True if a row was updated.

        claimed_at, when given, must match the stored claim (ownership token).
        Raises ValueError for transitions the lifecycle forbids
        (processed is terminal).
        """
        ...

    def holds_claim(self, event_id: UUID, *, claimed_at: datetime) -> bool:
        """R: True while the event is still in_progress under this claim."""
        ...

    def release_stale_claims(self, *, older_than: datetime) -> int:
        """R: Revert in_progress claims older than the cutoff to pending."""
        ...

    def count_by_status(self) -> Dict[str, int]:
        ...

    def ping(self) -> bool:
        ...


class HistoricalQueryService(Protocol):
    """R: Read-only access to upstream quotes/RFQs for baselines."""

    def query_historical_prices(
        self,
        aircraft_class: str,
        route: str,
        *,
        since: datetime,
        limit: int,
        exclude_quote_id: Optional[str] = None,
    ) -> List[float]:
        ...

    def query_request_created_at(self, request_id: str) -> Optional[datetime]:
        """R: Creation time of the originating request (None if unknown)."""
        ...

    def query_open_requests(
        self,
        aircraft_class: str,
        *,
        departure_from: datetime,
        departure_to: datetime,
        limit: int,
    ) -> List[OpenRequest]:
        ...


class ComplianceRepository(Protocol):
    """
    R: Interface for findings and tasks (owned exclusively by the engine).

    Append-only: there is no update or delete.
    """

    def insert_findings(self, findings: List[Finding]) -> List[Finding]:
        """R: Persist findings; returns them with id/created_at assigned."""
        ...

    def insert_tasks(self, tasks: List[Task]) -> List[Task]:
        """R: Persist tasks; returns them with id/created_at assigned."""
        ...

    def list_findings(
        self,
        *,
        severity: Optional[Severity] = None,
        event_id: Optional[UUID] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Finding]:
        ...

    def list_tasks(
        self,
        *,
        status: Optional[TaskStatus] = None,
        kind: Optional[TaskKind] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Task]:
        ...

    def count_findings_by_severity(self) -> Dict[str, int]:
        ...

    def count_tasks_by_status(self) -> Dict[str, int]:
        ...


class ActionLogRepository(Protocol):
    """R: Append-only operational log."""

    def append_action_log(
        self,
        action: str,
        target_type: str,
        target_id: Optional[str],
        details: Dict[str, Any],
    ) -> None:
        ...

    def list_entries(self, *, limit: int = 50) -> List[ActionLogEntry]:
        ...
