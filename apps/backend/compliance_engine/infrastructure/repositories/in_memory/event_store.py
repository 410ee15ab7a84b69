# =============================================================================
# FILE: infrastructure/repositories/in_memory/event_store.py
# =============================================================================
"""
In-Memory Event Store for testing and development.

NOT FOR PRODUCTION USE - data is lost on restart.

Claim semantics mirror the PostgreSQL implementation: every transition is a
compare-and-set under a lock, so two dispatchers sharing one instance never
claim the same event. Finalize and release accept the claimed_at they were
claimed with and refuse to touch a claim someone else now holds.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from ....domain.entities import Event, EventStatus, ensure_transitions


class InMemoryEventStore:
    """
    In-memory implementation of EventStore.

    Useful for:
      - Unit testing the dispatcher (claims, releases, retries)
      - Local development without database
    """

    def __init__(self) -> None:
        self._events: Dict[UUID, Event] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------
    # Seeding helpers (tests / dev)
    # ------------------------------------------------------------
    def add_event(
        self,
        event_type: str,
        payload: Dict[str, Any],
        *,
        occurred_at: Optional[datetime] = None,
        actor_user_id: Optional[str] = None,
        event_id: Optional[UUID] = None,
        status: EventStatus = EventStatus.PENDING,
    ) -> Event:
        event = Event(
            id=event_id or uuid4(),
            type=event_type,
            payload=dict(payload),
            occurred_at=occurred_at or datetime.now(timezone.utc),
            actor_user_id=actor_user_id,
            status=status,
        )
        with self._lock:
            self._events[event.id] = event
        return event

    def get(self, event_id: UUID) -> Optional[Event]:
        with self._lock:
            return self._events.get(event_id)

    # ------------------------------------------------------------
    # EventStore
    # ------------------------------------------------------------
    def fetch_pending_events(self, limit: int) -> List[Event]:
        if limit <= 0:
            return []
        with self._lock:
            pending = [
                e for e in self._events.values() if e.status == EventStatus.PENDING
            ]
        pending.sort(key=lambda e: (e.occurred_at, str(e.id)))
        return pending[:limit]

    def claim_event(self, event_id: UUID, *, claimed_at: datetime) -> bool:
        with self._lock:
            event = self._events.get(event_id)
            if event is None or event.status != EventStatus.PENDING:
                return False
            self._events[event_id] = replace(
                event, status=EventStatus.IN_PROGRESS, claimed_at=claimed_at
            )
            return True

    def update_event_status(
        self,
        event_id: UUID,
        *,
        from_statuses: List[EventStatus],
        to_status: EventStatus,
        processed_at: Optional[datetime] = None,
        claimed_at: Optional[datetime] = None,
    ) -> bool:
        ensure_transitions(from_statuses, to_status)
        allowed = {EventStatus(s) for s in from_statuses}
        target = EventStatus(to_status)
        with self._lock:
            event = self._events.get(event_id)
            if event is None or event.status not in allowed:
                return False
            if claimed_at is not None and event.claimed_at != claimed_at:
                return False
            self._events[event_id] = replace(
                event,
                status=target,
                processed_at=processed_at or event.processed_at,
                claimed_at=None if target == EventStatus.PENDING else event.claimed_at,
            )
            return True

    def holds_claim(self, event_id: UUID, *, claimed_at: datetime) -> bool:
        with self._lock:
            event = self._events.get(event_id)
            return (
                event is not None
                and event.status == EventStatus.IN_PROGRESS
                and event.claimed_at == claimed_at
            )

    def release_stale_claims(self, *, older_than: datetime) -> int:
        released = 0
        with self._lock:
            for event_id, event in list(self._events.items()):
                if (
                    event.status == EventStatus.IN_PROGRESS
                    and event.claimed_at is not None
                    and event.claimed_at < older_than
                ):
                    self._events[event_id] = replace(
                        event, status=EventStatus.PENDING, claimed_at=None
                    )
                    released += 1
        return released

    def count_by_status(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        with self._lock:
            for event in self._events.values():
                key = EventStatus(event.status).value
                counts[key] = counts.get(key, 0) + 1
        return counts

    def ping(self) -> bool:
        return True
