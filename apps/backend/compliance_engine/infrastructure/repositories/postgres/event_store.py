"""
============================================================
TARJETA CRC - infrastructure/repositories/postgres/event_store.py
============================================================
Class: PostgresEventStore

Responsibilities:
  - Leer eventos pendientes de event_bus en orden (occurred_at, id).
  - Implementar el claim-queue con UPDATE condicional:
      pending -> in_progress (claim)
      in_progress -> processed | pending (finalización / release)
  - Usar claimed_at como token del claim: finalizar o liberar solo si la
    reserva sigue siendo la de quien la pidió.
  - Devolver a pending los claims vencidos.

Collaborators:
  - domain.entities.Event / EventStatus
  - PostgresRepositoryBase (pool + errores)

Constraints / Notes:
  - Las transiciones retornan rowcount > 0: False significa que otro
    dispatcher cambió el estado antes (optimistic).
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from ....domain.entities import Event, EventStatus, ensure_transitions
from .base import PostgresRepositoryBase

_EVENT_COLUMNS = (
    "id, type, actor_user_id, payload, occurred_at, status, claimed_at, processed_at"
)


class PostgresEventStore(PostgresRepositoryBase):
    """Event store PostgreSQL (tabla event_bus)."""

    def fetch_pending_events(self, limit: int) -> List[Event]:
        if limit <= 0:
            return []

        rows = self._fetchall(
            query=f"""
                SELECT {_EVENT_COLUMNS}
                FROM event_bus
                WHERE status = %s
                ORDER BY occurred_at ASC, id ASC
                LIMIT %s
            """,
            params=[EventStatus.PENDING.value, limit],
            error_message="PostgresEventStore: Failed to fetch pending events",
            extra={"limit": limit},
        )
        return [self._row_to_event(row) for row in rows]

    def claim_event(self, event_id: UUID, *, claimed_at: datetime) -> bool:
        updated = self._execute(
            query="""
                UPDATE event_bus
                SET status = %s, claimed_at = %s
                WHERE id = %s AND status = %s
            """,
            params=[
                EventStatus.IN_PROGRESS.value,
                claimed_at,
                event_id,
                EventStatus.PENDING.value,
            ],
            error_message="PostgresEventStore: Failed to claim event",
            extra={"event_id": str(event_id)},
        )
        return updated > 0

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
        Transición de estado condicional (optimistic).

        - Volver a pending limpia claimed_at.
        - processed_at solo se escribe si viene informado.
        - claimed_at actúa como token: si viene, la fila debe seguir
          reservada con ese mismo valor (el claim no fue reasignado).
        """
        ensure_transitions(from_statuses, to_status)
        if not from_statuses:
            return False

        to_value = EventStatus(to_status).value
        params: List[object] = [
            to_value,
            processed_at,
            to_value,
            event_id,
            [EventStatus(s).value for s in from_statuses],
        ]
        claim_filter = ""
        if claimed_at is not None:
            claim_filter = "AND claimed_at = %s"
            params.append(claimed_at)

        updated = self._execute(
            query=f"""
                UPDATE event_bus
                SET status = %s,
                    processed_at = COALESCE(%s, processed_at),
                    claimed_at = CASE WHEN %s = 'pending' THEN NULL ELSE claimed_at END
                WHERE id = %s AND status = ANY(%s) {claim_filter}
            """,
            params=params,
            error_message="PostgresEventStore: Failed to update event status",
            extra={"event_id": str(event_id), "to_status": to_value},
        )
        return updated > 0

    def holds_claim(self, event_id: UUID, *, claimed_at: datetime) -> bool:
        rows = self._fetchall(
            query="""
                SELECT 1
                FROM event_bus
                WHERE id = %s AND status = %s AND claimed_at = %s
            """,
            params=[event_id, EventStatus.IN_PROGRESS.value, claimed_at],
            error_message="PostgresEventStore: Failed to check claim",
            extra={"event_id": str(event_id)},
        )
        return bool(rows)

    def release_stale_claims(self, *, older_than: datetime) -> int:
        return self._execute(
            query="""
                UPDATE event_bus
                SET status = %s, claimed_at = NULL
                WHERE status = %s AND claimed_at < %s
            """,
            params=[
                EventStatus.PENDING.value,
                EventStatus.IN_PROGRESS.value,
                older_than,
            ],
            error_message="PostgresEventStore: Failed to release stale claims",
            extra={"older_than": older_than.isoformat()},
        )

    def count_by_status(self) -> Dict[str, int]:
        rows = self._fetchall(
            query="SELECT status, COUNT(*) FROM event_bus GROUP BY status",
            params=[],
            error_message="PostgresEventStore: Failed to count events",
        )
        return {status: int(count) for status, count in rows}

    def ping(self) -> bool:
        rows = self._fetchall(
            query="SELECT 1",
            params=[],
            error_message="PostgresEventStore: ping failed",
        )
        return bool(rows)

    @staticmethod
    def _row_to_event(row: tuple) -> Event:
        (
            event_id,
            event_type,
            actor_user_id,
            payload,
            occurred_at,
            status,
            claimed_at,
            processed_at,
        ) = row
        return Event(
            id=event_id,
            type=event_type,
            actor_user_id=str(actor_user_id) if actor_user_id is not None else None,
            payload=payload or {},
            occurred_at=occurred_at,
            status=EventStatus(status),
            claimed_at=claimed_at,
            processed_at=processed_at,
        )
