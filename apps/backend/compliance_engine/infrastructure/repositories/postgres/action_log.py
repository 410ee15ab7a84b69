"""
============================================================
TARJETA CRC - infrastructure/repositories/postgres/action_log.py
============================================================
Class: PostgresActionLogRepository

Responsibilities:
  - Registrar cada decisión del dispatcher en action_log (append-only).
  - Listar las últimas entradas (debug / soporte).

Collaborators:
  - domain.entities.ActionLogEntry
  - psycopg.types.json.Json
  - PostgresRepositoryBase
============================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from psycopg.types.json import Json

from ....domain.entities import ActionLogEntry
from .base import PostgresRepositoryBase


class PostgresActionLogRepository(PostgresRepositoryBase):
    def append_action_log(
        self,
        action: str,
        target_type: str,
        target_id: Optional[str],
        details: Dict[str, Any],
    ) -> None:
        self._execute(
            query="""
                INSERT INTO action_log
                    (id, action, target_type, target_id, details, created_at)
                VALUES (%s, %s, %s, %s, %s, %s)
            """,
            params=[
                uuid4(),
                action,
                target_type,
                target_id,
                Json(details or {}),
                datetime.now(timezone.utc),
            ],
            error_message="PostgresActionLogRepository: Failed to append action log",
            extra={"action": action, "target_id": target_id},
        )

    def list_entries(self, *, limit: int = 50) -> List[ActionLogEntry]:
        if limit <= 0:
            return []

        rows = self._fetchall(
            query="""
                SELECT id, action, target_type, target_id, details, created_at
                FROM action_log
                ORDER BY created_at DESC, id DESC
                LIMIT %s
            """,
            params=[limit],
            error_message="PostgresActionLogRepository: Failed to list entries",
            extra={"limit": limit},
        )
        return [
            ActionLogEntry(
                id=entry_id,
                action=action,
                target_type=target_type,
                target_id=target_id,
                details=details or {},
                created_at=created_at,
            )
            for entry_id, action, target_type, target_id, details, created_at in rows
        ]
