"""
In-Memory action log for testing and development.

NOT FOR PRODUCTION USE - data is lost on restart.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional
from uuid import uuid4

from ....domain.entities import ActionLogEntry


class InMemoryActionLogRepository:
    def __init__(self) -> None:
        self._entries: List[ActionLogEntry] = []
        self._lock = threading.Lock()

    def append_action_log(
        self,
        action: str,
        target_type: str,
        target_id: Optional[str],
        details: Dict[str, Any],
    ) -> None:
        entry = ActionLogEntry(
            id=uuid4(),
            action=action,
            target_type=target_type,
            target_id=target_id,
            details=dict(details or {}),
        )
        with self._lock:
            self._entries.append(entry)

    def list_entries(self, *, limit: int = 50) -> List[ActionLogEntry]:
        if limit <= 0:
            return []
        with self._lock:
            return list(reversed(self._entries))[:limit]
