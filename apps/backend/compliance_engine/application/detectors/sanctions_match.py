"""
DETECTOR: Sanctions Match Handler

Re-emite matches de screening de sanciones con severidad high/critical como
finding ligado al usuario, y crea una task `alert` de suspensión con deadline
(`sanctions_due_hours` desde el momento de procesamiento).
"""

from __future__ import annotations

from datetime import datetime, timedelta

from ...domain.entities import (
    Event,
    EventType,
    Finding,
    Severity,
    Task,
    TaskKind,
)
from .base import DetectorConfig, DetectorOutcome, InvalidPayloadError, optional_id

LABEL = "Sanctions Match Detected"

_ACTIONABLE_SEVERITIES = {Severity.HIGH.value, Severity.CRITICAL.value}


class SanctionsMatchDetector:
    detector_id = "sanctions_match"
    event_types = (EventType.SANCTIONS_MATCH.value,)

    def __init__(self, config: DetectorConfig | None = None) -> None:
        self._config = config or DetectorConfig()

    def applies_to(self, event: Event) -> bool:
        return True

    def evaluate(self, event: Event, *, now: datetime) -> DetectorOutcome:
        payload = event.payload
        raw_severity = payload.get("severity")
        severity = str(raw_severity).strip().lower() if raw_severity is not None else ""
        if severity not in _ACTIONABLE_SEVERITIES:
            return DetectorOutcome.empty()

        user_id = optional_id(payload, "user_id") or event.actor_user_id
        if not user_id:
            raise InvalidPayloadError("user_id", "is required for actionable matches")

        finding = Finding(
            event_id=event.id,
            severity=Severity(severity),
            label=LABEL,
            details={
                "match_type": payload.get("match_type"),
                "confidence": payload.get("confidence"),
                "entity_name": payload.get("entity_name"),
            },
            linked_object_type="user",
            linked_object_id=user_id,
        )
        task = Task(
            kind=TaskKind.ALERT,
            summary="Handle sanctions match",
            suggested_action={
                "action": "suspend_user",
                "user_id": user_id,
                "reason": "sanctions_match",
            },
            event_id=event.id,
            due_at=now + timedelta(hours=self._config.sanctions_due_hours),
            assignee=self._config.default_assignee,
        )
        return DetectorOutcome(findings=(finding,), tasks=(task,))
