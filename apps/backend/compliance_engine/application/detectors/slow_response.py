"""
DETECTOR: Slow-Response / SLA Breach

Mide las horas entre la creación del RFQ y la cotización del operador.
Si superan el SLA emite un finding `warn` (métrica de calidad, sin task).
"""

from __future__ import annotations

from datetime import datetime, timezone

from ...domain.entities import Event, EventType, Finding, Severity
from ...domain.repositories import HistoricalQueryService
from .base import DetectorConfig, DetectorOutcome, InvalidPayloadError, optional_id

LABEL = "Slow Operator Response"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(raw: object, *, field_name: str) -> datetime:
    """ISO-8601 (acepta sufijo Z). Naive => UTC."""
    if isinstance(raw, datetime):
        return _as_utc(raw)
    if not isinstance(raw, str):
        raise InvalidPayloadError(field_name, "must be an ISO-8601 timestamp")
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError as exc:
        raise InvalidPayloadError(field_name, f"is not ISO-8601: {raw!r}") from exc


class SlowResponseDetector:
    detector_id = "slow_response"
    event_types = (EventType.QUOTE_SUBMITTED.value,)

    def __init__(
        self,
        historical: HistoricalQueryService,
        config: DetectorConfig | None = None,
    ) -> None:
        self._historical = historical
        self._config = config or DetectorConfig()

    def applies_to(self, event: Event) -> bool:
        return bool(event.payload.get("rfq_id"))

    def evaluate(self, event: Event, *, now: datetime) -> DetectorOutcome:
        payload = event.payload
        request_id = str(payload["rfq_id"])

        requested_at = self._historical.query_request_created_at(request_id)
        if requested_at is None:
            return DetectorOutcome.empty()

        raw_quoted_at = payload.get("created_at")
        quoted_at = (
            parse_timestamp(raw_quoted_at, field_name="created_at")
            if raw_quoted_at
            else _as_utc(event.occurred_at)
        )

        elapsed_hours = (quoted_at - _as_utc(requested_at)).total_seconds() / 3600
        if elapsed_hours <= self._config.sla_response_hours:
            return DetectorOutcome.empty()

        operator_id = optional_id(payload, "operator_id") or event.actor_user_id

        finding = Finding(
            event_id=event.id,
            severity=Severity.WARN,
            label=LABEL,
            details={
                "operator_id": operator_id,
                "request_id": request_id,
                "response_time_hours": round(elapsed_hours, 2),
                "sla_threshold_hours": self._config.sla_response_hours,
            },
            linked_object_type="operator",
            linked_object_id=operator_id,
        )
        return DetectorOutcome(findings=(finding,))
