"""
===============================================================================
USE CASE: Dispatch Pending Events (Batch Dispatcher)
===============================================================================

Name:
    Dispatch Pending Events Use Case

Business Goal:
    Consumir un batch acotado de eventos pendientes y, para cada uno en orden
    ascendente de occurred_at:
      - reservarlo (claim atómico pending -> in_progress)
      - evaluarlo con el RulesEngine
      - persistir findings y tasks
      - marcarlo processed
      - registrar la acción en el action log

Why (Context / Intención):
    - Puede haber más de una invocación simultánea (cron + corrida manual).
      El claim condicional evita el doble procesamiento.
    - Una corrida que muere deja claims colgados: al arrancar se devuelven
      a pending los claims más viejos que claim_timeout.
    - La única política de reintento es la próxima corrida: una falla de
      persistencia libera el evento (in_progress -> pending) y el batch sigue.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    DispatchPendingEventsUseCase

Responsibilities:
    - Liberar claims vencidos y leer el batch (falla => EventFetchError, fatal).
    - Procesar eventos secuencialmente con aislamiento por evento.
    - Contabilizar processed / skipped / failed / findings / tasks.
    - Emitir métricas por resultado.

Collaborators:
    - EventStore: release_stale_claims, fetch_pending_events, claim_event,
      holds_claim, update_event_status
    - RulesEngine: evaluate(event)
    - ComplianceRepository: insert_findings, insert_tasks
    - ActionLogRepository: append_action_log (best-effort)

Limitación conocida:
    Las escrituras (findings, tasks, status) no son una transacción. Si falla
    un paso posterior a insert_findings, la siguiente corrida vuelve a
    evaluar el evento y puede duplicar esos findings (como máximo un set
    duplicado por intento fallido).
    El claimed_at del claim funciona como token: una corrida que perdió su
    reserva por reclaim no escribe, no finaliza y no libera la reserva ajena.
===============================================================================
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Final, Optional

from ...context import set_event_context
from ...crosscutting.exceptions import EventFetchError, PersistenceError
from ...crosscutting.logger import logger
from ...crosscutting.metrics import (
    observe_dispatch_duration,
    record_event_outcome,
    record_findings,
    record_stale_claims_released,
    record_tasks,
)
from ...domain.entities import Event, EventStatus
from ...domain.repositories import (
    ActionLogRepository,
    ComplianceRepository,
    EventStore,
)
from ...domain.services import Clock, utc_now
from ..rules_engine import RulesEngine

OUTCOME_PROCESSED: Final[str] = "processed"
OUTCOME_SKIPPED: Final[str] = "skipped"
OUTCOME_FAILED: Final[str] = "failed"

ACTION_PROCESS_EVENT: Final[str] = "process_event"
ACTION_PROCESS_EVENT_ERROR: Final[str] = "process_event_error"

MESSAGE_EMPTY_BATCH: Final[str] = "No pending events to process"


@dataclass(frozen=True)
class DispatchPendingEventsInput:
    """limit=None => batch size por defecto."""

    limit: Optional[int] = None


@dataclass(frozen=True)
class DispatchSummary:
    """
    Resumen de la corrida (contrato de la invocación).

    processed: eventos finalizados en esta corrida
    skipped:   eventos que otro dispatcher reservó primero (o que esta
               corrida perdió por reclaim durante la evaluación)
    failed:    eventos liberados por falla de persistencia
    """

    message: str
    processed: int
    findings_created: int
    tasks_created: int
    timestamp: datetime
    fetched: int = 0
    skipped: int = 0
    failed: int = 0
    released_claims: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "processed": self.processed,
            "findings_created": self.findings_created,
            "tasks_created": self.tasks_created,
            "timestamp": self.timestamp.isoformat(),
            "fetched": self.fetched,
            "skipped": self.skipped,
            "failed": self.failed,
            "released_claims": self.released_claims,
        }


@dataclass
class _EventResult:
    outcome: str
    findings: int = 0
    tasks: int = 0


class DispatchPendingEventsUseCase:
    """
    Use Case (Application Service / Batch Command):
        Drena un batch de eventos pendientes a través del RulesEngine.
    """

    def __init__(
        self,
        events: EventStore,
        engine: RulesEngine,
        compliance: ComplianceRepository,
        action_log: ActionLogRepository,
        *,
        batch_size: int = 50,
        max_batch_size: int = 500,
        claim_timeout: timedelta = timedelta(seconds=900),
        clock: Clock = utc_now,
    ) -> None:
        self._events = events
        self._engine = engine
        self._compliance = compliance
        self._action_log = action_log
        self._batch_size = batch_size
        self._max_batch_size = max_batch_size
        self._claim_timeout = claim_timeout
        self._clock = clock

    def execute(
        self, input_data: DispatchPendingEventsInput | None = None
    ) -> DispatchSummary:
        input_data = input_data or DispatchPendingEventsInput()
        limit = self._resolve_limit(input_data.limit)
        started = time.perf_counter()

        # ---------------------------------------------------------------------
        # 1) Reclaim + fetch. Cualquier falla acá aborta la corrida.
        # ---------------------------------------------------------------------
        try:
            released = self._events.release_stale_claims(
                older_than=self._clock() - self._claim_timeout
            )
            batch = self._events.fetch_pending_events(limit)
        except Exception as exc:
            logger.exception(
                "Dispatcher: no se pudo leer el batch de eventos",
                extra={"limit": limit, "error": str(exc)},
            )
            raise EventFetchError("Failed to fetch events", original_error=exc) from exc

        record_stale_claims_released(released)
        if released:
            logger.warning(
                "Dispatcher: claims vencidos devueltos a pending",
                extra={"released": released},
            )

        if not batch:
            observe_dispatch_duration(time.perf_counter() - started)
            return DispatchSummary(
                message=MESSAGE_EMPTY_BATCH,
                processed=0,
                findings_created=0,
                tasks_created=0,
                timestamp=self._clock(),
                released_claims=released,
            )

        # ---------------------------------------------------------------------
        # 2) Procesamiento secuencial (orden occurred_at ASC del store).
        # ---------------------------------------------------------------------
        processed = skipped = failed = findings_created = tasks_created = 0
        for event in batch:
            set_event_context(str(event.id))
            try:
                result = self._process_event(event)
            finally:
                set_event_context("")

            record_event_outcome(result.outcome)
            if result.outcome == OUTCOME_PROCESSED:
                processed += 1
                findings_created += result.findings
                tasks_created += result.tasks
            elif result.outcome == OUTCOME_SKIPPED:
                skipped += 1
            else:
                failed += 1

        summary = DispatchSummary(
            message=f"Processed {processed} events",
            processed=processed,
            findings_created=findings_created,
            tasks_created=tasks_created,
            timestamp=self._clock(),
            fetched=len(batch),
            skipped=skipped,
            failed=failed,
            released_claims=released,
        )

        duration = time.perf_counter() - started
        observe_dispatch_duration(duration)
        logger.info(
            "Dispatcher: corrida finalizada",
            extra={
                "fetched": summary.fetched,
                "processed": summary.processed,
                "skipped": summary.skipped,
                "failed": summary.failed,
                "findings_created": summary.findings_created,
                "tasks_created": summary.tasks_created,
                "duration_seconds": round(duration, 3),
            },
        )
        return summary

    # -------------------------------------------------------------------------
    # Helpers internos
    # -------------------------------------------------------------------------
    def _resolve_limit(self, requested: Optional[int]) -> int:
        if requested is None:
            return self._batch_size
        if requested <= 0:
            raise ValueError("limit must be greater than 0")
        return min(requested, self._max_batch_size)

    def _process_event(self, event: Event) -> _EventResult:
        # Lock lógico: solo un dispatcher gana el claim. claimed_at es el token
        # de la reserva para finalizar o liberar.
        claim_token = self._clock()
        try:
            claimed = self._events.claim_event(event.id, claimed_at=claim_token)
        except Exception as exc:
            logger.exception(
                "Dispatcher: claim falló",
                extra={"event_type": event.type, "error": str(exc)},
            )
            self._append_action_log_safely(
                ACTION_PROCESS_EVENT_ERROR,
                event,
                {"error": str(exc), "event_type": event.type, "stage": "claim"},
            )
            return _EventResult(OUTCOME_FAILED)

        if not claimed:
            logger.info(
                "Dispatcher: evento reservado por otra corrida",
                extra={"event_type": event.type},
            )
            return _EventResult(OUTCOME_SKIPPED)

        # A partir de acá el evento está "reservado" para esta corrida.
        try:
            result = self._engine.evaluate(event)

            # Una evaluación más larga que claim_timeout pudo perder la reserva
            # frente al reclaim de otra corrida: no escribir nada.
            if not self._events.holds_claim(event.id, claimed_at=claim_token):
                logger.warning(
                    "Dispatcher: claim perdido durante la evaluación; se descarta",
                    extra={"event_type": event.type},
                )
                return _EventResult(OUTCOME_SKIPPED)

            findings = list(result.findings)
            tasks = list(result.tasks)
            if findings:
                self._compliance.insert_findings(findings)
            if tasks:
                self._compliance.insert_tasks(tasks)

            finalized = self._events.update_event_status(
                event.id,
                from_statuses=[EventStatus.IN_PROGRESS],
                to_status=EventStatus.PROCESSED,
                processed_at=self._clock(),
                claimed_at=claim_token,
            )
            if not finalized:
                raise PersistenceError("Event claim lost before finalization")

        except Exception as exc:
            logger.exception(
                "Dispatcher: falla procesando evento; se libera para reintento",
                extra={"event_type": event.type, "error": str(exc)},
            )
            self._release(event, claim_token)
            self._append_action_log_safely(
                ACTION_PROCESS_EVENT_ERROR,
                event,
                {"error": str(exc), "event_type": event.type},
            )
            return _EventResult(OUTCOME_FAILED)

        record_findings([f.severity.value for f in findings])
        record_tasks([t.kind.value for t in tasks])

        highest = result.highest_severity
        self._append_action_log_safely(
            ACTION_PROCESS_EVENT,
            event,
            {
                "event_type": event.type,
                "findings_count": len(findings),
                "tasks_count": len(tasks),
                "highest_severity": highest.value if highest else None,
                "detector_errors": list(result.detector_errors),
            },
        )
        return _EventResult(OUTCOME_PROCESSED, len(findings), len(tasks))

    def _release(self, event: Event, claim_token: datetime) -> None:
        """
        in_progress -> pending solo si la reserva sigue siendo nuestra.

        Si también falla, lo recupera el reclaim.
        """
        try:
            self._events.update_event_status(
                event.id,
                from_statuses=[EventStatus.IN_PROGRESS],
                to_status=EventStatus.PENDING,
                claimed_at=claim_token,
            )
        except Exception as exc:
            logger.exception(
                "Dispatcher: no se pudo liberar el evento",
                extra={"event_type": event.type, "error": str(exc)},
            )

    def _append_action_log_safely(
        self, action: str, event: Event, details: Dict[str, Any]
    ) -> None:
        try:
            self._action_log.append_action_log(action, "event", str(event.id), details)
        except Exception as exc:
            logger.exception(
                "Dispatcher: no se pudo escribir el action log",
                extra={"action": action, "error": str(exc)},
            )
