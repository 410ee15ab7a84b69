# =============================================================================
# FILE: application/rules_engine.py
# =============================================================================
"""
===============================================================================
SERVICE: Rules Engine (orquestación de detectores por evento)
===============================================================================

Name:
    RulesEngine

Contrato:
    evaluate(event) -> EvaluationResult(findings, tasks, detector_errors)

    - Ejecuta los detectores registrados para event.type, en orden.
    - Aislamiento por detector: si uno lanza, se captura, se convierte en UN
      finding `warn` "Event Processing Error" (error, event_type, detector) y
      se sigue con el resto. Nunca lanza al caller por fallas de detectores.
    - `now` sale de un reloj inyectable: mismo reloj => mismo resultado.

CRC (Component Card):
    Component: RulesEngine
    Responsibilities:
      - Resolver detectores aplicables (registry + predicado)
      - Aislar fallas por detector y degradarlas a findings visibles
      - Agregar findings/tasks en orden determinista
    Collaborators:
      - detectors.DetectorRegistry
      - domain.services.Clock
      - crosscutting.metrics.record_detector_error
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from ..crosscutting.logger import logger
from ..crosscutting.metrics import record_detector_error
from ..domain.entities import Event, Finding, Severity, Task, max_severity
from ..domain.services import Clock, utc_now
from .detectors.registry import DetectorRegistry

PROCESSING_ERROR_LABEL = "Event Processing Error"


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    findings: Tuple[Finding, ...] = ()
    tasks: Tuple[Task, ...] = ()
    detector_errors: Tuple[str, ...] = ()

    @property
    def highest_severity(self) -> Optional[Severity]:
        return max_severity(f.severity for f in self.findings)


def processing_error_finding(
    event: Event, error: BaseException, *, detector: str | None = None
) -> Finding:
    """Finding `warn` que documenta una falla de evaluación."""
    details = {
        "error": str(error) or type(error).__name__,
        "event_type": event.type,
    }
    if detector:
        details["detector"] = detector
    return Finding(
        event_id=event.id,
        severity=Severity.WARN,
        label=PROCESSING_ERROR_LABEL,
        details=details,
    )


class RulesEngine:
    def __init__(self, registry: DetectorRegistry, clock: Clock = utc_now) -> None:
        self._registry = registry
        self._clock = clock

    def evaluate(
        self, event: Event, *, now: datetime | None = None
    ) -> EvaluationResult:
        now = now or self._clock()

        findings: List[Finding] = []
        tasks: List[Task] = []
        errors: List[str] = []

        for detector in self._registry.detectors_for(event.type):
            try:
                if not detector.applies_to(event):
                    continue
                outcome = detector.evaluate(event, now=now)
            except Exception as exc:
                # R: aislamiento por detector; los hermanos siguen corriendo.
                logger.warning(
                    "Detector falló; se registra finding de error",
                    extra={
                        "detector": detector.detector_id,
                        "event_type": event.type,
                        "event_id": str(event.id),
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
                record_detector_error(detector.detector_id)
                errors.append(detector.detector_id)
                findings.append(
                    processing_error_finding(event, exc, detector=detector.detector_id)
                )
                continue

            findings.extend(outcome.findings)
            tasks.extend(outcome.tasks)

        return EvaluationResult(
            findings=tuple(findings),
            tasks=tuple(tasks),
            detector_errors=tuple(errors),
        )
