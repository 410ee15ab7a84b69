"""
===============================================================================
TARJETA CRC - crosscutting/metrics.py (Prometheus)
===============================================================================

Responsabilidades:
  - Declarar las métricas del motor en un CollectorRegistry propio.
  - Ofrecer funciones record_* para que API, dispatcher y rules engine
    no importen prometheus_client directamente.
  - Servir el payload de GET /metrics.

Colaboradores:
  - crosscutting.middleware (HTTP)
  - application.usecases.dispatch_pending_events (eventos, findings, tasks)
  - application.rules_engine (errores por detector)

Notas:
  - Labels de baja cardinalidad: nunca IDs de eventos, quotes o usuarios.
===============================================================================
"""

from __future__ import annotations

import re
from typing import Iterable

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

HTTP_REQUESTS = Counter(
    "compliance_http_requests_total",
    "Requests HTTP por endpoint normalizado y clase de status",
    ["endpoint", "method", "status"],
    registry=REGISTRY,
)
HTTP_LATENCY = Histogram(
    "compliance_http_request_seconds",
    "Latencia de requests HTTP",
    ["endpoint", "method"],
    registry=REGISTRY,
)

EVENTS = Counter(
    "compliance_events_total",
    "Eventos tocados por el dispatcher (processed | skipped | failed)",
    ["outcome"],
    registry=REGISTRY,
)
FINDINGS = Counter(
    "compliance_findings_total",
    "Findings persistidos",
    ["severity"],
    registry=REGISTRY,
)
TASKS = Counter(
    "compliance_tasks_total",
    "Tasks persistidas",
    ["kind"],
    registry=REGISTRY,
)
STALE_CLAIMS_RELEASED = Counter(
    "compliance_stale_claims_released_total",
    "Eventos in_progress devueltos a pending por timeout de claim",
    registry=REGISTRY,
)
DISPATCH_SECONDS = Histogram(
    "compliance_dispatch_seconds",
    "Duración de una corrida completa del dispatcher",
    buckets=(0.1, 0.5, 1, 2.5, 5, 10, 30, 60, 120),
    registry=REGISTRY,
)
DETECTOR_ERRORS = Counter(
    "compliance_detector_errors_total",
    "Excepciones aisladas por el rules engine",
    ["detector"],
    registry=REGISTRY,
)

_UUID_SEGMENT = re.compile(
    r"/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}(?=/|$)",
    re.IGNORECASE,
)
_NUMERIC_SEGMENT = re.compile(r"/\d+(?=/|$)")


def _normalize_endpoint(path: str) -> str:
    return _NUMERIC_SEGMENT.sub("/{id}", _UUID_SEGMENT.sub("/{id}", path))


def _status_bucket(code: int) -> str:
    klass = code // 100
    return f"{klass}xx" if klass in (2, 4, 5) else "other"


def record_request_metrics(
    endpoint: str, method: str, status_code: int, latency_seconds: float
) -> None:
    endpoint = _normalize_endpoint(endpoint)
    HTTP_REQUESTS.labels(endpoint, method, _status_bucket(status_code)).inc()
    HTTP_LATENCY.labels(endpoint, method).observe(latency_seconds)


def record_event_outcome(outcome: str) -> None:
    EVENTS.labels(outcome).inc()


def record_findings(severities: Iterable[str]) -> None:
    for severity in severities:
        FINDINGS.labels(severity).inc()


def record_tasks(kinds: Iterable[str]) -> None:
    for kind in kinds:
        TASKS.labels(kind).inc()


def record_detector_error(detector: str) -> None:
    DETECTOR_ERRORS.labels(detector).inc()


def record_stale_claims_released(count: int) -> None:
    if count > 0:
        STALE_CLAIMS_RELEASED.inc(count)


def observe_dispatch_duration(duration_seconds: float) -> None:
    DISPATCH_SECONDS.observe(duration_seconds)


def get_metrics_response() -> tuple[bytes, str]:
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
