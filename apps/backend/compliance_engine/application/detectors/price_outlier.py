"""
===============================================================================
DETECTOR: Price Outlier
===============================================================================

Qué es:
    Compara el precio de una cotización (`quote.submitted`) contra la
    mediana de cotizaciones recientes de la misma clase de aeronave y ruta.

Procedimiento:
    1. Baseline: precios de los últimos `price_window_days` días, como máximo
       `price_sample_limit` muestras (excluye la propia cotización).
    2. Menos de `price_min_samples` muestras => sin detección.
    3. Mediana + desvío estándar poblacional.
    4. deviation = |price - median| / stddev
    5. deviation > outlier_threshold => finding; > critical_threshold => critical
       (con task de revisión), si no `warn` (solo visibilidad).

Caso borde:
    stddev == 0 (todas las muestras iguales): cualquier precio distinto de la
    mediana es `critical` con deviation=None y zero_variance=True.
===============================================================================
"""

from __future__ import annotations

import statistics
from datetime import datetime, timedelta

from ...domain.entities import (
    Event,
    EventType,
    Finding,
    Severity,
    Task,
    TaskKind,
)
from ...domain.repositories import HistoricalQueryService
from .base import (
    DetectorConfig,
    DetectorOutcome,
    optional_id,
    require_number,
    require_str,
)

LABEL = "Price Outlier Detected"


class PriceOutlierDetector:
    detector_id = "price_outlier"
    event_types = (EventType.QUOTE_SUBMITTED.value,)

    def __init__(
        self,
        historical: HistoricalQueryService,
        config: DetectorConfig | None = None,
    ) -> None:
        self._historical = historical
        self._config = config or DetectorConfig()

    def applies_to(self, event: Event) -> bool:
        return event.payload.get("price") is not None

    def evaluate(self, event: Event, *, now: datetime) -> DetectorOutcome:
        cfg = self._config
        payload = event.payload

        price = require_number(payload, "price")
        aircraft_class = require_str(payload, "aircraft_class")
        route = require_str(payload, "route")
        quote_id = optional_id(payload, "quote_id")

        samples = self._historical.query_historical_prices(
            aircraft_class,
            route,
            since=now - timedelta(days=cfg.price_window_days),
            limit=cfg.price_sample_limit,
            exclude_quote_id=quote_id,
        )
        if len(samples) < cfg.price_min_samples:
            return DetectorOutcome.empty()

        median = statistics.median(samples)
        stddev = statistics.pstdev(samples)

        details = {
            "quote_price": price,
            "median_price": median,
            "sample_size": len(samples),
            "aircraft_class": aircraft_class,
            "route": route,
        }

        if stddev == 0:
            if price == median:
                return DetectorOutcome.empty()
            severity = Severity.CRITICAL
            details.update({"deviation": None, "zero_variance": True})
        else:
            deviation = abs(price - median) / stddev
            if deviation <= cfg.price_outlier_threshold:
                return DetectorOutcome.empty()
            severity = (
                Severity.CRITICAL
                if deviation > cfg.price_critical_threshold
                else Severity.WARN
            )
            details.update({"deviation": round(deviation, 4), "stddev": stddev})

        finding = Finding(
            event_id=event.id,
            severity=severity,
            label=LABEL,
            details=details,
            linked_object_type="quote",
            linked_object_id=quote_id,
        )

        # R: warn es solo visibilidad; únicamente critical genera trabajo humano.
        if severity is not Severity.CRITICAL:
            return DetectorOutcome(findings=(finding,))

        task = Task(
            kind=TaskKind.REVIEW,
            summary="Review critical price outlier",
            suggested_action={
                "action": "review_quote",
                "quote_id": quote_id,
                "reason": "critical_price_outlier",
            },
            event_id=event.id,
            assignee=cfg.default_assignee,
        )
        return DetectorOutcome(findings=(finding,), tasks=(task,))
