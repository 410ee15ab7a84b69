"""
===============================================================================
DETECTOR: Empty-Leg Opportunity
===============================================================================

Qué es:
    Cuando cambia la disponibilidad de una aeronave, busca RFQs abiertos de
    la misma clase que salen dentro de la ventana configurada y propone el
    más cercano (distancia great-circle, millas náuticas) si está dentro del
    radio máximo. Es una oportunidad comercial, no un riesgo: severidad `info`.

Notas:
    - RFQs sin coordenadas de origen se ignoran.
    - Sin posición actual de la aeronave no hay heurística posible: error de
      payload (queda visible como finding de error).
===============================================================================
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional, Tuple

from ...domain.entities import (
    Event,
    EventType,
    Finding,
    OpenRequest,
    Severity,
    Task,
    TaskKind,
)
from ...domain.repositories import HistoricalQueryService
from .base import DetectorConfig, DetectorOutcome, optional_id, require_number

LABEL = "Empty Leg Opportunity Detected"

EARTH_RADIUS_NM = 3440.065


def haversine_nm(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distancia great-circle entre dos puntos (grados) en millas náuticas."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_NM * math.asin(min(1.0, math.sqrt(a)))


class EmptyLegDetector:
    detector_id = "empty_leg"
    event_types = (EventType.AIRCRAFT_AVAILABILITY_UPDATED.value,)

    def __init__(
        self,
        historical: HistoricalQueryService,
        config: DetectorConfig | None = None,
    ) -> None:
        self._historical = historical
        self._config = config or DetectorConfig()

    def applies_to(self, event: Event) -> bool:
        return bool(event.payload.get("aircraft_class"))

    def evaluate(self, event: Event, *, now: datetime) -> DetectorOutcome:
        cfg = self._config
        payload = event.payload

        lat = require_number(payload, "current_lat")
        lon = require_number(payload, "current_lon")
        aircraft_class = str(payload["aircraft_class"])

        candidates = self._historical.query_open_requests(
            aircraft_class,
            departure_from=now,
            departure_to=now + timedelta(hours=cfg.empty_leg_window_hours),
            limit=cfg.empty_leg_candidate_limit,
        )

        best = self._closest(lat, lon, candidates)
        if best is None:
            return DetectorOutcome.empty()

        request, distance_nm = best
        if distance_nm > cfg.empty_leg_max_distance_nm:
            return DetectorOutcome.empty()

        aircraft_id = optional_id(payload, "aircraft_id")
        current_location = payload.get("current_location") or f"{lat:.4f},{lon:.4f}"
        timeframe_hours = round((request.departure_at - now).total_seconds() / 3600, 1)

        opportunity = {
            "request_id": request.id,
            "origin": request.origin,
            "destination": request.destination,
            "departure_at": request.departure_at.isoformat(),
            "distance_nm": round(distance_nm, 1),
        }

        finding = Finding(
            event_id=event.id,
            severity=Severity.INFO,
            label=LABEL,
            details={
                "aircraft_id": aircraft_id,
                "request_id": request.id,
                "route": f"{current_location} to {request.origin}",
                "distance_nm": round(distance_nm, 1),
                "timeframe_hours": timeframe_hours,
            },
            linked_object_type="aircraft",
            linked_object_id=aircraft_id,
        )
        task = Task(
            kind=TaskKind.ROUTE,
            summary="Route empty leg opportunity",
            suggested_action={
                "action": "notify_operators",
                "aircraft_id": aircraft_id,
                "opportunity": opportunity,
            },
            event_id=event.id,
            assignee=cfg.default_assignee,
        )
        return DetectorOutcome(findings=(finding,), tasks=(task,))

    @staticmethod
    def _closest(
        lat: float, lon: float, candidates: list[OpenRequest]
    ) -> Optional[Tuple[OpenRequest, float]]:
        best: Optional[Tuple[OpenRequest, float]] = None
        for request in candidates:
            if not request.has_coordinates:
                continue
            distance = haversine_nm(lat, lon, request.origin_lat, request.origin_lon)
            # Empate de distancia: gana la salida más próxima.
            if (
                best is None
                or distance < best[1]
                or (distance == best[1] and request.departure_at < best[0].departure_at)
            ):
                best = (request, distance)
        return best
