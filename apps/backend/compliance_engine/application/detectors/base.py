"""
===============================================================================
POLICY: Detector Contract (Strategy)
===============================================================================

Name:
    Detector base types

Qué es:
    Contrato común de todos los detectores del motor de compliance.
    Cada detector es una estrategia: un predicado (applies_to) y una función
    de evaluación que mapea un evento a findings/tasks.

Patrones:
    - Strategy: un detector por familia de reglas.
    - Registry: los detectores se registran por tipo de evento
      (ver registry.py), la orquestación no cambia al agregar reglas.

CRC (Component Card):
    Component: detectors.base
    Responsibilities:
      - Definir Detector (Protocol), DetectorOutcome y DetectorConfig
      - Proveer helpers de lectura de payload con errores explícitos
    Collaborators:
      - rules_engine.RulesEngine (consume DetectorOutcome)
      - domain.entities (Event, Finding, Task)
    Constraints:
      - Detectores deterministas: misma entrada + mismo `now` => mismo resultado
      - Payload inválido => excepción (el RulesEngine la convierte en finding)
===============================================================================
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Protocol, Tuple

from ...domain.entities import Event, Finding, Task


class InvalidPayloadError(ValueError):
    """Campo faltante o con tipo inesperado en el payload de un evento."""

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        super().__init__(f"payload.{field_name} {reason}")


@dataclass(frozen=True, slots=True)
class DetectorOutcome:
    """Resultado inmutable de un detector (puede ser vacío)."""

    findings: Tuple[Finding, ...] = ()
    tasks: Tuple[Task, ...] = ()

    @classmethod
    def empty(cls) -> "DetectorOutcome":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.findings and not self.tasks


@dataclass(frozen=True, slots=True)
class DetectorConfig:
    """
    Umbrales de los detectores.

    Los defaults coinciden con Settings; el container los sobreescribe desde env.
    """

    default_assignee: str = "admin"
    contact_excerpt_chars: int = 100
    price_window_days: int = 30
    price_sample_limit: int = 100
    price_min_samples: int = 10
    price_outlier_threshold: float = 2.0
    price_critical_threshold: float = 3.0
    sanctions_due_hours: int = 24
    empty_leg_window_hours: int = 72
    empty_leg_max_distance_nm: float = 300.0
    empty_leg_candidate_limit: int = 10
    sla_response_hours: float = 24.0


class Detector(Protocol):
    """
    Contrato de un detector.

    detector_id:
        slug estable (métricas, logs, details del finding de error)
    event_types:
        tipos de evento bajo los que se registra
    """

    detector_id: str
    event_types: Tuple[str, ...]

    def applies_to(self, event: Event) -> bool:
        ...

    def evaluate(self, event: Event, *, now: datetime) -> DetectorOutcome:
        ...


# -----------------------------------------------------------------------------
# Helpers de payload
# -----------------------------------------------------------------------------
def require_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        raise InvalidPayloadError(key, "is required")
    if not isinstance(value, str):
        raise InvalidPayloadError(key, f"must be a string, got {type(value).__name__}")
    if not value.strip():
        raise InvalidPayloadError(key, "must not be empty")
    return value


def require_number(payload: Mapping[str, Any], key: str) -> float:
    """
    Lee un número finito.

    Acepta int/float y strings numéricos ("4500.00"); rechaza bool, NaN e inf.
    """
    value = payload.get(key)
    if value is None:
        raise InvalidPayloadError(key, "is required")
    if isinstance(value, bool):
        raise InvalidPayloadError(key, "must be numeric, got bool")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError as exc:
            raise InvalidPayloadError(key, f"must be numeric, got {value!r}") from exc
    else:
        raise InvalidPayloadError(key, f"must be numeric, got {type(value).__name__}")

    if not math.isfinite(number):
        raise InvalidPayloadError(key, "must be a finite number")
    return number


def optional_id(payload: Mapping[str, Any], key: str) -> str | None:
    """IDs de objetos enlazados: se normalizan a string (None si faltan)."""
    value = payload.get(key)
    if value is None or value == "":
        return None
    return str(value)
