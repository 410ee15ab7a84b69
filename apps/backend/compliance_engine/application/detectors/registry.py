"""
===============================================================================
TARJETA CRC - application/detectors/registry.py
===============================================================================

Componente:
    DetectorRegistry

Responsabilidades:
    - Mapear tipo de evento -> detectores (orden de registro preservado).
    - Rechazar detector_id duplicados (fail-fast en el wiring).
    - Construir el set por defecto de detectores a partir de DetectorConfig.

Colaboradores:
    - rules_engine.RulesEngine (consulta detectors_for)
    - container.get_detector_registry (wiring)

Notas:
    - Agregar una regla = registrar un detector; RulesEngine no cambia.
===============================================================================
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, Iterable, List

from ...domain.repositories import HistoricalQueryService
from .base import Detector, DetectorConfig
from .contact_leak import ContactLeakDetector
from .empty_leg import EmptyLegDetector
from .price_outlier import PriceOutlierDetector
from .sanctions_match import SanctionsMatchDetector
from .slow_response import SlowResponseDetector


class DetectorRegistry:
    def __init__(self, detectors: Iterable[Detector] = ()) -> None:
        self._by_type: Dict[str, List[Detector]] = OrderedDict()
        self._ids: set[str] = set()
        for detector in detectors:
            self.register(detector)

    def register(self, detector: Detector) -> None:
        if detector.detector_id in self._ids:
            raise ValueError(f"Detector already registered: {detector.detector_id}")
        if not detector.event_types:
            raise ValueError(f"Detector {detector.detector_id} declares no event types")

        self._ids.add(detector.detector_id)
        for event_type in detector.event_types:
            self._by_type.setdefault(event_type, []).append(detector)

    def detectors_for(self, event_type: str) -> List[Detector]:
        """Detectores registrados para el tipo (copia defensiva)."""
        return list(self._by_type.get(event_type, ()))

    @property
    def event_types(self) -> List[str]:
        return list(self._by_type.keys())

    @property
    def detector_ids(self) -> List[str]:
        return sorted(self._ids)


def build_default_registry(
    *,
    historical: HistoricalQueryService,
    config: DetectorConfig | None = None,
) -> DetectorRegistry:
    """
    Set de detectores por defecto.

    Orden para quote.submitted: price_outlier antes que slow_response.
    """
    cfg = config or DetectorConfig()
    return DetectorRegistry(
        [
            ContactLeakDetector(cfg),
            PriceOutlierDetector(historical, cfg),
            SanctionsMatchDetector(cfg),
            EmptyLegDetector(historical, cfg),
            SlowResponseDetector(historical, cfg),
        ]
    )
