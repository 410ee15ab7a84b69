"""
Detector Set

One detector per rule family. Each maps an event (plus optional historical
context) to zero or more findings/tasks:

    contact_leak     message.sent                   high + review task
    price_outlier    quote.submitted                warn | critical (+ review task)
    sanctions_match  sanctions.match                high | critical + alert task (due)
    empty_leg        aircraft.availability.updated  info + route task
    slow_response    quote.submitted                warn
"""

from .base import (
    Detector,
    DetectorConfig,
    DetectorOutcome,
    InvalidPayloadError,
)
from .contact_leak import ContactLeakDetector
from .empty_leg import EmptyLegDetector, haversine_nm
from .price_outlier import PriceOutlierDetector
from .registry import DetectorRegistry, build_default_registry
from .sanctions_match import SanctionsMatchDetector
from .slow_response import SlowResponseDetector

__all__ = [
    "Detector",
    "DetectorConfig",
    "DetectorOutcome",
    "InvalidPayloadError",
    "DetectorRegistry",
    "build_default_registry",
    "ContactLeakDetector",
    "EmptyLegDetector",
    "PriceOutlierDetector",
    "SanctionsMatchDetector",
    "SlowResponseDetector",
    "haversine_nm",
]
