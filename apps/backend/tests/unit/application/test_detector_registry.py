"""
Name: Detector Registry Unit Tests

Responsibilities:
  - Default wiring per event type (order preserved)
  - Fail-fast on duplicate ids / missing event types
"""

from unittest.mock import Mock

import pytest
from compliance_engine.application.detectors import (
    DetectorRegistry,
    build_default_registry,
)

pytestmark = pytest.mark.unit


class _StubDetector:
    def __init__(self, detector_id, event_types=("message.sent",)):
        self.detector_id = detector_id
        self.event_types = tuple(event_types)

    def applies_to(self, event):
        return True

    def evaluate(self, event, *, now):
        raise NotImplementedError


def test_default_registry_covers_all_event_types():
    registry = build_default_registry(historical=Mock())

    assert set(registry.event_types) == {
        "message.sent",
        "quote.submitted",
        "sanctions.match",
        "aircraft.availability.updated",
    }
    assert registry.detector_ids == [
        "contact_leak",
        "empty_leg",
        "price_outlier",
        "sanctions_match",
        "slow_response",
    ]


def test_quote_detectors_run_price_before_sla():
    registry = build_default_registry(historical=Mock())
    ids = [d.detector_id for d in registry.detectors_for("quote.submitted")]
    assert ids == ["price_outlier", "slow_response"]


def test_unknown_event_type_has_no_detectors():
    registry = build_default_registry(historical=Mock())
    assert registry.detectors_for("user.signed_up") == []


def test_detectors_for_returns_a_copy():
    registry = DetectorRegistry([_StubDetector("a")])
    registry.detectors_for("message.sent").clear()
    assert len(registry.detectors_for("message.sent")) == 1


def test_detector_can_serve_several_event_types():
    registry = DetectorRegistry([_StubDetector("multi", ("a.b", "c.d"))])
    assert [d.detector_id for d in registry.detectors_for("c.d")] == ["multi"]


def test_duplicate_detector_id_rejected():
    registry = DetectorRegistry([_StubDetector("dup")])
    with pytest.raises(ValueError, match="already registered"):
        registry.register(_StubDetector("dup", ("other.type",)))


def test_detector_without_event_types_rejected():
    with pytest.raises(ValueError, match="no event types"):
        DetectorRegistry([_StubDetector("empty", ())])
