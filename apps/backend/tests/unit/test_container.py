"""
Name: Composition Root Unit Tests

Responsibilities:
  - Test env wires in-memory adapters
  - Settings flow into DetectorConfig
  - Async dispatch is disabled without REDIS_URL
  - Dispatch use case works end to end with the wired adapters
"""

import pytest
from compliance_engine import container
from compliance_engine.application.usecases import DispatchPendingEventsInput
from compliance_engine.crosscutting.config import get_settings
from compliance_engine.domain.entities import EventStatus
from compliance_engine.infrastructure.repositories import (
    InMemoryComplianceRepository,
    InMemoryEventStore,
)

pytestmark = pytest.mark.unit

_CACHED = (
    container.get_event_store,
    container.get_historical_query_service,
    container.get_compliance_repository,
    container.get_action_log_repository,
    container.get_detector_registry,
    container.get_rules_engine,
    container.get_dispatch_queue,
)


@pytest.fixture(autouse=True)
def fresh_container():
    for factory in _CACHED:
        factory.cache_clear()
    get_settings.cache_clear()
    yield
    for factory in _CACHED:
        factory.cache_clear()
    get_settings.cache_clear()


def test_test_env_uses_in_memory_adapters():
    assert isinstance(container.get_event_store(), InMemoryEventStore)
    assert isinstance(
        container.get_compliance_repository(), InMemoryComplianceRepository
    )
    assert container.get_event_store() is container.get_event_store()


def test_detector_config_from_settings(monkeypatch):
    monkeypatch.setenv("PRICE_CRITICAL_THRESHOLD", "4.5")
    monkeypatch.setenv("TASK_DEFAULT_ASSIGNEE", "compliance-team")

    config = container.get_detector_config()

    assert config.price_critical_threshold == 4.5
    assert config.default_assignee == "compliance-team"


def test_no_redis_means_no_queue(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "")
    assert container.get_dispatch_queue() is None


def test_wired_dispatch_use_case_processes_events():
    store = container.get_event_store()
    event = store.add_event("message.sent", {"content": "mail me at a@b.io"})

    summary = container.get_dispatch_use_case().execute(
        DispatchPendingEventsInput(limit=10)
    )

    assert summary.processed == 1
    assert summary.findings_created == 1
    assert store.get(event.id).status is EventStatus.PROCESSED
    assert len(container.get_compliance_repository().findings) == 1
