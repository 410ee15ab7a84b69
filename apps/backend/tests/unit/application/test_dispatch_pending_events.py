"""
Name: Dispatch Pending Events Use Case Unit Tests

Responsibilities:
  - Batch processing in occurred_at order with summary counts
  - Claim races (skipped), persistence failures (released, failed)
  - Stale-claim reclaim and fetch failures
  - Claim ownership when a slow run loses its claim to another run
  - Limit validation and cap
  - Action log entries

Collaborators:
  - In-memory EventStore / ComplianceRepository / ActionLogRepository
  - Real RulesEngine with the default detector set

Notes:
  - Fixed clock (conftest.FIXED_NOW) for deterministic timestamps
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest
from compliance_engine.application.detectors import build_default_registry
from compliance_engine.application.rules_engine import RulesEngine
from compliance_engine.application.usecases import (
    DispatchPendingEventsInput,
    DispatchPendingEventsUseCase,
)
from compliance_engine.crosscutting.exceptions import DatabaseError, EventFetchError
from compliance_engine.crosscutting.metrics import REGISTRY
from compliance_engine.domain.entities import EventStatus
from compliance_engine.infrastructure.repositories import InMemoryEventStore

pytestmark = pytest.mark.unit

LEAK = {"content": "Call me at 555-123-4567", "message_id": "m-1"}
CLEAN = {"content": "See you at the FBO"}


class _RacingEventStore(InMemoryEventStore):
    """Simula que otro dispatcher gana el claim de ciertos eventos."""

    def __init__(self, lost_ids=()):
        super().__init__()
        self.lost_ids = set(lost_ids)

    def claim_event(self, event_id, *, claimed_at):
        if event_id in self.lost_ids:
            return False
        return super().claim_event(event_id, claimed_at=claimed_at)


class _LosingFinalizeEventStore(InMemoryEventStore):
    """El UPDATE de finalización no encuentra la fila en in_progress."""

    def update_event_status(self, event_id, *, from_statuses, to_status, **kwargs):
        if to_status == EventStatus.PROCESSED:
            return False
        return super().update_event_status(
            event_id, from_statuses=from_statuses, to_status=to_status, **kwargs
        )


class _InterleavingEngine:
    """Corre `during_evaluate` una sola vez, entre evaluar y devolver."""

    def __init__(self, inner, during_evaluate):
        self._inner = inner
        self._during_evaluate = during_evaluate

    def evaluate(self, event):
        result = self._inner.evaluate(event)
        if self._during_evaluate is not None:
            hook, self._during_evaluate = self._during_evaluate, None
            hook()
        return result


class _ClaimStolenOnInsertRepo:
    """Otra corrida reclama el evento y luego insert_findings falla."""

    def __init__(self, inner, steal):
        self._inner = inner
        self._steal = steal

    def insert_findings(self, findings):
        self._steal()
        raise DatabaseError("insert failed")

    def insert_tasks(self, tasks):
        return self._inner.insert_tasks(tasks)


class _FlakyTasksRepo:
    """Findings se guardan; tasks fallan solo la primera vez."""

    def __init__(self, inner):
        self._inner = inner
        self.calls = 0

    def insert_findings(self, findings):
        return self._inner.insert_findings(findings)

    def insert_tasks(self, tasks):
        self.calls += 1
        if self.calls == 1:
            raise DatabaseError("tasks insert failed")
        return self._inner.insert_tasks(tasks)


@pytest.fixture
def build_use_case(now, historical, compliance_repo, action_log):
    def _build(
        events, *, compliance=None, log=None, engine=None, clock=None, **kwargs
    ):
        clock = clock or (lambda: now)
        kwargs.setdefault("batch_size", 50)
        kwargs.setdefault("max_batch_size", 500)
        return DispatchPendingEventsUseCase(
            events=events,
            engine=engine
            or RulesEngine(
                build_default_registry(historical=historical), clock=clock
            ),
            compliance=compliance or compliance_repo,
            action_log=log or action_log,
            clock=clock,
            **kwargs,
        )

    return _build


def _stale_releases():
    return REGISTRY.get_sample_value("compliance_stale_claims_released_total") or 0.0


class TestDispatchHappyPath:
    def test_empty_batch(self, build_use_case, event_store, now):
        summary = build_use_case(event_store).execute()

        assert summary.message == "No pending events to process"
        assert summary.processed == 0
        assert summary.findings_created == 0
        assert summary.tasks_created == 0
        assert summary.fetched == 0
        assert summary.timestamp == now

    def test_processes_batch_and_counts(
        self, build_use_case, event_store, compliance_repo, now
    ):
        # Arrange
        leak = event_store.add_event("message.sent", LEAK, occurred_at=now)
        clean = event_store.add_event("message.sent", CLEAN, occurred_at=now)
        unknown = event_store.add_event("user.signed_up", {}, occurred_at=now)

        # Act
        summary = build_use_case(event_store).execute()

        # Assert
        assert summary.message == "Processed 3 events"
        assert summary.processed == 3
        assert summary.fetched == 3
        assert summary.findings_created == 1
        assert summary.tasks_created == 1
        assert summary.skipped == 0
        assert summary.failed == 0

        for event in (leak, clean, unknown):
            stored = event_store.get(event.id)
            assert stored.status is EventStatus.PROCESSED
            assert stored.processed_at == now

        assert [f.event_id for f in compliance_repo.findings] == [leak.id]
        assert compliance_repo.tasks[0].event_id == leak.id

    def test_processes_in_occurred_at_order(
        self, build_use_case, event_store, historical, now
    ):
        later = event_store.add_event("message.sent", CLEAN, occurred_at=now)
        earlier = event_store.add_event(
            "message.sent", CLEAN, occurred_at=now - timedelta(minutes=5)
        )
        engine = Mock(
            wraps=RulesEngine(build_default_registry(historical=historical))
        )

        build_use_case(event_store, engine=engine).execute()

        seen = [c.args[0].id for c in engine.evaluate.call_args_list]
        assert seen == [earlier.id, later.id]

    def test_action_log_per_processed_event(
        self, build_use_case, event_store, action_log, now
    ):
        leak = event_store.add_event("message.sent", LEAK, occurred_at=now)

        build_use_case(event_store).execute()

        entries = action_log.list_entries()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.action == "process_event"
        assert entry.target_type == "event"
        assert entry.target_id == str(leak.id)
        assert entry.details == {
            "event_type": "message.sent",
            "findings_count": 1,
            "tasks_count": 1,
            "highest_severity": "high",
            "detector_errors": [],
        }

    def test_detector_error_still_processes_event(
        self, build_use_case, event_store, compliance_repo, now
    ):
        event = event_store.add_event(
            "message.sent", {"content": ["not", "text"]}, occurred_at=now
        )

        summary = build_use_case(event_store).execute()

        assert summary.processed == 1
        assert summary.findings_created == 1
        assert compliance_repo.findings[0].label == "Event Processing Error"
        assert event_store.get(event.id).status is EventStatus.PROCESSED


class TestDispatchLimits:
    def test_limit_bounds_the_batch(self, build_use_case, event_store, now):
        for i in range(5):
            event_store.add_event(
                "message.sent", CLEAN, occurred_at=now + timedelta(seconds=i)
            )

        summary = build_use_case(event_store).execute(
            DispatchPendingEventsInput(limit=2)
        )

        assert summary.processed == 2
        assert event_store.count_by_status() == {"processed": 2, "pending": 3}

    def test_default_batch_size(self, build_use_case, event_store, now):
        for i in range(4):
            event_store.add_event(
                "message.sent", CLEAN, occurred_at=now + timedelta(seconds=i)
            )

        summary = build_use_case(event_store, batch_size=3).execute()

        assert summary.fetched == 3

    def test_limit_is_capped(self, build_use_case, event_store, now):
        for i in range(5):
            event_store.add_event(
                "message.sent", CLEAN, occurred_at=now + timedelta(seconds=i)
            )

        summary = build_use_case(
            event_store, batch_size=2, max_batch_size=3
        ).execute(DispatchPendingEventsInput(limit=10))

        assert summary.fetched == 3

    @pytest.mark.parametrize("limit", [0, -1])
    def test_non_positive_limit_rejected(self, build_use_case, event_store, limit):
        with pytest.raises(ValueError, match="limit must be greater than 0"):
            build_use_case(event_store).execute(
                DispatchPendingEventsInput(limit=limit)
            )


class TestDispatchConcurrency:
    def test_lost_claim_is_skipped(self, build_use_case, compliance_repo, now):
        events = _RacingEventStore()
        won = events.add_event("message.sent", LEAK, occurred_at=now)
        lost = events.add_event("message.sent", LEAK, occurred_at=now)
        events.lost_ids.add(lost.id)

        summary = build_use_case(events).execute()

        assert summary.processed == 1
        assert summary.skipped == 1
        assert summary.findings_created == 1
        assert [f.event_id for f in compliance_repo.findings] == [won.id]
        # El otro dispatcher es dueño del evento: no se toca.
        assert events.get(lost.id).status is EventStatus.PENDING

    def test_stale_claim_is_reclaimed(self, build_use_case, event_store, now):
        event = event_store.add_event("message.sent", CLEAN, occurred_at=now)
        event_store.claim_event(event.id, claimed_at=now - timedelta(hours=1))
        before = _stale_releases()

        summary = build_use_case(event_store).execute()

        assert summary.released_claims == 1
        assert _stale_releases() - before == 1
        assert summary.processed == 1
        assert event_store.get(event.id).status is EventStatus.PROCESSED

    def test_fresh_claim_is_left_alone(self, build_use_case, event_store, now):
        event = event_store.add_event("message.sent", CLEAN, occurred_at=now)
        event_store.claim_event(event.id, claimed_at=now - timedelta(seconds=60))

        summary = build_use_case(event_store).execute()

        assert summary.message == "No pending events to process"
        assert summary.released_claims == 0
        assert event_store.get(event.id).status is EventStatus.IN_PROGRESS

    def test_slow_run_does_not_rewrite_a_reclaimed_event(
        self, build_use_case, event_store, compliance_repo, historical, now
    ):
        """R: A evalúa más que claim_timeout; B reclama, procesa y A no escribe."""
        # Arrange
        event = event_store.add_event("message.sent", LEAK, occurred_at=now)
        later = now + timedelta(minutes=20)
        other_run = build_use_case(event_store, clock=lambda: later)
        other_summaries = []
        slow_engine = _InterleavingEngine(
            RulesEngine(
                build_default_registry(historical=historical), clock=lambda: now
            ),
            during_evaluate=lambda: other_summaries.append(other_run.execute()),
        )

        # Act
        summary = build_use_case(event_store, engine=slow_engine).execute()

        # Assert
        assert other_summaries[0].released_claims == 1
        assert other_summaries[0].processed == 1
        assert summary.processed == 0
        assert summary.skipped == 1
        assert len(compliance_repo.findings) == 1
        assert len(compliance_repo.tasks) == 1
        stored = event_store.get(event.id)
        assert stored.status is EventStatus.PROCESSED
        assert stored.processed_at == later

    def test_failed_run_does_not_release_another_runs_claim(
        self, build_use_case, event_store, compliance_repo, now
    ):
        event = event_store.add_event("message.sent", LEAK, occurred_at=now)
        later = now + timedelta(minutes=20)

        def steal():
            event_store.release_stale_claims(older_than=later - timedelta(minutes=15))
            assert event_store.claim_event(event.id, claimed_at=later)

        repo = _ClaimStolenOnInsertRepo(compliance_repo, steal)
        summary = build_use_case(event_store, compliance=repo).execute()

        assert summary.failed == 1
        stored = event_store.get(event.id)
        assert stored.status is EventStatus.IN_PROGRESS
        assert stored.claimed_at == later


class TestDispatchFailures:
    def test_fetch_failure_raises(self, build_use_case):
        events = Mock()
        events.release_stale_claims.return_value = 0
        events.fetch_pending_events.side_effect = DatabaseError("db down")

        with pytest.raises(EventFetchError) as exc_info:
            build_use_case(events).execute()

        assert exc_info.value.message == "Failed to fetch events"
        events.claim_event.assert_not_called()

    def test_persistence_failure_releases_event(
        self, build_use_case, event_store, compliance_repo, action_log, now
    ):
        # Arrange
        failing = event_store.add_event("message.sent", LEAK, occurred_at=now)
        compliance_repo.fail_on_insert = DatabaseError("insert failed")

        # Act
        summary = build_use_case(event_store).execute()

        # Assert
        assert summary.processed == 0
        assert summary.failed == 1
        assert summary.message == "Processed 0 events"
        stored = event_store.get(failing.id)
        assert stored.status is EventStatus.PENDING
        assert stored.claimed_at is None

        entry = action_log.list_entries()[0]
        assert entry.action == "process_event_error"
        assert entry.details["error"] == "insert failed"
        assert entry.details["event_type"] == "message.sent"

    def test_failure_does_not_stop_the_batch(
        self, build_use_case, event_store, compliance_repo, now
    ):
        event_store.add_event("message.sent", LEAK, occurred_at=now)
        clean = event_store.add_event(
            "message.sent", CLEAN, occurred_at=now + timedelta(seconds=1)
        )
        compliance_repo.fail_on_insert = DatabaseError("insert failed")

        summary = build_use_case(event_store).execute()

        assert summary.failed == 1
        assert summary.processed == 1
        assert event_store.get(clean.id).status is EventStatus.PROCESSED

    def test_released_event_is_retried_next_run(
        self, build_use_case, event_store, compliance_repo, now
    ):
        event = event_store.add_event("message.sent", LEAK, occurred_at=now)
        compliance_repo.fail_on_insert = DatabaseError("insert failed")
        use_case = build_use_case(event_store)
        use_case.execute()

        compliance_repo.fail_on_insert = None
        summary = use_case.execute()

        assert summary.processed == 1
        assert event_store.get(event.id).status is EventStatus.PROCESSED
        assert len(compliance_repo.findings) == 1

    def test_partial_write_duplicates_findings_once(
        self, build_use_case, event_store, compliance_repo, now
    ):
        """R: findings escritos antes de la falla se re-escriben en el retry."""
        event_store.add_event("message.sent", LEAK, occurred_at=now)
        flaky = _FlakyTasksRepo(compliance_repo)
        use_case = build_use_case(event_store, compliance=flaky)

        first = use_case.execute()
        second = use_case.execute()

        assert first.failed == 1
        assert second.processed == 1
        assert len(compliance_repo.findings) == 2
        assert len(compliance_repo.tasks) == 1

    def test_lost_finalization_counts_as_failure(self, build_use_case, now):
        events = _LosingFinalizeEventStore()
        event = events.add_event("message.sent", CLEAN, occurred_at=now)

        summary = build_use_case(events).execute()

        assert summary.failed == 1
        assert events.get(event.id).status is EventStatus.PENDING

    def test_claim_error_counts_as_failure(self, build_use_case, action_log, now):
        events = InMemoryEventStore()
        events.add_event("message.sent", CLEAN, occurred_at=now)
        events.claim_event = Mock(side_effect=DatabaseError("claim failed"))

        summary = build_use_case(events).execute()

        assert summary.failed == 1
        assert action_log.list_entries()[0].details["stage"] == "claim"

    def test_action_log_failure_is_not_fatal(self, build_use_case, event_store, now):
        event = event_store.add_event("message.sent", CLEAN, occurred_at=now)
        broken_log = Mock()
        broken_log.append_action_log.side_effect = DatabaseError("log down")

        summary = build_use_case(event_store, log=broken_log).execute()

        assert summary.processed == 1
        assert event_store.get(event.id).status is EventStatus.PROCESSED
