"""
Name: Contact-Leak Detector Unit Tests

Responsibilities:
  - Phone / email pattern matching and ordering
  - Finding + review task shape
  - Payload validation (non-string content)
"""

import pytest
from compliance_engine.application.detectors import (
    ContactLeakDetector,
    DetectorConfig,
    InvalidPayloadError,
)
from compliance_engine.application.detectors.contact_leak import (
    LABEL,
    excerpt,
    scan_contact_details,
)
from compliance_engine.domain.entities import Severity, TaskKind

pytestmark = pytest.mark.unit


class TestScanContactDetails:
    def test_detects_phone(self):
        detected, kinds = scan_contact_details("Call me at 555-123-4567 tonight")
        assert detected == ["555-123-4567"]
        assert kinds == ["phone"]

    def test_detects_email(self):
        detected, kinds = scan_contact_details("email me: jane.doe@example.com")
        assert detected == ["jane.doe@example.com"]
        assert kinds == ["email"]

    def test_phones_before_emails(self):
        """R: Orden determinista, teléfonos primero aunque aparezcan después."""
        detected, kinds = scan_contact_details(
            "jane@example.com or (555) 123-4567"
        )
        assert detected == ["(555) 123-4567", "jane@example.com"]
        assert kinds == ["phone", "email"]

    def test_plain_text_has_no_matches(self):
        assert scan_contact_details("Looking forward to the flight") == ([], [])


class TestExcerpt:
    def test_short_text_unchanged(self):
        assert excerpt("hello", 100) == "hello"

    def test_long_text_truncated(self):
        assert excerpt("x" * 150, 100) == "x" * 100 + "..."


class TestContactLeakDetector:
    def test_applies_only_with_content(self, make_event):
        detector = ContactLeakDetector()
        assert detector.applies_to(make_event("message.sent", {"content": "hi"}))
        assert not detector.applies_to(make_event("message.sent", {"content": ""}))
        assert not detector.applies_to(make_event("message.sent", {}))

    def test_leak_produces_high_finding_and_review_task(self, make_event, now):
        # Arrange
        event = make_event(
            "message.sent",
            {"content": "Call me at 555-123-4567", "message_id": "m-1"},
        )

        # Act
        outcome = ContactLeakDetector().evaluate(event, now=now)

        # Assert
        assert len(outcome.findings) == 1
        finding = outcome.findings[0]
        assert finding.severity is Severity.HIGH
        assert finding.label == LABEL
        assert finding.event_id == event.id
        assert finding.linked_object_type == "message"
        assert finding.linked_object_id == "m-1"
        assert finding.details["detected"] == ["555-123-4567"]
        assert finding.details["patterns"] == ["phone"]

        assert len(outcome.tasks) == 1
        task = outcome.tasks[0]
        assert task.kind is TaskKind.REVIEW
        assert task.assignee == "admin"
        assert task.suggested_action == {
            "action": "review_message",
            "message_id": "m-1",
            "reason": "potential_contact_leak",
        }

    def test_clean_message_is_empty(self, make_event, now):
        event = make_event("message.sent", {"content": "See you at the FBO"})
        assert ContactLeakDetector().evaluate(event, now=now).is_empty

    def test_excerpt_respects_config(self, make_event, now):
        content = "y" * 60 + " jane@example.com"
        event = make_event("message.sent", {"content": content})

        outcome = ContactLeakDetector(
            DetectorConfig(contact_excerpt_chars=20)
        ).evaluate(event, now=now)

        assert outcome.findings[0].details["message_content"] == "y" * 20 + "..."

    def test_non_string_content_raises(self, make_event, now):
        event = make_event("message.sent", {"content": 5551234567})
        with pytest.raises(InvalidPayloadError) as exc_info:
            ContactLeakDetector().evaluate(event, now=now)
        assert exc_info.value.field_name == "content"
