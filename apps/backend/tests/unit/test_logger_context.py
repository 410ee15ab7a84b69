"""
Name: Logging and Context Unit Tests

Responsibilities:
  - JSONFormatter output, context enrichment and redaction
  - ContextVars set/clear lifecycle
  - Metrics helpers (endpoint normalization, status buckets)
"""

import json
import logging
import sys

import pytest
from compliance_engine.context import (
    clear_context,
    get_context_dict,
    set_event_context,
    set_request_context,
)
from compliance_engine.crosscutting.logger import JSONFormatter
from compliance_engine.crosscutting.metrics import (
    _normalize_endpoint,
    _status_bucket,
    get_metrics_response,
    record_event_outcome,
)

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _clean_context():
    clear_context()
    yield
    clear_context()


def _record(msg="hello", **extra):
    record = logging.LogRecord(
        name="compliance-engine",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestContext:
    def test_empty_values_are_omitted(self):
        set_request_context(request_id="r-1", method="POST")
        assert get_context_dict() == {"request_id": "r-1", "method": "POST"}

    def test_event_context(self):
        set_event_context("e-1")
        assert get_context_dict() == {"event_id": "e-1"}

    def test_clear(self):
        set_request_context(request_id="r-1", method="GET", path="/healthz")
        set_event_context("e-1")
        clear_context()
        assert get_context_dict() == {}


class TestJSONFormatter:
    def test_basic_fields_and_context(self):
        set_request_context(request_id="r-9", method="WORKER", path="rq.job")
        set_event_context("e-9")

        payload = json.loads(JSONFormatter().format(_record("dispatch done")))

        assert payload["message"] == "dispatch done"
        assert payload["level"] == "INFO"
        assert payload["request_id"] == "r-9"
        assert payload["event_id"] == "e-9"
        assert payload["method"] == "WORKER"

    def test_extra_fields_included(self):
        payload = json.loads(
            JSONFormatter().format(_record(processed=3, detector="price_outlier"))
        )
        assert payload["processed"] == 3
        assert payload["detector"] == "price_outlier"

    def test_sensitive_keys_redacted(self):
        payload = json.loads(
            JSONFormatter().format(
                _record(
                    content="call me 555-123-4567",
                    database_url="postgresql://u:secret@db/x",
                    details={"message_content": "jane@example.com", "ok": 1},
                )
            )
        )
        assert payload["content"] == "***REDACTADO***"
        assert payload["database_url"] == "***REDACTADO***"
        assert payload["details"] == {"message_content": "***REDACTADO***", "ok": 1}

    def test_exception_attached(self):
        try:
            raise ValueError("bad payload")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        payload = json.loads(JSONFormatter().format(record))

        assert payload["exception"]["type"] == "ValueError"
        assert payload["exception"]["message"] == "bad payload"


class TestMetricsHelpers:
    def test_normalize_endpoint(self):
        path = "/v1/compliance/findings/3fa85f64-5717-4562-b3fc-2c963f66afa6/42"
        assert _normalize_endpoint(path) == "/v1/compliance/findings/{id}/{id}"

    @pytest.mark.parametrize(
        "code,bucket",
        [(200, "2xx"), (202, "2xx"), (422, "4xx"), (503, "5xx"), (302, "other")],
    )
    def test_status_bucket(self, code, bucket):
        assert _status_bucket(code) == bucket

    def test_event_outcomes_are_exposed(self):
        record_event_outcome("processed")

        body, content_type = get_metrics_response()

        assert b"compliance_events" in body
        assert content_type.startswith("text/plain")
