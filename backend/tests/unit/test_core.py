"""
Logging and Error Tracking Unit Tests
"""

import io
import json
import logging

import pytest

from core.logging import JSONFormatter, get_logger
from core.sentry import before_send, before_send_transaction, capture_exception, init_sentry

pytestmark = pytest.mark.unit


@pytest.fixture
def json_stream():
    """Route the migration.test logger through JSONFormatter into a buffer."""
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    target = logging.getLogger("migration.test")
    target.addHandler(handler)
    target.setLevel(logging.DEBUG)
    yield stream
    target.removeHandler(handler)


def lines(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines()]


class TestStructuredLogging:

    def test_context_fields_are_top_level(self, json_stream):
        get_logger("migration.test").info("moved", session_id="s1", mailbox_id="a@x.com", batch=2)

        entry = lines(json_stream)[0]
        assert entry["message"] == "moved"
        assert entry["level"] == "INFO"
        assert entry["session_id"] == "s1"
        assert entry["mailbox_id"] == "a@x.com"
        assert entry["extra"] == {"batch": 2}

    def test_bind_adds_fixed_context(self, json_stream):
        log = get_logger("migration.test").bind(session_id="s9")
        log.warning("slow batch", action="batch_slow")

        entry = lines(json_stream)[0]
        assert entry["session_id"] == "s9"
        assert entry["action"] == "batch_slow"
        assert "extra" not in entry

    def test_exception_details(self, json_stream):
        try:
            raise RuntimeError("exchange offline")
        except RuntimeError:
            get_logger("migration.test").exception("run failed", session_id="s1")

        entry = lines(json_stream)[0]
        assert entry["level"] == "ERROR"
        assert entry["exception"]["type"] == "RuntimeError"
        assert "exchange offline" in entry["exception"]["traceback"]


class TestSentryHooks:

    def test_init_without_dsn_is_disabled(self):
        assert init_sentry(dsn=None) is False

    def test_client_disconnect_is_dropped(self):
        error = BrokenPipeError("Broken pipe")
        assert before_send({}, {"exc_info": (BrokenPipeError, error, None)}) is None

    def test_credential_headers_are_masked(self):
        event = {"request": {"headers": {"Authorization": "Bearer x", "Accept": "text/csv"}}}
        error = ValueError("bad")

        result = before_send(event, {"exc_info": (ValueError, error, None)})

        assert result["request"]["headers"]["Authorization"] == "[Filtered]"
        assert result["request"]["headers"]["Accept"] == "text/csv"

    @pytest.mark.parametrize("name,kept", [
        ("/api/v1/health", False),
        ("/api/v1/migration/progress", False),
        ("/api/v1/migration/start", True),
    ])
    def test_transactions(self, name, kept):
        event = {"transaction": name}
        assert (before_send_transaction(event, {}) is not None) == kept

    def test_capture_without_client_is_safe(self):
        # No DSN configured: the SDK accepts the call and sends nothing
        capture_exception(RuntimeError("boom"), session_id="s1", mailbox_id="a@x.com")
