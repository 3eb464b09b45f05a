"""Tests for structured logging."""

import io
import json
import logging
import sys

import pytest

from casefeed.config import FeedSettings
from casefeed.core.context import RequestContext
from casefeed.logging import (
    JSONFormatter,
    LogContext,
    TextFormatter,
    configure_from_settings,
    configure_logging,
    get_log_context,
    get_logger,
    with_log_context,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger("casefeed")
    saved = (root.level, list(root.handlers), root.propagate)
    yield
    root.setLevel(saved[0])
    root.handlers[:] = saved[1]
    root.propagate = saved[2]


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("casefeed.test", logging.INFO, __file__, 1, "Feed page fetched", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_standard_and_context_fields(self):
        line = JSONFormatter().format(
            make_record(actor_id="u-1", request_id="req-9", duration_ms=3.5, row_count=20)
        )
        data = json.loads(line)

        assert data["level"] == "INFO"
        assert data["logger"] == "casefeed.test"
        assert data["message"] == "Feed page fetched"
        assert data["actor_id"] == "u-1"
        assert data["request_id"] == "req-9"
        assert data["duration_ms"] == 3.5
        assert data["extra"] == {"row_count": 20}

    def test_unserializable_extra_is_stringified(self):
        data = json.loads(JSONFormatter().format(make_record(engine=object())))
        assert data["extra"]["engine"].startswith("<object object")

    def test_without_extra(self):
        data = json.loads(JSONFormatter(include_extra=False).format(make_record(row_count=1)))
        assert "extra" not in data

    def test_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record()
            record.exc_info = sys.exc_info()
        data = json.loads(JSONFormatter().format(record))
        assert data["exception"]["type"] == "RuntimeError"
        assert data["exception"]["message"] == "boom"


def test_text_formatter():
    line = TextFormatter(use_colors=False).format(make_record(actor_id="u-1", duration_ms=2.0))
    assert "casefeed.test [actor_id=u-1]: Feed page fetched (2.0ms)" in line


class TestLogContext:
    def test_nested_contexts_restore(self):
        with with_log_context(actor_id="u-1"):
            with with_log_context(LogContext(request_id="req-1")):
                assert get_log_context() == {"request_id": "req-1"}
            assert get_log_context() == {"actor_id": "u-1"}
        assert get_log_context() == {}

    def test_from_request_context(self):
        ctx = RequestContext.create(
            actor_id="u-1", role="lawyer", workspace_id="ws-1", request_id="req-2"
        )
        assert LogContext.from_request_context(ctx).to_dict() == {
            "actor_id": "u-1",
            "role": "lawyer",
            "request_id": "req-2",
        }


class TestConfigureLogging:
    def test_json_output_with_context(self, restore_root_logger):
        output = io.StringIO()
        configure_logging(level="debug", format="json", output=output)

        with with_log_context(actor_id="u-7", request_id="req-7"):
            get_logger("casefeed.query.executor").info("Feed page fetched", row_count=3)

        data = json.loads(output.getvalue().strip())
        assert data["actor_id"] == "u-7"
        assert data["request_id"] == "req-7"
        assert data["extra"]["row_count"] == 3

    def test_level_filters(self, restore_root_logger):
        output = io.StringIO()
        configure_logging(level="WARNING", format="text", output=output, use_colors=False)

        logger = get_logger("casefeed.feed.service")
        logger.info("quiet")
        logger.warning("loud")

        assert "quiet" not in output.getvalue()
        assert "loud" in output.getvalue()

    def test_from_settings(self, restore_root_logger):
        output = io.StringIO()
        configure_from_settings(FeedSettings(log_level="ERROR", log_format="text"), output=output)

        assert logging.getLogger("casefeed").level == logging.ERROR
        get_logger("casefeed").error("failed")
        assert "failed" in output.getvalue()


def test_text_formatter_shows_request_context():
    line = TextFormatter(use_colors=False).format(
        make_record(actor_id="u-1", role="lawyer", request_id="req-3", client_address="203.0.113.9")
    )
    assert "[actor_id=u-1, role=lawyer, request_id=req-3, client_address=203.0.113.9]" in line
