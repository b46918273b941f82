"""
Tests for structured logging.
"""

import io
import json
import logging
import sys

import pytest

from scopedsearch.core.context import RunContext
from scopedsearch.core.errors import ForbiddenScopeError
from scopedsearch.logging import (
    JSONFormatter,
    LogContext,
    TextFormatter,
    configure_logging,
    get_log_context,
    get_logger,
    with_log_context,
)
from scopedsearch.logging.config import ROOT_LOGGER
from scopedsearch.logging.context import ContextFilter


def make_record(msg="hello", level=logging.INFO, **extra):
    record = logging.LogRecord("scopedsearch.test", level, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    logger = logging.getLogger(ROOT_LOGGER)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


class TestLogContext:
    def test_from_run_context(self):
        ctx = RunContext.create(
            principal_id="user-1", role="member", tenant_id="tenant-a", request_id="req-1"
        )
        log_ctx = LogContext.from_run_context(ctx, "task")
        assert log_ctx.to_dict() == {
            "request_id": "req-1",
            "principal_id": "user-1",
            "role": "member",
            "tenant_id": "tenant-a",
            "entity": "task",
        }

    def test_nesting_restores_previous(self):
        assert get_log_context() == {}
        with with_log_context(request_id="outer"):
            with with_log_context(entity="task"):
                assert get_log_context() == {"request_id": "outer", "entity": "task"}
            assert get_log_context() == {"request_id": "outer"}
        assert get_log_context() == {}

    def test_explicit_context_replaces(self):
        with with_log_context(request_id="outer"):
            with with_log_context(LogContext(entity="notice")):
                assert get_log_context() == {"entity": "notice"}

    def test_filter_injects_without_overwriting(self):
        record = make_record(entity="explicit")
        with with_log_context(request_id="req-9", entity="task"):
            assert ContextFilter().filter(record)
        assert record.request_id == "req-9"
        assert record.entity == "explicit"


class TestJSONFormatter:
    def test_shape(self):
        record = make_record("Search completed", request_id="req-1", entity="task", records=3)
        data = json.loads(JSONFormatter().format(record))
        assert data["level"] == "INFO"
        assert data["logger"] == "scopedsearch.test"
        assert data["message"] == "Search completed"
        assert data["request_id"] == "req-1"
        assert data["entity"] == "task"
        assert data["extra"] == {"records": 3}
        assert "timestamp" in data

    def test_without_extra(self):
        record = make_record(records=3)
        data = json.loads(JSONFormatter(include_extra=False).format(record))
        assert "extra" not in data

    def test_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record(level=logging.ERROR)
            record.exc_info = sys.exc_info()
        data = json.loads(JSONFormatter().format(record))
        assert data["exception"]["type"] == "RuntimeError"
        assert data["exception"]["message"] == "boom"


class TestTextFormatter:
    def test_plain(self):
        record = make_record("Search completed", request_id="req-1", records=3)
        line = TextFormatter(use_colors=False).format(record)
        assert "INFO" in line
        assert "scopedsearch.test: Search completed" in line
        assert "request_id=req-1" in line
        assert "records=3" in line
        assert "\033[" not in line

    def test_colors(self):
        line = TextFormatter(use_colors=True).format(make_record())
        assert "\033[32m" in line


class TestConfigureLogging:
    def test_json_output_with_context(self, restore_root_logger):
        stream = io.StringIO()
        configure_logging(level="debug", format="json", output=stream)
        with with_log_context(request_id="req-5", entity="task"):
            get_logger("scopedsearch.query.test").info("Search completed", records=2)
        data = json.loads(stream.getvalue().strip())
        assert data["request_id"] == "req-5"
        assert data["entity"] == "task"
        assert data["extra"]["records"] == 2

    def test_level_filters(self, restore_root_logger):
        stream = io.StringIO()
        configure_logging(level="WARNING", format="text", output=stream, use_colors=False)
        logger = get_logger("scopedsearch.query.test")
        logger.info("quiet")
        logger.warning("loud")
        assert "quiet" not in stream.getvalue()
        assert "loud" in stream.getvalue()
        assert not logger.is_enabled_for(logging.INFO)


class TestSearchLogging:
    @pytest.mark.asyncio
    async def test_search_logs_shape_not_values(self, engine, member_a, caplog):
        caplog.set_level(logging.INFO, logger=ROOT_LOGGER)
        await engine.search("task", {"title": "secret project"}, member_a)
        completed = [r for r in caplog.records if r.getMessage() == "Search completed"]
        assert len(completed) == 1
        record = completed[0]
        assert record.records == 0
        assert "Contains(title)" in record.predicate
        assert "secret" not in record.predicate
        assert record.sort == ["created_at desc", "id desc"]

    @pytest.mark.asyncio
    async def test_refusal_logged(self, engine, anonymous, caplog):
        caplog.set_level(logging.INFO, logger=ROOT_LOGGER)
        with pytest.raises(ForbiddenScopeError):
            await engine.search("task", {}, anonymous)
        assert any(r.getMessage() == "Scope refused" for r in caplog.records)
