"""Unit tests for structlog configuration and processors."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterator

import pytest
import structlog

from fundly_events.observability.correlation import CorrelationContext, RequestContext
from fundly_events.observability.logging import CorrelationProcessor, configure_logging, get_logger


@pytest.fixture()
def reset_logging() -> Iterator[None]:
    root = logging.getLogger()
    level = root.level
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    root.handlers.clear()
    root.setLevel(level)


# ---------------------------------------------------------------------------
# CorrelationProcessor
# ---------------------------------------------------------------------------


class TestCorrelationProcessor:
    def test_no_context_leaves_event_untouched(self) -> None:
        CorrelationContext.clear()
        out = CorrelationProcessor()(None, "info", {"event": "x"})
        assert out == {"event": "x"}

    def test_injects_context_fields(self) -> None:
        ctx = RequestContext(correlation_id="c-1", causation_id="e-1", user_id="u-1")
        with CorrelationContext.scope(ctx):
            out = CorrelationProcessor()(None, "info", {"event": "x"})
        assert out["correlation_id"] == "c-1"
        assert out["causation_id"] == "e-1"
        assert out["user_id"] == "u-1"

    def test_does_not_override_explicit_values(self) -> None:
        with CorrelationContext.scope(RequestContext(correlation_id="ambient")):
            out: dict[str, Any] = CorrelationProcessor()(None, "info", {"correlation_id": "explicit"})
        assert out["correlation_id"] == "explicit"


# ---------------------------------------------------------------------------
# configure_logging / get_logger
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    def test_json_lines_with_context(self, reset_logging: None, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging("DEBUG", json=True)
        logger = structlog.get_logger("fundly.test")
        with CorrelationContext.scope(RequestContext(correlation_id="c-42")):
            structlog.contextvars.bind_contextvars(saga_id="s-1")
            logger.info("saga.started", step=1)
        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "saga.started"
        assert record["step"] == 1
        assert record["level"] == "info"
        assert record["logger"] == "fundly.test"
        assert record["correlation_id"] == "c-42"
        assert record["saga_id"] == "s-1"
        assert "timestamp" in record

    def test_level_filters_records(self, reset_logging: None, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(logging.WARNING)
        logger = structlog.get_logger("fundly.test")
        logger.info("quiet")
        logger.warning("loud")
        err = capsys.readouterr().err
        assert "quiet" not in err
        assert "loud" in err

    def test_single_root_handler(self, reset_logging: None) -> None:
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1


class TestGetLogger:
    def test_binds_initial_values(self) -> None:
        with structlog.testing.capture_logs() as logs:
            get_logger("x", component="bus").info("hello")
        assert logs == [{"component": "bus", "event": "hello", "log_level": "info"}]
