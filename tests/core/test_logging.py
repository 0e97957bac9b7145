"""
Tests for the logging module.

Tests verify:
- configure_logging installs the structlog pipeline
- context helpers bind into structlog contextvars
- LogContext restores outer values on exit
"""

import structlog

from taskspine.core.logging import (
    LogContext,
    _add_service_metadata,
    _elasticsearch_compatible,
    bind_context,
    clear_context,
    configure_logging,
    unbind_context,
)
from taskspine.core.settings import TaskSpineSettings, reset_settings


class TestConfigureLogging:
    """structlog configuration."""

    def teardown_method(self):
        structlog.reset_defaults()
        reset_settings()

    def test_json_pipeline(self):
        configure_logging(level="WARNING", json_format=True, service="billing")
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert _elasticsearch_compatible in processors
        assert structlog.contextvars.merge_contextvars in processors

    def test_console_pipeline(self):
        configure_logging(json_format=False)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_format_from_settings(self):
        configure_logging(settings=TaskSpineSettings(log_level="debug", log_json=True))
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_format_from_environment(self, monkeypatch):
        monkeypatch.setenv("TASKSPINE_LOG_JSON", "false")
        reset_settings()
        configure_logging()
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_explicit_arguments_win(self):
        configure_logging(json_format=False, settings=TaskSpineSettings(log_json=True))
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_service_metadata(self):
        configure_logging(json_format=True, service="billing")
        event = _add_service_metadata(None, "info", {"event": "x"})
        assert event["service.name"] == "billing"


class TestProcessors:
    """Custom processors."""

    def test_elasticsearch_field_names(self):
        event = _elasticsearch_compatible(None, "info", {"timestamp": "t", "level": "info"})
        assert event == {"@timestamp": "t", "log.level": "info"}


class TestContextHelpers:
    """Binding helpers."""

    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_bind_and_unbind(self):
        bind_context(chain_id="c1", task="ChargeCard")
        assert structlog.contextvars.get_contextvars() == {"chain_id": "c1", "task": "ChargeCard"}
        unbind_context("task")
        assert structlog.contextvars.get_contextvars() == {"chain_id": "c1"}

    def test_clear(self):
        bind_context(chain_id="c1")
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_log_context_restores_outer_value(self):
        bind_context(correlation_id="outer")
        with LogContext(correlation_id="inner", chain_id="c2"):
            assert structlog.contextvars.get_contextvars()["correlation_id"] == "inner"
        assert structlog.contextvars.get_contextvars() == {"correlation_id": "outer"}

