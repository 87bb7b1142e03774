"""
Tests for the logging module.

Tests verify:
- LogContext binds and restores structlog context variables
- configure_logging honours the level filter
- JSON output is machine readable
"""

import json

import structlog

from autokernel.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


class TestContextManagement:
    """Test context bind/unbind/clear operations."""

    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_bind_and_unbind(self):
        bind_context(source="a.lua")
        assert structlog.contextvars.get_contextvars() == {"source": "a.lua"}
        unbind_context("source")
        assert structlog.contextvars.get_contextvars() == {}

    def test_log_context_scopes_values(self):
        with LogContext(source="a.lua", depth=0):
            assert structlog.contextvars.get_contextvars()["source"] == "a.lua"
        assert "source" not in structlog.contextvars.get_contextvars()

    def test_nested_log_context_restores_parent(self):
        with LogContext(source="outer.lua", depth=0):
            with LogContext(source="inner.config", depth=1):
                assert structlog.contextvars.get_contextvars()["source"] == "inner.config"
            context = structlog.contextvars.get_contextvars()
            assert context["source"] == "outer.lua"
            assert context["depth"] == 0


class TestGetLogger:
    def teardown_method(self):
        structlog.reset_defaults()

    def test_named_logger_logs(self):
        logger = get_logger("autokernel.config.lua")
        logger.info("config.apply.started", kind="lua")

    def test_module_logger_follows_later_configuration(self, capsys):
        """Loggers created at import time pick up configure_logging afterwards."""
        logger = get_logger("autokernel.test")
        configure_logging(level="INFO", json_format=True, add_timestamp=False)
        logger.info("symbol.set.rejected", symbol="FOO")

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "symbol.set.rejected"

    def test_package_imports(self):
        import importlib

        module = importlib.import_module("autokernel.config.lua")
        assert module.logger is not None


class TestConfigureLogging:
    def teardown_method(self):
        structlog.reset_defaults()

    def test_json_output(self, capsys):
        configure_logging(level="INFO", json_format=True, add_timestamp=False)
        get_logger("autokernel.test").info("config.apply.started", kind="lua")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "config.apply.started"
        assert record["kind"] == "lua"
        assert record["level"] == "info"
        assert record["service.name"] == "autokernel"

    def test_debug_suppressed_at_info(self, capsys):
        configure_logging(level="INFO", json_format=True, add_timestamp=False)
        get_logger("autokernel.test").debug("namespace.generated")
        assert "namespace.generated" not in capsys.readouterr().err

    def test_custom_service_name(self, capsys):
        configure_logging(level="DEBUG", json_format=True, service="ak-test", add_timestamp=False)
        get_logger("autokernel.test").debug("hello")
        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["service.name"] == "ak-test"
