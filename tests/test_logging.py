"""Tests for logging configuration."""

import json
import logging

from zerobuild.logging_config import ConsoleFormatter, JSONFormatter, setup_logging


def _record(msg: str = "Test message") -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_basic_format(self):
        """Test basic JSON log format."""
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data

    def test_request_fields(self):
        """Test request extra fields are included."""
        record = _record("Request")
        record.method = "POST"
        record.path = "/api/generate"
        record.status_code = 200
        record.duration_ms = 150.5

        data = json.loads(JSONFormatter().format(record))

        assert data["method"] == "POST"
        assert data["path"] == "/api/generate"
        assert data["status_code"] == 200
        assert data["duration_ms"] == 150.5

    def test_pipeline_fields(self):
        """Test backend and publish fields are included."""
        record = _record("Rate limited")
        record.backend_id = "gemini"
        record.model = "gemini-2.5-flash"
        record.attempt = 2
        record.repo = "octo/todo-app"
        record.step = "blob"

        data = json.loads(JSONFormatter().format(record))

        assert data["backend_id"] == "gemini"
        assert data["model"] == "gemini-2.5-flash"
        assert data["attempt"] == 2
        assert data["repo"] == "octo/todo-app"
        assert data["step"] == "blob"

    def test_absent_fields_omitted(self):
        data = json.loads(JSONFormatter().format(_record()))
        assert "backend_id" not in data
        assert "step" not in data


class TestConsoleFormatter:
    """Tests for console log formatter."""

    def test_basic_format(self):
        """Test basic console format includes level and message."""
        output = ConsoleFormatter().format(_record())

        assert "INFO" in output
        assert "Test message" in output
        assert "test" in output

    def test_extra_fields_in_brackets(self):
        """Test extra fields appear in brackets."""
        record = _record("Request")
        record.method = "GET"
        record.path = "/health"

        output = ConsoleFormatter().format(record)

        assert "GET /health" in output
        assert "[" in output

    def test_backend_and_model_combined(self):
        record = _record("Generated")
        record.backend_id = "groq"
        record.model = "llama-3.3-70b-versatile"
        record.attempt = 1

        output = ConsoleFormatter().format(record)

        assert "backend=groq/llama-3.3-70b-versatile" in output
        assert "attempt=1" in output


class TestSetupLogging:
    """Tests for logging setup."""

    def test_setup_replaces_handlers(self):
        """Test setup_logging leaves exactly one root handler."""
        setup_logging(debug=True, json_logs=False)
        setup_logging(debug=True, json_logs=False)

        assert len(logging.getLogger().handlers) == 1

    def test_debug_mode_sets_debug_level(self):
        """Test debug mode sets DEBUG level."""
        setup_logging(debug=True, json_logs=False)
        assert logging.getLogger().level == logging.DEBUG

    def test_non_debug_sets_info_level(self):
        """Test non-debug mode sets INFO level."""
        setup_logging(debug=False, json_logs=False)
        assert logging.getLogger().level == logging.INFO

    def test_json_logs_in_production(self):
        setup_logging(debug=False, json_logs=True)
        handler = logging.getLogger().handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)

    def test_third_party_loggers_quieted(self):
        setup_logging(debug=True, json_logs=False)
        assert logging.getLogger("httpx").level == logging.WARNING
