"""Tests for logging setup -- bound context reaches the rendered events."""

import io
import json

import pytest
import structlog

from fincalc.logging import get_logger, setup_logging


def _events(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestSetupLogging:
    def test_json_events_carry_bound_context(self) -> None:
        stream = io.StringIO()
        setup_logging("INFO", log_format="json", stream=stream)

        with structlog.contextvars.bound_contextvars(command="report", config_path="book.json"):
            get_logger("fincalc.tests").info("config_loaded", positions=2)
        get_logger("fincalc.tests").info("after_context")

        first, second = _events(stream)
        assert first["event"] == "config_loaded"
        assert first["command"] == "report"
        assert first["config_path"] == "book.json"
        assert first["positions"] == 2
        assert first["level"] == "info"
        assert "command" not in second

    def test_level_filters_debug(self) -> None:
        stream = io.StringIO()
        setup_logging("WARNING", log_format="json", stream=stream)

        get_logger("fincalc.tests").info("dropped")
        get_logger("fincalc.tests").warning("kept")

        assert [e["event"] for e in _events(stream)] == ["kept"]

    def test_format_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_FORMAT", "JSON")
        stream = io.StringIO()
        setup_logging("INFO", stream=stream)

        get_logger("fincalc.tests").info("env_format")

        assert _events(stream)[0]["event"] == "env_format"
