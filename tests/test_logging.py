"""Tests for eml_replicator.logging."""

from __future__ import annotations

import io
import json
import logging

import structlog

from eml_replicator.logging import setup_logging


class TestSetupLogging:
    def test_console_mode(self):
        setup_logging(json=False, level="INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_level_case_insensitive(self):
        setup_logging(level="debug")
        root = logging.getLogger()
        assert root.level == logging.DEBUG

    def test_replaces_existing_handlers(self):
        root = logging.getLogger()
        root.addHandler(logging.StreamHandler())
        root.addHandler(logging.StreamHandler())
        assert len(root.handlers) >= 2
        setup_logging()
        assert len(root.handlers) == 1

    def test_json_lines_to_stream(self):
        stream = io.StringIO()
        setup_logging(json=True, level="INFO", stream=stream)
        logging.getLogger("eml_test").info("plain stdlib record")
        structlog.get_logger("eml_test").info("eml_found", path="/mail/a.eml")

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        event = next(line for line in lines if line["event"] == "eml_found")
        assert event["path"] == "/mail/a.eml"
        assert event["level"] == "info"

    def test_returns_installed_handler(self):
        stream = io.StringIO()
        handler = setup_logging(stream=stream)
        assert logging.getLogger().handlers == [handler]
        assert handler.stream is stream

    def test_stdlib_records_get_level_and_utc_timestamp(self):
        stream = io.StringIO()
        setup_logging(json=True, stream=stream)
        logging.getLogger("eml_test").warning("from imaplib land")

        record = json.loads(stream.getvalue().splitlines()[-1])
        assert record["event"] == "from imaplib land"
        assert record["level"] == "warning"
        assert record["timestamp"].endswith("Z")

    def test_json_exception_is_structured(self):
        stream = io.StringIO()
        setup_logging(json=True, stream=stream)
        try:
            raise ValueError("boom")
        except ValueError:
            structlog.get_logger("eml_test").exception("append_crashed")

        record = json.loads(stream.getvalue().splitlines()[-1])
        assert record["exception"][0]["exc_type"] == "ValueError"
        assert record["exception"][0]["exc_value"] == "boom"

    def test_console_has_no_colors_off_terminal(self):
        stream = io.StringIO()
        setup_logging(stream=stream)
        structlog.get_logger("eml_test").info("eml_found", path="/mail/a.eml")

        output = stream.getvalue()
        assert "eml_found" in output
        assert "path=/mail/a.eml" in output
        assert "\x1b[" not in output
