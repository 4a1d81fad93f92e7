"""Unit tests for itclock logging configuration."""

from __future__ import annotations

import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from unittest import mock

import pytest

import itclock
from itclock.logging_config import (
    ENV_FILE,
    ENV_JSON,
    ENV_LEVEL,
    LOGGER_NAME,
    JsonFormatter,
    _clear_handlers,
    _get_level,
    _get_logger,
)


def handlers_of(kind):
    return [h for h in _get_logger().handlers if isinstance(h, kind)]


def flush():
    for handler in _get_logger().handlers:
        handler.flush()


class TestSilentByDefault:
    def test_clock_operations_print_nothing(self, capfd):
        """Forking, ticking and encoding stay quiet without opt-in."""
        a, b = itclock.fork(itclock.seed())
        itclock.encode_stamp(itclock.event(a))

        captured = capfd.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    def test_logger_has_null_handler(self):
        assert handlers_of(logging.NullHandler)


class TestConsoleLogging:
    def test_sets_level(self):
        itclock.enable_console_logging(level="DEBUG")
        assert _get_logger().level == logging.DEBUG
        assert handlers_of(logging.StreamHandler)

    def test_fork_is_traced_at_debug(self, capfd):
        itclock.enable_console_logging(level="DEBUG")
        itclock.fork(itclock.seed())

        captured = capfd.readouterr()
        assert "itclock.core.stamp" in captured.err
        assert "fork One" in captured.err

    def test_info_level_hides_traces(self, capfd):
        itclock.enable_console_logging(level="INFO")
        itclock.fork(itclock.seed())

        assert capfd.readouterr().err == ""

    def test_custom_format(self, capfd):
        itclock.enable_console_logging(level="WARNING", format="[ITC] %(message)s")
        with pytest.raises(itclock.DisownedStamp):
            itclock.event(itclock.peek(itclock.seed()))

        assert "[ITC] Refusing to record an event on a disowned stamp" in capfd.readouterr().err


class TestFileLogging:
    def test_rotating_handler(self, tmp_path):
        handler = itclock.enable_file_logging(tmp_path / "itc.log", max_bytes=2048, backup_count=2)

        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == 2048
        assert handler.backupCount == 2

    def test_creates_parent_directories(self, tmp_path):
        log_file = tmp_path / "a" / "b" / "itc.log"
        itclock.enable_file_logging(log_file)
        assert log_file.parent.is_dir()

    def test_writes_records(self, tmp_path):
        log_file = tmp_path / "itc.log"
        itclock.enable_file_logging(log_file, level="WARNING")
        with pytest.raises(itclock.OverlappingOwnership):
            itclock.join(itclock.seed(), itclock.seed())
        flush()

        assert "overlapping identities" in log_file.read_text()


class TestJsonLogging:
    def test_one_object_per_line(self, capfd):
        itclock.enable_json_logging(level="WARNING")
        with pytest.raises(itclock.DisownedStamp):
            itclock.event(itclock.peek(itclock.seed()))

        data = json.loads(capfd.readouterr().err.strip())
        assert data["level"] == "WARNING"
        assert data["logger"] == "itclock.core.stamp"
        assert "disowned" in data["message"]
        assert "timestamp" in data

    def test_json_file(self, tmp_path):
        log_file = tmp_path / "itc.jsonl"
        itclock.enable_json_file_logging(log_file, level="DEBUG")
        itclock.encode_stamp(itclock.seed())
        flush()

        lines = log_file.read_text().strip().splitlines()
        messages = [json.loads(line)["message"] for line in lines]
        assert "Encoded stamp into 1 bytes" in messages

    def test_formatter_includes_exception(self):
        try:
            itclock.decode_stamp(b"")
        except itclock.InvalidEncoding:
            record = logging.LogRecord(
                name="itclock.codec",
                level=logging.ERROR,
                pathname=__file__,
                lineno=1,
                msg="decode failed",
                args=(),
                exc_info=sys.exc_info(),
            )

        data = json.loads(JsonFormatter().format(record))
        assert data["message"] == "decode failed"
        assert "InvalidEncoding" in data["exception"]


class TestConfigureFromEnv:
    def test_level(self):
        with mock.patch.dict(os.environ, {ENV_LEVEL: "debug"}, clear=True):
            itclock.configure_from_env()
        assert _get_logger().level == logging.DEBUG
        assert handlers_of(logging.StreamHandler)

    def test_file_without_level_logs_at_info(self, tmp_path):
        with mock.patch.dict(os.environ, {ENV_FILE: str(tmp_path / "env.log")}, clear=True):
            itclock.configure_from_env()
        assert _get_logger().level == logging.INFO
        assert handlers_of(RotatingFileHandler)

    def test_json(self, capfd):
        with mock.patch.dict(os.environ, {ENV_LEVEL: "INFO", ENV_JSON: "1"}, clear=True):
            itclock.configure_from_env()

        logging.getLogger(f"{LOGGER_NAME}.test").info("json env test")
        assert json.loads(capfd.readouterr().err.strip())["message"] == "json env test"

    def test_nothing_set(self):
        before = len(_get_logger().handlers)
        with mock.patch.dict(os.environ, {}, clear=True):
            itclock.configure_from_env()
        assert len(_get_logger().handlers) == before


class TestLevels:
    def test_set_level(self):
        itclock.set_level("ERROR")
        assert _get_logger().level == logging.ERROR
        itclock.set_level(logging.DEBUG)
        assert _get_logger().level == logging.DEBUG

    def test_module_level_filters_submodule(self, capfd):
        itclock.enable_console_logging(level="DEBUG")
        itclock.set_module_level("core.stamp", "CRITICAL")
        try:
            itclock.encode_stamp(itclock.fork(itclock.seed())[0])
        finally:
            itclock.set_module_level("core.stamp", "NOTSET")

        err = capfd.readouterr().err
        assert "fork One" not in err
        assert "Encoded stamp" in err

    def test_disable_logging(self, capfd):
        itclock.enable_console_logging(level="DEBUG")
        itclock.disable_logging()

        logging.getLogger(f"{LOGGER_NAME}.test").critical("should not appear")

        assert "should not appear" not in capfd.readouterr().err
        assert not [h for h in _get_logger().handlers if not isinstance(h, logging.NullHandler)]


class TestHelpers:
    def test_get_level(self):
        assert _get_level("info") == logging.INFO
        assert _get_level(logging.ERROR) == logging.ERROR
        assert _get_level("NOPE") == logging.INFO

    def test_clear_handlers_keeps_null_handler(self):
        _get_logger().addHandler(logging.StreamHandler())
        _clear_handlers()
        assert handlers_of(logging.NullHandler)
        assert not [h for h in _get_logger().handlers if not isinstance(h, logging.NullHandler)]
