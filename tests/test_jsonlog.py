"""Tests for twitchclient/logging/jsonlog.py: JSON-lines logging."""

import io
import json
import logging
import sys
import time

import pytest

from twitchclient.logging.jsonlog import (
    ROOT_LOGGER,
    DispatchTimer,
    JSONFormatter,
    generate_request_id,
    request_id_var,
    setup_logging,
)


def _record(msg="test", level=logging.INFO, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="twitchclient.test", level=level, pathname="",
        lineno=0, msg=msg, args=(), exc_info=exc_info,
    )


@pytest.fixture
def restore_package_logger():
    logger = logging.getLogger(ROOT_LOGGER)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


class TestJSONFormatter:

    def test_output_is_valid_json(self):
        parsed = json.loads(JSONFormatter().format(_record("hello")))
        assert parsed["message"] == "hello"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "twitchclient.test"
        assert "timestamp" in parsed
        assert "thread" in parsed

    def test_includes_request_id(self):
        token = request_id_var.set("req-abc123")
        try:
            parsed = json.loads(JSONFormatter().format(_record()))
            assert parsed["request_id"] == "req-abc123"
        finally:
            request_id_var.reset(token)

    def test_empty_request_id_default(self):
        parsed = json.loads(JSONFormatter().format(_record()))
        assert parsed["request_id"] == ""

    def test_includes_context(self):
        record = _record()
        record.context = {"module": "helix", "attempts": 2}
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["module"] == "helix"
        assert parsed["attempts"] == 2

    def test_context_cannot_shadow_base_fields(self):
        record = _record("real")
        record.context = {"message": "forged", "level": "DEBUG", "queue": "chat"}
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["message"] == "real"
        assert parsed["level"] == "INFO"
        assert parsed["queue"] == "chat"

    def test_includes_exception(self):
        try:
            raise ValueError("broken")
        except ValueError:
            record = _record(level=logging.ERROR, exc_info=sys.exc_info())
        parsed = json.loads(JSONFormatter().format(record))
        assert "ValueError: broken" in parsed["exception"]


class TestGenerateRequestId:

    def test_length(self):
        assert len(generate_request_id()) == 12

    def test_uniqueness(self):
        ids = {generate_request_id() for _ in range(100)}
        assert len(ids) == 100

    def test_hex_chars_only(self):
        assert all(c in "0123456789abcdef" for c in generate_request_id())


class TestDispatchTimer:

    def test_measures_elapsed(self):
        with DispatchTimer() as timer:
            time.sleep(0.002)
        assert timer.elapsed_ms > 0
        assert isinstance(timer.elapsed_ms, float)

    def test_frozen_after_exit(self):
        ticks = iter([10.0, 10.25])
        with DispatchTimer(clock=lambda: next(ticks)) as timer:
            pass
        assert timer.elapsed_ms == 250.0
        assert timer.elapsed_ms == 250.0

    def test_readable_while_running(self):
        now = [5.0]
        timer = DispatchTimer(clock=lambda: now[0])
        assert timer.elapsed_ms == 0.0
        with timer:
            now[0] = 5.1
            assert timer.elapsed_ms == 100.0


class TestSetupLogging:

    def test_creates_stdout_handler(self, override_settings, restore_package_logger):
        override_settings(TWITCH_LOG_FILE="", TWITCH_LOG_LEVEL="debug")
        setup_logging()
        logger = restore_package_logger
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

    def test_adds_file_handler(self, override_settings, restore_package_logger, tmp_path):
        log_file = tmp_path / "twitchclient.log"
        override_settings(TWITCH_LOG_FILE=str(log_file))
        setup_logging()
        logger = restore_package_logger
        try:
            assert any(isinstance(h, logging.FileHandler) for h in logger.handlers)
            logging.getLogger("twitchclient.modules.rest").info("written")
            for h in logger.handlers:
                h.flush()
            line = log_file.read_text().strip().splitlines()[-1]
            assert json.loads(line)["message"] == "written"
        finally:
            for h in logger.handlers:
                if isinstance(h, logging.FileHandler):
                    h.close()

    def test_writes_json_lines_to_stream(self, override_settings, restore_package_logger):
        override_settings(TWITCH_LOG_FILE="", TWITCH_LOG_LEVEL="info")
        stream = io.StringIO()
        logger = setup_logging(stream=stream)
        assert logger is restore_package_logger
        logging.getLogger("twitchclient.dispatch.queue").info(
            "Queue closed", extra={"context": {"queue": "chat"}}
        )
        entry = json.loads(stream.getvalue().strip())
        assert entry["message"] == "Queue closed"
        assert entry["queue"] == "chat"
        assert entry["logger"] == "twitchclient.dispatch.queue"

    def test_reconfiguring_replaces_handlers(self, override_settings, restore_package_logger):
        override_settings(TWITCH_LOG_FILE="")
        first = io.StringIO()
        setup_logging(stream=first)
        second = io.StringIO()
        setup_logging(stream=second)
        assert len(restore_package_logger.handlers) == 1
        logging.getLogger("twitchclient").warning("once")
        assert first.getvalue() == ""
        assert "once" in second.getvalue()
