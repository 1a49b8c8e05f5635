"""
Logging setup tests.
"""

import io
import json
import logging
import sys

from switchyard.config import Settings
from switchyard.logs import (
    JsonFormatter,
    LocalFormatter,
    RequestContextFilter,
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_request_context,
)


def _record(message="hello", level=logging.INFO, **extra):
    record = logging.LogRecord("switchyard.test", level, __file__, 1, message, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRequestContext:

    def test_bind_and_clear(self):
        token = bind_request_context(request_id="r1", entry_point="po", function_name=None)
        assert get_request_context() == {"request_id": "r1", "entry_point": "po"}
        clear_request_context(token)
        assert get_request_context() == {}

    def test_nested_binding(self):
        outer = bind_request_context(entry_point="po")
        inner = bind_request_context(request_id="r2")
        assert get_request_context() == {"entry_point": "po", "request_id": "r2"}
        clear_request_context(inner)
        assert get_request_context() == {"entry_point": "po"}
        clear_request_context(outer)

    def test_filter_copies_context(self):
        token = bind_request_context(request_id="r3")
        record = _record()
        assert RequestContextFilter().filter(record) is True
        assert record.context == {"request_id": "r3"}
        clear_request_context(token)


class TestFormatters:

    def test_json_formatter(self):
        record = _record("served %s", status=200, context={"request_id": "r1"})
        record.args = ("po",)

        entry = json.loads(JsonFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "switchyard.test"
        assert entry["message"] == "served po"
        assert entry["request_id"] == "r1"
        assert entry["status"] == 200
        assert "timestamp" in entry

    def test_json_formatter_exception(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.LogRecord("switchyard.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

        entry = json.loads(JsonFormatter().format(record))
        assert "ValueError: bad" in entry["exception"]

    def test_local_formatter(self):
        line = LocalFormatter(color=False).format(_record("hello", context={"request_id": "r9"}))
        assert "INFO" in line
        assert "switchyard.test: hello" in line
        assert "[r9]" in line
        assert "\033[" not in line


class TestConfigureLogging:

    def test_json_output(self):
        stream = io.StringIO()
        configure_logging(Settings(log_level="INFO"), stream=stream)

        token = bind_request_context(request_id="abc")
        logging.getLogger("switchyard.lifecycle").info("ready")
        clear_request_context(token)

        entry = json.loads(stream.getvalue().strip())
        assert entry["message"] == "ready"
        assert entry["request_id"] == "abc"

    def test_level_filtering(self):
        stream = io.StringIO()
        configure_logging(stream=stream)

        logging.getLogger("switchyard.router").info("hidden")
        logging.getLogger("switchyard.router").warning("shown")

        lines = stream.getvalue().strip().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["message"] == "shown"

    def test_reconfigure_replaces_handler(self):
        logger = configure_logging(stream=io.StringIO())
        configure_logging(stream=io.StringIO())
        assert sum(1 for h in logger.handlers if getattr(h, "_switchyard", False)) == 1

    def test_local_formatter_selected(self):
        stream = io.StringIO()
        configure_logging(Settings(local=True), level="DEBUG", stream=stream)
        logging.getLogger("switchyard.devserver").debug("local line")
        assert "switchyard.devserver: local line" in stream.getvalue()
