"""Tests for logging setup."""

import json
import logging

import pytest
import structlog

from acapbuild.core.logging import NOISY_LOGGERS, setup_logging
from acapbuild.core.structlog_logger import StructlogMixin, get_struct_logger


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def _flush():
    for handler in logging.getLogger().handlers:
        handler.flush()


class TestSetupLogging:
    """Test handler configuration."""

    def test_level_from_name(self):
        setup_logging("info")
        assert logging.getLogger().level == logging.INFO

    def test_console_handler_only(self):
        setup_logging(logging.WARNING)
        assert len(logging.getLogger().handlers) == 1

    def test_json_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "acapbuild.json"
        setup_logging(logging.INFO, log_file=log_file)

        get_struct_logger("acapbuild.test").info("build_started", targets=["mips"])
        logging.getLogger("acapbuild.plain").warning("plain %s", "message")
        _flush()

        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert records[0]["event"] == "build_started"
        assert records[0]["targets"] == ["mips"]
        assert records[0]["level"] == "info"
        assert records[1]["event"] == "plain message"

    def test_level_filters_file_output(self, tmp_path):
        log_file = tmp_path / "acapbuild.json"
        setup_logging(logging.WARNING, log_file=log_file)
        get_struct_logger("acapbuild.test").info("hidden")
        _flush()
        assert not log_file.exists() or log_file.read_text() == ""

    def test_noisy_loggers_quietened(self):
        setup_logging(logging.DEBUG)
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING


class TestStructlogMixin:
    """Test the service logger mixin."""

    def test_logger_bound_to_service(self, tmp_path):
        log_file = tmp_path / "acapbuild.json"
        setup_logging(logging.DEBUG, log_file=log_file)

        class Service(StructlogMixin):
            pass

        Service().log_operation("assemble", target="mips").info("package_written")
        _flush()

        record = json.loads(log_file.read_text().splitlines()[-1])
        assert record["service"] == "Service"
        assert record["operation"] == "assemble"
        assert record["target"] == "mips"
