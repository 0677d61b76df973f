"""Tests for structured logging configuration."""

from __future__ import annotations

import io
import json
import logging

import pytest
from pythonjsonlogger.json import JsonFormatter

from notification_hubs.config import HubSettings
from notification_hubs.logging_config import (
    JSON_LOG_FORMAT,
    OperationIDFilter,
    configure_json_logging,
    configure_logging,
)
from notification_hubs.utils.operation_context import operation_scope

from conftest import CONNECTION_STRING


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def _json_logger(stream: io.StringIO) -> logging.Logger:
    handler = logging.StreamHandler(stream)
    handler.addFilter(OperationIDFilter())
    handler.setFormatter(
        JsonFormatter(fmt=JSON_LOG_FORMAT, rename_fields={"levelname": "level"}, timestamp=True)
    )
    test_logger = logging.getLogger("notification_hubs.tests.json")
    test_logger.handlers = [handler]
    test_logger.propagate = False
    test_logger.setLevel(logging.DEBUG)
    return test_logger


class TestOperationIDFilter:
    def test_default_operation_id(self) -> None:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)

        assert OperationIDFilter().filter(record) is True
        assert record.operation_id == "no-operation-id"

    def test_operation_id_from_scope(self) -> None:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)

        with operation_scope("op-123"):
            OperationIDFilter().filter(record)

        assert record.operation_id == "op-123"


class TestJsonOutput:
    def test_json_record_fields(self) -> None:
        """Each line is a JSON object with level, logger name and operation ID."""
        stream = io.StringIO()
        test_logger = _json_logger(stream)

        with operation_scope("op-456"):
            test_logger.info("Notification sent", extra={"notification_id": "42"})

        record = json.loads(stream.getvalue().strip())
        assert record["level"] == "INFO"
        assert record["name"] == "notification_hubs.tests.json"
        assert record["message"] == "Notification sent"
        assert record["operation_id"] == "op-456"
        assert record["notification_id"] == "42"
        assert "timestamp" in record


class TestConfigureJsonLogging:
    def test_installs_single_stdout_handler(self, restore_root_logger) -> None:
        configure_json_logging("debug", use_json=True)

        root = restore_root_logger
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler.formatter, JsonFormatter)
        assert any(isinstance(f, OperationIDFilter) for f in handler.filters)

    def test_text_output(self, restore_root_logger) -> None:
        configure_json_logging("WARNING", use_json=False)

        handler = restore_root_logger.handlers[0]
        assert not isinstance(handler.formatter, JsonFormatter)
        assert restore_root_logger.level == logging.WARNING

    def test_quiets_http_libraries(self, restore_root_logger) -> None:
        configure_json_logging("DEBUG")

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING


class TestConfigureLogging:
    """Logging follows the loaded hub settings."""

    def test_text_output_from_settings(self, restore_root_logger) -> None:
        settings = HubSettings(
            connection_string=CONNECTION_STRING,
            hub_path="testhub",
            log_level="warning",
            log_json=False,
        )

        configure_logging(settings)

        handler = restore_root_logger.handlers[0]
        assert restore_root_logger.level == logging.WARNING
        assert not isinstance(handler.formatter, JsonFormatter)

    def test_json_output_from_settings(self, restore_root_logger) -> None:
        settings = HubSettings(connection_string=CONNECTION_STRING, hub_path="testhub", log_level="DEBUG")

        configure_logging(settings)

        assert restore_root_logger.level == logging.DEBUG
        assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)
