"""Structured logging configuration with JSON output."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

from pythonjsonlogger.json import JsonFormatter

from notification_hubs.utils.operation_context import get_operation_id

if TYPE_CHECKING:
    from notification_hubs.config import HubSettings

JSON_LOG_FORMAT = "%(timestamp)s %(levelname)s %(name)s %(message)s %(operation_id)s"
TEXT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(operation_id)s] - %(message)s"


class OperationIDFilter(logging.Filter):
    """Add the current client operation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.operation_id = get_operation_id() or "no-operation-id"
        return True


def configure_json_logging(
    log_level: str = "INFO",
    use_json: bool = True,
) -> None:
    """Configure logging for applications embedding the client.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_json: Whether to use JSON output (True) or text output (False)
    """
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(level)
    stream_handler.addFilter(OperationIDFilter())

    if use_json:
        stream_handler.setFormatter(
            JsonFormatter(
                fmt=JSON_LOG_FORMAT,
                rename_fields={"levelname": "level"},
                timestamp=True,
            )
        )
    else:
        stream_handler.setFormatter(
            logging.Formatter(fmt=TEXT_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )

    root_logger.addHandler(stream_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def configure_logging(settings: HubSettings) -> None:
    """Apply the ``log_level`` and ``log_json`` settings to the root logger."""
    configure_json_logging(settings.log_level, use_json=settings.log_json)
