"""
Error handling utilities for the notification hub client.

Failures of client operations are logged once, with their context, and then
propagated unchanged.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from notification_hubs.exceptions import NotificationHubError, NotificationValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _error_extra(operation_name: str, func: Callable[..., Any], e: Exception) -> dict[str, object]:
    extra: dict[str, object] = {
        "operation": operation_name,
        "error_type": type(e).__name__,
        "function": func.__name__,
    }
    if isinstance(e, NotificationHubError):
        extra.update({k: v for k, v in e.context.items() if k not in extra})
    return extra


def log_errors(operation_name: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Log a failed operation and re-raise.

    The record carries the operation and function names, the exception type
    and any context attached to a NotificationHubError. Validation errors
    are logged as warnings without a traceback.

    Args:
        operation_name: Operation name stamped on the log record

    Returns:
        Decorator usable on sync and async callables

    Example:
        @log_errors("send")
        async def send(self, notification: Notification) -> SendResult:
            ...
    """
    def _log(func: Callable[..., Any], e: Exception) -> None:
        extra = _error_extra(operation_name, func, e)
        if isinstance(e, NotificationValidationError):
            logger.warning(f"Rejected {operation_name}: {e}", extra=extra)
        else:
            logger.exception(f"Error in {operation_name}", extra=extra)

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                _log(func, e)
                raise

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                _log(func, e)
                raise

        if inspect.iscoroutinefunction(func):
            return async_wrapper  # type: ignore[return-value]
        return sync_wrapper  # type: ignore[return-value]

    return decorator
