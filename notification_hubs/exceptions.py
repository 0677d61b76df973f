"""
Custom exception classes with context for the notification hub client.

All exceptions inherit from NotificationHubError and support attaching
contextual information for better debugging and logging.
"""

from __future__ import annotations


class NotificationHubError(Exception):
    """
    Base exception for the notification hub client.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary with additional context for logging/debugging
    """

    def __init__(self, message: str, context: dict[str, object] | None = None):
        """
        Initialize exception with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dictionary with contextual information
                    (operation name, URL, status code, etc.)
        """
        super().__init__(message)
        self.context = context or {}


class NotificationValidationError(NotificationHubError):
    """
    Input validation failed before any request was made.

    Raised for unknown notification formats, unsupported registration
    platforms, oversized direct batches and schedule times in the past.

    Example:
        raise NotificationValidationError(
            "cannot batch send to more than 1000 devices",
            context={"operation": "send_direct_batch", "handles": 1001}
        )
    """


class RegistrationDecodeError(NotificationHubError):
    """
    A hub response body (registration, installation or message details)
    could not be decoded.

    Raised for malformed XML/JSON, unparsable expiration timestamps and
    registration descriptions without a device handle.

    Example:
        raise RegistrationDecodeError(
            "unparsable expiration time",
            context={"value": "31/12/9999", "registration_id": "8247..."}
        )
    """


class TransportError(NotificationHubError):
    """
    The HTTP exchange with the hub failed.

    Raised on network failures and on non-2xx responses. The response
    status and body are kept when the server answered.

    Example:
        raise TransportError(
            "unexpected response status code: 401",
            status_code=401,
            body=b"<Error>...</Error>",
            context={"operation": "send", "method": "POST"}
        )
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: bytes | None = None,
        context: dict[str, object] | None = None,
    ):
        super().__init__(message, context=context)
        self.status_code = status_code
        self.body = body


class ConfigurationError(NotificationHubError):
    """
    Configuration error.

    Raised when settings loading, validation, or parsing fails.

    Example:
        raise ConfigurationError(
            "Missing required configuration key",
            context={"key": "connection_string", "config_file": "/etc/hub.yaml"}
        )
    """
