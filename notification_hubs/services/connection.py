"""Connection string parsing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urlsplit

from notification_hubs.utils.redaction import redact_sensitive_data

logger = logging.getLogger(__name__)

PARAM_ENDPOINT = "Endpoint"
PARAM_KEY_NAME = "SharedAccessKeyName"
PARAM_KEY_VALUE = "SharedAccessKey"

SCHEME_SERVICE_BUS = "sb"


class ConnectionScheme(str, Enum):
    """URL scheme used to reach the hub."""

    SECURE = "https"
    PLAIN = "http"


@dataclass(frozen=True)
class ConnectionDescriptor:
    """Endpoint and credentials parsed from a connection string."""

    host: str
    scheme: ConnectionScheme = ConnectionScheme.SECURE
    key_name: str = ""
    key_value: str = field(default="", repr=False)

    @property
    def base_url(self) -> str:
        """Scheme and host only, e.g. ``https://myhub-ns.servicebus.windows.net``."""
        return f"{self.scheme.value}://{self.host}"


def _parse_scheme(raw: str) -> ConnectionScheme:
    # Service Bus endpoints are advertised as sb:// but served over https
    if raw in ("", SCHEME_SERVICE_BUS):
        return ConnectionScheme.SECURE
    try:
        return ConnectionScheme(raw.lower())
    except ValueError:
        logger.warning("Unknown endpoint scheme, using https", extra={"scheme": raw})
        return ConnectionScheme.SECURE


def parse_connection_string(connection_string: str) -> ConnectionDescriptor:
    """
    Parse a hub connection string.

    Segments are ``Key=Value`` pairs separated by ``;`` in any order:
    ``Endpoint=sb://<host>/;SharedAccessKeyName=<name>;SharedAccessKey=<value>``.
    Unknown segments are ignored. Missing segments leave empty values so a
    malformed string yields requests the hub rejects instead of a crash here.

    Args:
        connection_string: Connection string from the hub's access policies

    Returns:
        Parsed, immutable connection descriptor
    """
    host = ""
    scheme = ConnectionScheme.SECURE
    key_name = ""
    key_value = ""

    for segment in connection_string.split(";"):
        name, sep, value = segment.strip().partition("=")
        if not sep:
            continue

        if name == PARAM_ENDPOINT:
            endpoint = urlsplit(value)
            if endpoint.netloc:
                host = endpoint.netloc
                scheme = _parse_scheme(endpoint.scheme)
            else:
                # Bare host without scheme
                host = endpoint.path.strip("/")
        elif name == PARAM_KEY_NAME:
            key_name = value
        elif name == PARAM_KEY_VALUE:
            key_value = value

    if not host or not key_name or not key_value:
        logger.warning(
            "Connection string is incomplete",
            extra={
                "connection_string": redact_sensitive_data(connection_string),
                "has_endpoint": bool(host),
                "has_key_name": bool(key_name),
                "has_key": bool(key_value),
            },
        )

    return ConnectionDescriptor(host=host, scheme=scheme, key_name=key_name, key_value=key_value)
