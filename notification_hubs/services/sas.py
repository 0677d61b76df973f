"""Shared access signature (SAS) token generation."""

from __future__ import annotations

import base64
import hashlib
import hmac
import time
from typing import TYPE_CHECKING, Protocol
from urllib.parse import quote_plus, urlencode

if TYPE_CHECKING:
    from notification_hubs.services.connection import ConnectionDescriptor

TOKEN_PREFIX = "SharedAccessSignature "
TOKEN_TTL_SECONDS = 3600


class Clock(Protocol):
    """Source of the current time in unix seconds."""

    def now(self) -> int: ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> int:
        return int(time.time())


def expiry_from(now: int) -> int:
    """Expiry horizon shared by the token and the APNs expiration header."""
    return now + TOKEN_TTL_SECONDS


def generate_sas_token(descriptor: ConnectionDescriptor, expiry: int) -> str:
    """
    Build a SAS token for the hub namespace.

    The signed resource is the lower-cased ``scheme://host`` of the
    namespace, never the URL being called. The string to sign is that
    resource query-escaped, a newline, and the decimal expiry. Parameters
    are emitted in sorted order (se, sig, skn, sr) and each value is
    query-escaped once.

    An empty key still signs; the hub rejects the request instead.

    Args:
        descriptor: Parsed connection descriptor
        expiry: Unix time at which the token expires

    Returns:
        Value for the ``Authorization`` header
    """
    target_uri = descriptor.base_url.lower()
    string_to_sign = f"{quote_plus(target_uri)}\n{expiry}"

    digest = hmac.new(
        descriptor.key_value.encode("utf-8"),
        string_to_sign.encode("utf-8"),
        hashlib.sha256,
    ).digest()
    signature = base64.b64encode(digest).decode("ascii")

    params = {
        "se": str(expiry),
        "sig": signature,
        "skn": descriptor.key_name,
        "sr": target_uri,
    }
    return TOKEN_PREFIX + urlencode(sorted(params.items()))


class SasTokenGenerator:
    """Signs tokens for one descriptor using an injected clock."""

    def __init__(self, descriptor: ConnectionDescriptor, clock: Clock | None = None) -> None:
        self.descriptor = descriptor
        self.clock = clock or SystemClock()

    def token(self, now: int | None = None) -> str:
        """Token expiring one hour after ``now`` (the clock's time if omitted)."""
        if now is None:
            now = self.clock.now()
        return generate_sas_token(self.descriptor, expiry_from(now))
