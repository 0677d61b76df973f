"""
Secret scrubbing for log records and error messages.

Connection strings carry the shared access key and every request carries a
signed token. These helpers keep both out of log records and error messages.
"""

from __future__ import annotations

import re
from typing import Any

# Group 1 is kept, group 2 is the secret
SENSITIVE_PATTERNS = {
    "shared_access_key": r"(SharedAccessKey=)([^;]+)",
    "sas_signature": r"((?:^|[?&\s])sig=)([^&\s]+)",
}

# Header and setting names whose values are never logged
SENSITIVE_KEYS = {
    "authorization",
    "key_value",
    "shared_access_key",
    "sharedaccesskey",
    "connection_string",
    "password",
    "secret",
}


def redact_sensitive_data(text: str) -> str:
    """
    Mask shared access keys and SAS signatures inside a string.

    Args:
        text: Connection string, URL, token or free text

    Returns:
        String with secret values replaced with [REDACTED_*] placeholders
    """
    result = text
    for name, pattern in SENSITIVE_PATTERNS.items():
        result = re.sub(
            pattern,
            rf"\g<1>[REDACTED_{name.upper()}]",
            result,
            flags=re.IGNORECASE,
        )
    return result


def redact_dict(data: dict[str, Any]) -> dict[str, Any]:
    """
    Copy a mapping with the values of sensitive keys masked.

    Args:
        data: Dictionary potentially containing sensitive values (e.g. headers)

    Returns:
        A new mapping; nested dicts and lists of dicts are masked too
    """
    redacted: dict[str, Any] = {}
    for key, value in data.items():
        if key.lower() in SENSITIVE_KEYS:
            redacted[key] = "[REDACTED]"
        elif isinstance(value, dict):
            redacted[key] = redact_dict(value)
        elif isinstance(value, (list, tuple)):
            redacted[key] = [
                redact_dict(item) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            redacted[key] = value
    return redacted
