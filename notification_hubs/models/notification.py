"""Notification formats, target platforms and the outbound notification value."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from notification_hubs.exceptions import NotificationValidationError

JSON_CONTENT_TYPE = "application/json"
XML_CONTENT_TYPE = "application/xml"


class NotificationFormat(str, Enum):
    """Wire format of a notification (`ServiceBusNotification-Format`)."""

    TEMPLATE = "template"
    APPLE = "apple"
    GCM = "gcm"
    ANDROID = "gcm"  # alias: Android devices register through GCM/FCM
    BAIDU = "baidu"
    KINDLE = "adm"
    WINDOWS = "windows"
    WINDOWS_PHONE = "windowsphone"

    @property
    def content_type(self) -> str:
        """Content-Type sent with a payload of this format."""
        if self in (NotificationFormat.WINDOWS, NotificationFormat.WINDOWS_PHONE):
            return XML_CONTENT_TYPE
        return JSON_CONTENT_TYPE


class TargetPlatform(str, Enum):
    """Platform a registration targets, template variants included."""

    ADM = "adm"
    ADM_TEMPLATE = "admtemplate"
    APPLE = "apple"
    APPLE_TEMPLATE = "appletemplate"
    BAIDU = "baidu"
    BAIDU_TEMPLATE = "baidutemplate"
    GCM = "gcm"
    GCM_TEMPLATE = "gcmtemplate"
    TEMPLATE = "template"
    WINDOWS_PHONE = "windowsphone"
    WINDOWS_PHONE_TEMPLATE = "windowsphonetemplate"
    WINDOWS = "windows"
    WINDOWS_TEMPLATE = "windowstemplate"


@dataclass(frozen=True)
class Notification:
    """A message that can be sent through the hub.

    The format is validated on construction; plain strings are accepted for
    both fields and coerced to the enum and to UTF-8 bytes. Other payload
    types are rejected.
    """

    format: NotificationFormat
    payload: bytes = field(repr=False)

    def __post_init__(self) -> None:
        try:
            fmt = NotificationFormat(self.format)
        except ValueError:
            msg = f"unknown format '{self.format}'"
            raise NotificationValidationError(msg, context={"format": str(self.format)}) from None
        object.__setattr__(self, "format", fmt)

        if isinstance(self.payload, str):
            object.__setattr__(self, "payload", self.payload.encode("utf-8"))
        elif isinstance(self.payload, (bytearray, memoryview)):
            object.__setattr__(self, "payload", bytes(self.payload))
        elif not isinstance(self.payload, bytes):
            msg = f"payload must be str or bytes, not {type(self.payload).__name__}"
            raise NotificationValidationError(msg, context={"format": fmt.value})

    @property
    def content_type(self) -> str:
        return self.format.content_type
