"""Notification dispatch routing.

Pure builders that turn a notification plus routing options into the
method, URL, headers and body of a hub request. Nothing here touches the
network; validation failures are raised before a transport is involved.
"""

from __future__ import annotations

import json
import logging
import posixpath
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from notification_hubs.exceptions import NotificationValidationError
from notification_hubs.models.notification import JSON_CONTENT_TYPE, NotificationFormat
from notification_hubs.services.sas import expiry_from

if TYPE_CHECKING:
    from collections.abc import Sequence

    from notification_hubs.models.notification import Notification

logger = logging.getLogger(__name__)

# HTTP methods
DELETE = "DELETE"
GET = "GET"
PATCH = "PATCH"
POST = "POST"
PUT = "PUT"

API_VERSION_PARAM = "api-version"
API_VERSION = "2015-01"
TELEMETRY_API_VERSION = "2016-07"
DIRECT_PARAM = "direct"

MESSAGES_PATH = "messages"
SCHEDULED_PATH = "schedulednotifications"
BATCH_PATH = "$batch"

MAX_BATCH_HANDLES = 1000
SCHEDULE_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Header names
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_FORMAT = "ServiceBusNotification-Format"
HEADER_TAGS = "ServiceBusNotification-Tags"
HEADER_DEVICE_HANDLE = "ServiceBusNotification-DeviceHandle"
HEADER_SCHEDULE_TIME = "ServiceBusNotification-ScheduleTime"
HEADER_APNS_EXPIRATION = "X-Apns-Expiration"
HEADER_APNS_PUSH_TYPE = "X-Apns-Push-Type"
HEADER_APNS_PRIORITY = "X-Apns-Priority"

APNS_BACKGROUND = ("background", "5")
APNS_ALERT = ("alert", "10")


@dataclass(frozen=True)
class HubURL:
    """Base URL of one hub: ``scheme://host/<hub_path>``."""

    base_url: str
    hub_path: str

    def build(self, *segments: str, api_version: str = API_VERSION, direct: bool = False) -> str:
        """URL for a hub resource with the API version (and ``direct``) query."""
        path = posixpath.join("/", self.hub_path.strip("/"), *segments)
        query = {API_VERSION_PARAM: api_version}
        if direct:
            query[DIRECT_PARAM] = ""
        return f"{self.base_url}{path}?{urlencode(sorted(query.items()))}"


@dataclass(frozen=True)
class DispatchRequest:
    """A fully routed request, waiting for its Authorization header."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None


def is_ios_background_notification(payload: bytes) -> bool:
    """True when the payload decodes to ``{"aps": {"content-available": 1}}``.

    Anything that does not decode to that shape counts as an alert.
    """
    try:
        decoded = json.loads(payload)
    except (ValueError, UnicodeDecodeError):
        return False

    if not isinstance(decoded, dict):
        return False
    aps = decoded.get("aps")
    if not isinstance(aps, dict):
        return False

    content_available = aps.get("content-available")
    return (
        isinstance(content_available, int)
        and not isinstance(content_available, bool)
        and content_available == 1
    )


def apns_push_headers(notification: Notification) -> dict[str, str]:
    """Push type and priority headers required by iOS 13+ for Apple payloads."""
    if notification.format is not NotificationFormat.APPLE:
        return {}

    push_type, priority = (
        APNS_BACKGROUND if is_ios_background_notification(notification.payload) else APNS_ALERT
    )
    return {HEADER_APNS_PUSH_TYPE: push_type, HEADER_APNS_PRIORITY: priority}


def _base_headers(notification: Notification, now: int, content_type: str | None = None) -> dict[str, str]:
    headers = {
        HEADER_CONTENT_TYPE: content_type or notification.content_type,
        HEADER_FORMAT: notification.format.value,
        HEADER_APNS_EXPIRATION: str(expiry_from(now)),
    }
    headers.update(apns_push_headers(notification))
    return headers


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_schedule_time(deliver_at: datetime) -> str:
    """Second precision, UTC, without a zone suffix."""
    return _as_utc(deliver_at).strftime(SCHEDULE_TIME_FORMAT)


def build_send_request(
    hub_url: HubURL,
    notification: Notification,
    *,
    now: int,
    tags: str | None = None,
    deliver_at: datetime | None = None,
) -> DispatchRequest:
    """
    Route a tag-targeted (or broadcast) send.

    Args:
        hub_url: Hub base URL
        notification: Notification to send
        now: Current unix time, shared with the SAS token of this call
        tags: Optional tag expression, e.g. ``"(follows_RedSox || follows_Cardinals) && location_Boston"``
        deliver_at: Optional delivery time; must be after ``now``

    Returns:
        Routed request for ``messages`` or ``schedulednotifications``

    Raises:
        NotificationValidationError: If ``deliver_at`` is not in the future
    """
    headers = _base_headers(notification, now)

    if tags:
        headers[HEADER_TAGS] = tags

    if deliver_at is None:
        url = hub_url.build(MESSAGES_PATH)
    else:
        if _as_utc(deliver_at).timestamp() <= now:
            msg = "cannot schedule a notification in the past"
            raise NotificationValidationError(
                msg,
                context={"deliver_at": _as_utc(deliver_at).isoformat(), "now": now},
            )
        url = hub_url.build(SCHEDULED_PATH)
        headers[HEADER_SCHEDULE_TIME] = format_schedule_time(deliver_at)

    return DispatchRequest(method=POST, url=url, headers=headers, body=notification.payload)


def build_direct_request(
    hub_url: HubURL,
    notification: Notification,
    device_handle: str,
    *,
    now: int,
) -> DispatchRequest:
    """Route a send to a single device handle, bypassing registrations."""
    headers = _base_headers(notification, now)
    headers[HEADER_DEVICE_HANDLE] = device_handle

    return DispatchRequest(
        method=POST,
        url=hub_url.build(MESSAGES_PATH, direct=True),
        headers=headers,
        body=notification.payload,
    )


def encode_multipart(parts: Sequence[tuple[str, str, bytes]], boundary: str) -> bytes:
    """Encode ``(name, content_type, data)`` parts as an inline multipart body."""
    lines: list[bytes] = []
    for name, content_type, data in parts:
        lines.append(f"--{boundary}\r\n".encode("ascii"))
        lines.append(f"Content-Disposition: inline; name={name}\r\n".encode("ascii"))
        lines.append(f"Content-Type: {content_type}\r\n\r\n".encode("ascii"))
        lines.append(data)
        lines.append(b"\r\n")
    lines.append(f"--{boundary}--\r\n".encode("ascii"))
    return b"".join(lines)


def build_direct_batch_request(
    hub_url: HubURL,
    notification: Notification,
    device_handles: Sequence[str],
    *,
    now: int,
    boundary: str | None = None,
) -> DispatchRequest:
    """
    Route a send to up to 1000 device handles in one multipart request.

    Raises:
        NotificationValidationError: If more than 1000 handles are given
    """
    if len(device_handles) > MAX_BATCH_HANDLES:
        msg = f"cannot batch send to more than {MAX_BATCH_HANDLES} devices"
        raise NotificationValidationError(msg, context={"handles": len(device_handles)})

    boundary = boundary or uuid.uuid4().hex
    body = encode_multipart(
        [
            ("notification", notification.content_type, notification.payload),
            ("devices", JSON_CONTENT_TYPE, json.dumps(list(device_handles)).encode("utf-8")),
        ],
        boundary,
    )
    headers = _base_headers(
        notification,
        now,
        content_type=f"multipart/form-data; boundary={boundary}",
    )

    return DispatchRequest(
        method=POST,
        url=hub_url.build(MESSAGES_PATH, BATCH_PATH, direct=True),
        headers=headers,
        body=body,
    )
