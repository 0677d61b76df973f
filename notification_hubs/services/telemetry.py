"""Delivery telemetry: message IDs from `Location` and message details."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from pydantic import ValidationError

from notification_hubs.exceptions import RegistrationDecodeError
from notification_hubs.models.telemetry import (
    NotificationDetails,
    NotificationState,
    NotificationTelemetry,
)
from notification_hubs.services.registrations import SB_NS, parse_xml

if TYPE_CHECKING:
    from notification_hubs.services.transport import HubResponse

logger = logging.getLogger(__name__)

LOCATION_HEADER = "Location"
OUTCOME_COUNTS_SUFFIX = "OutcomeCounts"

_MESSAGE_ID_PATTERN = re.compile(r"/messages/(?P<id>.*)\?api-version=")

# Scalar children of <NotificationDetails> mapped to model fields
DETAILS_FIELDS = {
    "NotificationId": "notification_id",
    "Location": "location",
    "State": "state",
    "EnqueueTime": "enqueue_time",
    "StartTime": "start_time",
    "EndTime": "end_time",
    "NotificationBody": "notification_body",
    "TargetPlatforms": "target_platforms",
}


def telemetry_from_location(location: str | None) -> NotificationTelemetry:
    """
    Extract the message ID from a `Location` URL.

    Example:
        ``https://ns.servicebus.windows.net/hub/messages/1234?api-version=2015-01``
        yields message ID ``1234``.

    Returns:
        Telemetry with the ID, or empty telemetry when nothing matches
    """
    if not location:
        return NotificationTelemetry()

    match = _MESSAGE_ID_PATTERN.search(location)
    if match is None:
        logger.debug("Location header carries no message id", extra={"location": location})
        return NotificationTelemetry()

    return NotificationTelemetry(notification_message_id=match.group("id"))


def telemetry_from_response(response: HubResponse | None) -> NotificationTelemetry:
    """Telemetry for a send response; empty on Free/Basic tier hubs."""
    if response is None:
        return NotificationTelemetry()
    return telemetry_from_location(response.headers.get(LOCATION_HEADER))


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _parse_state(value: str) -> NotificationState:
    try:
        return NotificationState(value)
    except ValueError:
        logger.warning("Unknown notification state", extra={"state": value})
        return NotificationState.UNKNOWN


def decode_notification_details(data: bytes | str) -> NotificationDetails:
    """
    Decode a ``messages/{id}`` response.

    Every ``*OutcomeCounts`` child becomes an entry of ``outcomes`` keyed by
    its element name, e.g. ``ApnsOutcomeCounts``.

    Raises:
        RegistrationDecodeError: If the body is not a details document
    """
    root = parse_xml(data)
    if _local_name(root.tag) != "NotificationDetails":
        msg = f"expected NotificationDetails, got '{root.tag}'"
        raise RegistrationDecodeError(msg)

    values: dict[str, object] = {}
    outcomes: dict[str, list[dict[str, str]]] = {}

    for child in root:
        name = _local_name(child.tag)
        text = (child.text or "").strip()

        if name in DETAILS_FIELDS:
            if not text:
                continue
            values[DETAILS_FIELDS[name]] = _parse_state(text) if name == "State" else text
        elif name.endswith(OUTCOME_COUNTS_SUFFIX):
            outcomes[name] = [
                {
                    "name": (outcome.findtext(f"{{{SB_NS}}}Name") or "").strip(),
                    "count": (outcome.findtext(f"{{{SB_NS}}}Count") or "0").strip(),
                }
                for outcome in child.iter(f"{{{SB_NS}}}Outcome")
            ]

    try:
        return NotificationDetails.model_validate({**values, "outcomes": outcomes})
    except ValidationError as e:
        msg = f"invalid notification details: {e}"
        raise RegistrationDecodeError(msg) from e
