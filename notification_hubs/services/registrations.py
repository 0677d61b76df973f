"""Registration content normalizer and Atom entry codec.

The hub answers registration calls with Atom entries whose ``<content>``
holds exactly one platform specific description element. Decoding first
classifies that element into one of the raw description models, then
``normalize`` folds it into the canonical ``RegisteredDevice``.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from notification_hubs.exceptions import NotificationValidationError, RegistrationDecodeError
from notification_hubs.models.notification import NotificationFormat, TargetPlatform
from notification_hubs.models.registration import (
    AppleRegistrationDescription,
    AppleTemplateRegistrationDescription,
    GcmRegistrationDescription,
    GcmTemplateRegistrationDescription,
    RegisteredDevice,
    RegistrationContent,
    RegistrationDescription,
    RegistrationEntryError,
    RegistrationResult,
    Registrations,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from notification_hubs.models.registration import (
        Registration,
        TemplateRegistration,
    )

logger = logging.getLogger(__name__)

ATOM_NS = "http://www.w3.org/2005/Atom"
SB_NS = "http://schemas.microsoft.com/netservices/2010/10/servicebus/connect"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

REGISTRATION_CONTENT_TYPE = "application/atom+xml;type=entry;charset=utf-8"
REGISTRATIONS_PATH = "registrations"

# Classification order; the first description element found wins
DESCRIPTION_TYPES: tuple[type[RegistrationDescription], ...] = (
    AppleTemplateRegistrationDescription,
    AppleRegistrationDescription,
    GcmTemplateRegistrationDescription,
    GcmRegistrationDescription,
)

# Description element children mapped to model fields
DESCRIPTION_FIELDS = {
    "RegistrationId": "registration_id",
    "ETag": "etag",
    "Tags": "tags_string",
    "ExpirationTime": "expiration_time_string",
    "DeviceToken": "device_token",
    "GcmRegistrationId": "gcm_registration_id",
    "BodyTemplate": "body_template",
}

EXPIRATION_TIME_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%S.%f",
)
_EXPIRATION_TIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z?$")

_description_adapter: TypeAdapter[RegistrationDescription] = TypeAdapter(RegistrationDescription)


def _atom(name: str) -> str:
    return f"{{{ATOM_NS}}}{name}"


def _sb(name: str) -> str:
    return f"{{{SB_NS}}}{name}"


def _child_text(parent: ET.Element, tag: str) -> str | None:
    child = parent.find(tag)
    if child is None:
        return None
    return child.text or ""


def parse_xml(data: bytes | str) -> ET.Element:
    """Parse a hub XML document, raising RegistrationDecodeError when malformed."""
    try:
        return ET.fromstring(data)
    except ET.ParseError as e:
        msg = f"malformed registration XML: {e}"
        raise RegistrationDecodeError(msg) from e


def parse_expiration_time(value: str | None) -> datetime | None:
    """
    Parse a registration expiration timestamp as UTC.

    The hub forwards whatever the push service reported, so both
    ``2016-08-30T08:19:54.000Z`` and ``2016-08-30T08:19:54.000`` occur.
    The zoned form is tried first.

    Args:
        value: Raw ``ExpirationTime`` text, or None when the element is absent

    Returns:
        Timezone aware UTC datetime, or None when no value was given

    Raises:
        RegistrationDecodeError: If neither format matches
    """
    if value is None or not value.strip():
        return None

    value = value.strip()
    if _EXPIRATION_TIME_PATTERN.match(value):
        for fmt in EXPIRATION_TIME_FORMATS:
            try:
                return datetime.strptime(value, fmt).replace(tzinfo=UTC)
            except ValueError:
                continue

    msg = f"unparsable expiration time '{value}'"
    raise RegistrationDecodeError(msg, context={"expiration_time": value})


def parse_tags(value: str | None) -> list[str]:
    """Split a comma-joined tag string; an empty or missing string has no tags."""
    if not value:
        return []
    return [tag.strip() for tag in value.split(",") if tag.strip()]


def description_from_fields(fields: dict[str, str]) -> RegistrationDescription:
    """
    Build a raw description model, selected by its ``kind`` field.

    Raises:
        RegistrationDecodeError: If ``kind`` names no known description or a
            field does not validate
    """
    try:
        return _description_adapter.validate_python(fields)
    except ValidationError as e:
        msg = f"invalid registration description: {e}"
        raise RegistrationDecodeError(msg, context={"kind": fields.get("kind")}) from e


def decode_description(content: ET.Element | None) -> RegistrationDescription | None:
    """
    Classify the description element inside an Atom ``<content>``.

    Returns:
        The raw description model, or None when no known element is present
    """
    if content is None:
        return None

    for description_type in DESCRIPTION_TYPES:
        kind = description_type.model_fields["kind"].default
        element = content.find(_sb(kind))
        if element is None:
            continue

        values = {"kind": kind}
        for tag, field_name in DESCRIPTION_FIELDS.items():
            if field_name not in description_type.model_fields:
                continue
            text = _child_text(element, _sb(tag))
            if text is not None:
                values[field_name] = text if tag == "BodyTemplate" else text.strip()

        return description_from_fields(values)

    return None


def _device_handle(description: RegistrationDescription) -> str:
    if isinstance(description, (AppleRegistrationDescription, AppleTemplateRegistrationDescription)):
        handle = description.device_token
    else:
        handle = description.gcm_registration_id

    if not handle:
        msg = f"{description.kind} is missing its device handle"
        raise RegistrationDecodeError(
            msg,
            context={"kind": description.kind, "registration_id": description.registration_id},
        )
    return handle


def _classify(description: RegistrationDescription) -> tuple[NotificationFormat, TargetPlatform]:
    if isinstance(description, AppleTemplateRegistrationDescription):
        return NotificationFormat.TEMPLATE, TargetPlatform.APPLE_TEMPLATE
    if isinstance(description, AppleRegistrationDescription):
        return NotificationFormat.APPLE, TargetPlatform.APPLE
    if isinstance(description, GcmTemplateRegistrationDescription):
        return NotificationFormat.TEMPLATE, TargetPlatform.GCM_TEMPLATE
    return NotificationFormat.GCM, TargetPlatform.GCM


def normalize(
    value: RegistrationDescription | RegistrationContent | None,
) -> RegistrationContent:
    """
    Fold a raw platform description into canonical registration content.

    Already normalized content is returned unchanged, and None (no known
    description) yields content without a registered device.

    Raises:
        RegistrationDecodeError: If the device handle is missing or the
            expiration time cannot be parsed
    """
    if isinstance(value, RegistrationContent):
        return value
    if value is None:
        return RegistrationContent()

    notification_format, target = _classify(value)
    device = RegisteredDevice(
        device_id=_device_handle(value),
        registration_id=value.registration_id,
        etag=value.etag,
        expiration_time=parse_expiration_time(value.expiration_time_string),
        tags=parse_tags(value.tags_string),
        template=getattr(value, "body_template", None),
    )
    return RegistrationContent(format=notification_format, target=target, registered_device=device)


def decode_registration_entry(entry: ET.Element) -> RegistrationResult:
    """Decode and normalize one Atom ``<entry>`` element."""
    content = normalize(decode_description(entry.find(_atom("content"))))
    try:
        return RegistrationResult(
            id=_child_text(entry, _atom("id")) or "",
            title=_child_text(entry, _atom("title")) or "",
            published=_child_text(entry, _atom("published")) or None,
            updated=_child_text(entry, _atom("updated")) or None,
            content=content,
        )
    except ValidationError as e:
        msg = f"invalid registration entry: {e}"
        raise RegistrationDecodeError(msg) from e


def decode_registration_result(data: bytes | str) -> RegistrationResult:
    """Decode a single registration response body."""
    root = parse_xml(data)
    if root.tag != _atom("entry"):
        msg = f"expected an Atom entry, got '{root.tag}'"
        raise RegistrationDecodeError(msg)
    return decode_registration_entry(root)


def decode_registrations_feed(data: bytes | str) -> Registrations:
    """
    Decode a registrations feed, normalizing every entry independently.

    A failing entry is recorded in ``errors`` and its siblings are still
    decoded.

    Raises:
        RegistrationDecodeError: If the body is not an Atom feed
    """
    root = parse_xml(data)
    if root.tag != _atom("feed"):
        msg = f"expected an Atom feed, got '{root.tag}'"
        raise RegistrationDecodeError(msg)

    entries: list[RegistrationResult] = []
    errors: list[RegistrationEntryError] = []

    for index, entry in enumerate(root.findall(_atom("entry"))):
        try:
            entries.append(decode_registration_entry(entry))
        except RegistrationDecodeError as e:
            title = _child_text(entry, _atom("title")) or ""
            logger.warning(
                "Skipping undecodable registration entry",
                extra={"index": index, "title": title, "error": str(e)},
            )
            errors.append(RegistrationEntryError(index=index, title=title, error=str(e)))

    try:
        return Registrations(
            id=_child_text(root, _atom("id")) or "",
            title=_child_text(root, _atom("title")) or "",
            updated=_child_text(root, _atom("updated")) or None,
            entries=entries,
            errors=errors,
        )
    except ValidationError as e:
        msg = f"invalid registrations feed: {e}"
        raise RegistrationDecodeError(msg) from e


def _build_entry(kind: str, children: Sequence[tuple[str, str]]) -> bytes:
    entry = ET.Element("entry", {"xmlns": ATOM_NS})
    content = ET.SubElement(entry, "content", {"type": "application/xml"})
    description = ET.SubElement(content, kind, {"xmlns:i": XSI_NS, "xmlns": SB_NS})
    for tag, text in children:
        ET.SubElement(description, tag).text = text
    return ET.tostring(entry, encoding="utf-8", xml_declaration=True)


def build_registration_payload(registration: Registration) -> bytes:
    """
    Atom entry creating or updating a native registration.

    Raises:
        NotificationValidationError: If the format is not apple or gcm
    """
    tags = ",".join(registration.tags)

    if registration.format is NotificationFormat.APPLE:
        return _build_entry(
            AppleRegistrationDescription.model_fields["kind"].default,
            [("Tags", tags), ("DeviceToken", registration.device_id)],
        )
    if registration.format is NotificationFormat.GCM:
        return _build_entry(
            GcmRegistrationDescription.model_fields["kind"].default,
            [("Tags", tags), ("GcmRegistrationId", registration.device_id)],
        )

    msg = f"registration format '{registration.format.value}' is not supported"
    raise NotificationValidationError(msg, context={"format": registration.format.value})


def build_template_registration_payload(registration: TemplateRegistration) -> bytes:
    """
    Atom entry creating or updating a template registration.

    Raises:
        NotificationValidationError: If the platform is not apple or gcm
    """
    tags = ",".join(registration.tags)

    if registration.platform is TargetPlatform.APPLE:
        return _build_entry(
            AppleTemplateRegistrationDescription.model_fields["kind"].default,
            [
                ("Tags", tags),
                ("DeviceToken", registration.device_id),
                ("BodyTemplate", registration.template),
            ],
        )
    if registration.platform is TargetPlatform.GCM:
        return _build_entry(
            GcmTemplateRegistrationDescription.model_fields["kind"].default,
            [
                ("Tags", tags),
                ("GcmRegistrationId", registration.device_id),
                ("BodyTemplate", registration.template),
            ],
        )

    msg = f"template registration platform '{registration.platform.value}' is not supported"
    raise NotificationValidationError(msg, context={"platform": registration.platform.value})
