"""Registration models: raw platform descriptions and the canonical device record."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from notification_hubs.models.notification import NotificationFormat, TargetPlatform


class RegisteredDevice(BaseModel):
    """Canonical device record produced by normalization."""

    model_config = ConfigDict(frozen=True)

    device_id: str = Field(..., description="Platform push handle")
    registration_id: str = Field(..., description="Hub registration ID")
    etag: str = Field("", description="Registration ETag")
    expiration_time: datetime | None = Field(None, description="Expiration (UTC)")
    tags: list[str] = Field(default_factory=list, description="Registration tags")
    template: str | None = Field(None, description="Body template (template registrations only)")


class _RegistrationDescriptionBase(BaseModel):
    """Fields shared by every platform registration description."""

    model_config = ConfigDict(frozen=True)

    registration_id: str = ""
    etag: str = ""
    tags_string: str | None = None
    expiration_time_string: str | None = None


class AppleRegistrationDescription(_RegistrationDescriptionBase):
    kind: Literal["AppleRegistrationDescription"] = "AppleRegistrationDescription"
    device_token: str | None = None


class AppleTemplateRegistrationDescription(_RegistrationDescriptionBase):
    kind: Literal["AppleTemplateRegistrationDescription"] = "AppleTemplateRegistrationDescription"
    device_token: str | None = None
    body_template: str | None = None


class GcmRegistrationDescription(_RegistrationDescriptionBase):
    kind: Literal["GcmRegistrationDescription"] = "GcmRegistrationDescription"
    gcm_registration_id: str | None = None


class GcmTemplateRegistrationDescription(_RegistrationDescriptionBase):
    kind: Literal["GcmTemplateRegistrationDescription"] = "GcmTemplateRegistrationDescription"
    gcm_registration_id: str | None = None
    body_template: str | None = None


RegistrationDescription = Annotated[
    Union[
        AppleTemplateRegistrationDescription,
        AppleRegistrationDescription,
        GcmTemplateRegistrationDescription,
        GcmRegistrationDescription,
    ],
    Field(discriminator="kind"),
]


class RegistrationContent(BaseModel):
    """Normalized registration content.

    Only canonical fields exist here; the platform-specific raw
    descriptions are consumed by the normalizer and never stored.
    """

    model_config = ConfigDict(frozen=True)

    format: NotificationFormat | None = None
    target: TargetPlatform | None = None
    registered_device: RegisteredDevice | None = None


class RegistrationResult(BaseModel):
    """One Atom entry returned by the registrations endpoints."""

    id: str = ""
    title: str = ""
    published: datetime | None = None
    updated: datetime | None = None
    content: RegistrationContent = Field(default_factory=RegistrationContent)


class RegistrationEntryError(BaseModel):
    """An entry of a registrations feed that failed to decode."""

    index: int = Field(..., description="Position of the entry in the feed")
    title: str = Field("", description="Entry title (the registration ID) if present")
    error: str = Field(..., description="Decode error message")


class Registrations(BaseModel):
    """A registrations feed with per-entry decode failures kept aside."""

    id: str = ""
    title: str = ""
    updated: datetime | None = None
    entries: list[RegistrationResult] = Field(default_factory=list)
    errors: list[RegistrationEntryError] = Field(default_factory=list)


class Registration(BaseModel):
    """A native (non-template) device registration to create or update."""

    device_id: str = Field(..., description="Platform push handle")
    format: NotificationFormat = Field(..., description="apple or gcm")
    tags: list[str] = Field(default_factory=list)
    registration_id: str | None = Field(None, description="Set to update an existing registration")


class TemplateRegistration(BaseModel):
    """A template device registration to create or update."""

    device_id: str = Field(..., description="Platform push handle")
    platform: TargetPlatform = Field(..., description="apple or gcm")
    template: str = Field(..., description="Body template with $(placeholders)")
    tags: list[str] = Field(default_factory=list)
    registration_id: str | None = Field(None, description="Set to update an existing registration")
