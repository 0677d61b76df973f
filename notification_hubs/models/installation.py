"""Installation models (JSON based alternative to registrations)."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class InstallationPlatform(str, Enum):
    """Push platform of an installation."""

    APNS = "apns"
    GCM = "gcm"
    WNS = "wns"
    MPNS = "mpns"
    ADM = "adm"
    BAIDU = "baidu"


class InstallationChangeOp(str, Enum):
    """JSON-Patch operation."""

    ADD = "add"
    REMOVE = "remove"
    REPLACE = "replace"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InstallationTemplate(_CamelModel):
    """A named body template attached to an installation."""

    body: str
    headers: dict[str, str] | None = None
    expiry: str | None = None
    tags: list[str] | None = None


class InstallationSecondaryTile(_CamelModel):
    """Windows secondary tile."""

    push_channel: str
    tags: list[str] | None = None
    templates: dict[str, InstallationTemplate] | None = None


class Installation(_CamelModel):
    """A device installation."""

    installation_id: str = Field(..., description="Client generated installation ID")
    platform: InstallationPlatform
    push_channel: str = Field(..., description="Platform push handle")
    push_channel_expired: bool | None = None
    user_id: str | None = None
    expiration_time: datetime | None = None
    last_active_on: datetime | None = None
    last_update: datetime | None = None
    tags: list[str] | None = None
    templates: dict[str, InstallationTemplate] | None = None
    secondary_tiles: dict[str, InstallationSecondaryTile] | None = None


class InstallationChange(BaseModel):
    """One JSON-Patch operation applied by `NotificationHub.update`."""

    op: InstallationChangeOp
    path: str
    value: str | None = None
