"""Delivery telemetry models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime  # noqa: TC003
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class NotificationState(str, Enum):
    """Processing state of a sent notification."""

    ABANDONED = "Abandoned"  # Not processed within the acceptable window (30 min by default)
    CANCELED = "Canceled"  # Scheduled message canceled by user
    COMPLETED = "Completed"
    ENQUEUED = "Enqueued"  # Accepted, processing not started
    NO_TARGET_FOUND = "NoTargetFound"
    PROCESSING = "Processing"
    SCHEDULED = "Scheduled"
    UNKNOWN = "Unknown"


class NotificationOutcomeName(str, Enum):
    """Per-platform delivery outcome counters reported by the hub."""

    ABANDONED_NOTIFICATION_MESSAGES = "AbandonedNotificationMessages"
    BAD_CHANNEL = "BadChannel"
    CHANNEL_DISCONNECTED = "ChannelDisconnected"
    CHANNEL_THROTTLED = "ChannelThrottled"
    DROPPED = "Dropped"
    EXPIRED_CHANNEL = "ExpiredChannel"
    INVALID_CREDENTIALS = "InvalidCredentials"
    INVALID_NOTIFICATION_SIZE = "InvalidNotificationSize"
    NO_TARGETS = "NoTargets"
    PNS_INTERFACE_ERROR = "PnsInterfaceError"
    PNS_SERVER_ERROR = "PnsServerError"
    PNS_UNAVAILABLE = "PnsUnavailable"
    PNS_UNREACHABLE = "PnsUnreachable"
    SKIPPED = "Skipped"  # Duplicate registrations (same handle, different registration ID)
    SUCCESS = "Success"
    THROTTLED = "Throttled"
    UNKNOWN_ERROR = "UnknownError"
    WRONG_TOKEN = "WrongToken"


class NotificationTelemetry(BaseModel):
    """Message ID returned in the `Location` header of a send.

    Only Standard tier hubs return it, so an empty value is normal.
    """

    model_config = ConfigDict(frozen=True)

    notification_message_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.notification_message_id


@dataclass(frozen=True)
class SendResult:
    """Result of a send: raw response body plus delivery telemetry."""

    raw: bytes
    telemetry: NotificationTelemetry


class NotificationOutcome(BaseModel):
    """One outcome counter."""

    name: str = Field(..., description="Outcome name (see NotificationOutcomeName)")
    count: int = Field(0, description="Number of sends with this outcome")


class NotificationDetails(BaseModel):
    """Delivery details for a sent message, read from `messages/{id}`."""

    notification_id: str = ""
    location: str | None = None
    state: NotificationState = NotificationState.UNKNOWN
    enqueue_time: datetime | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    notification_body: str | None = None
    target_platforms: str | None = None
    outcomes: dict[str, list[NotificationOutcome]] = Field(
        default_factory=dict,
        description="Outcome counters keyed by platform element (e.g. ApnsOutcomeCounts)",
    )
