"""Models for the notification hub client."""

from notification_hubs.models.installation import (
    Installation,
    InstallationChange,
    InstallationChangeOp,
    InstallationPlatform,
    InstallationSecondaryTile,
    InstallationTemplate,
)
from notification_hubs.models.notification import (
    Notification,
    NotificationFormat,
    TargetPlatform,
)
from notification_hubs.models.registration import (
    AppleRegistrationDescription,
    AppleTemplateRegistrationDescription,
    GcmRegistrationDescription,
    GcmTemplateRegistrationDescription,
    RegisteredDevice,
    Registration,
    RegistrationContent,
    RegistrationDescription,
    RegistrationEntryError,
    RegistrationResult,
    Registrations,
    TemplateRegistration,
)
from notification_hubs.models.telemetry import (
    NotificationDetails,
    NotificationOutcome,
    NotificationOutcomeName,
    NotificationState,
    NotificationTelemetry,
    SendResult,
)

__all__ = [
    "AppleRegistrationDescription",
    "AppleTemplateRegistrationDescription",
    "GcmRegistrationDescription",
    "GcmTemplateRegistrationDescription",
    "Installation",
    "InstallationChange",
    "InstallationChangeOp",
    "InstallationPlatform",
    "InstallationSecondaryTile",
    "InstallationTemplate",
    "Notification",
    "NotificationDetails",
    "NotificationFormat",
    "NotificationOutcome",
    "NotificationOutcomeName",
    "NotificationState",
    "NotificationTelemetry",
    "RegisteredDevice",
    "Registration",
    "RegistrationContent",
    "RegistrationDescription",
    "RegistrationEntryError",
    "RegistrationResult",
    "Registrations",
    "SendResult",
    "TargetPlatform",
    "TemplateRegistration",
]
