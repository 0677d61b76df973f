"""Async client for Azure Notification Hubs."""

from notification_hubs.exceptions import (
    ConfigurationError,
    NotificationHubError,
    NotificationValidationError,
    RegistrationDecodeError,
    TransportError,
)
from notification_hubs.hub import NotificationHub
from notification_hubs.models import (
    Installation,
    InstallationChange,
    InstallationChangeOp,
    InstallationPlatform,
    InstallationSecondaryTile,
    InstallationTemplate,
    Notification,
    NotificationDetails,
    NotificationFormat,
    NotificationOutcome,
    NotificationOutcomeName,
    NotificationState,
    NotificationTelemetry,
    RegisteredDevice,
    Registration,
    RegistrationContent,
    RegistrationResult,
    Registrations,
    SendResult,
    TargetPlatform,
    TemplateRegistration,
)
from notification_hubs.services.connection import (
    ConnectionDescriptor,
    ConnectionScheme,
    parse_connection_string,
)
from notification_hubs.services.sas import Clock, SasTokenGenerator, SystemClock, generate_sas_token
from notification_hubs.services.transport import HttpxTransport, HubResponse, Transport

__all__ = [
    "Clock",
    "ConfigurationError",
    "ConnectionDescriptor",
    "ConnectionScheme",
    "HttpxTransport",
    "HubResponse",
    "Installation",
    "InstallationChange",
    "InstallationChangeOp",
    "InstallationPlatform",
    "InstallationSecondaryTile",
    "InstallationTemplate",
    "Notification",
    "NotificationDetails",
    "NotificationFormat",
    "NotificationHub",
    "NotificationHubError",
    "NotificationOutcome",
    "NotificationOutcomeName",
    "NotificationState",
    "NotificationTelemetry",
    "NotificationValidationError",
    "RegisteredDevice",
    "Registration",
    "RegistrationContent",
    "RegistrationDecodeError",
    "RegistrationResult",
    "Registrations",
    "SasTokenGenerator",
    "SendResult",
    "SystemClock",
    "TargetPlatform",
    "TemplateRegistration",
    "Transport",
    "TransportError",
    "generate_sas_token",
]
