"""
Notification hub client.

Routes notifications, signs every request with a fresh SAS token and maps
hub responses onto the client's models. All network work goes through an
injected Transport; all time comes from an injected Clock.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine, Sequence
from functools import wraps
from typing import TYPE_CHECKING, Any, TypeVar

from notification_hubs.exceptions import (
    NotificationHubError,
    NotificationValidationError,
    TransportError,
)
from notification_hubs.models.telemetry import SendResult
from notification_hubs.services.connection import ConnectionDescriptor, parse_connection_string
from notification_hubs.services.dispatch import (
    DELETE,
    GET,
    HEADER_AUTHORIZATION,
    HEADER_CONTENT_TYPE,
    MESSAGES_PATH,
    PATCH,
    POST,
    PUT,
    TELEMETRY_API_VERSION,
    DispatchRequest,
    HubURL,
    build_direct_batch_request,
    build_direct_request,
    build_send_request,
)
from notification_hubs.services.installations import (
    INSTALLATION_CONTENT_TYPE,
    INSTALLATION_PATCH_CONTENT_TYPE,
    INSTALLATIONS_PATH,
    decode_installation,
    encode_changes,
    encode_installation,
)
from notification_hubs.services.registrations import (
    REGISTRATION_CONTENT_TYPE,
    REGISTRATIONS_PATH,
    build_registration_payload,
    build_template_registration_payload,
    decode_registration_result,
    decode_registrations_feed,
)
from notification_hubs.services.sas import SasTokenGenerator
from notification_hubs.services.telemetry import decode_notification_details, telemetry_from_response
from notification_hubs.services.transport import HttpxTransport
from notification_hubs.utils.error_handling import log_errors
from notification_hubs.utils.operation_context import operation_scope

if TYPE_CHECKING:
    from datetime import datetime

    from notification_hubs.config import HubSettings
    from notification_hubs.models.installation import Installation, InstallationChange
    from notification_hubs.models.notification import Notification
    from notification_hubs.models.registration import (
        Registration,
        RegistrationResult,
        Registrations,
        TemplateRegistration,
    )
    from notification_hubs.models.telemetry import NotificationDetails
    from notification_hubs.services.sas import Clock
    from notification_hubs.services.transport import HubResponse, Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")


def hub_operation(
    operation_name: str,
) -> Callable[[Callable[..., Coroutine[Any, Any, T]]], Callable[..., Coroutine[Any, Any, T]]]:
    """Bind an operation ID and log failures for one client call."""

    def decorator(
        func: Callable[..., Coroutine[Any, Any, T]],
    ) -> Callable[..., Coroutine[Any, Any, T]]:
        logged = log_errors(operation_name)(func)

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            with operation_scope():
                return await logged(*args, **kwargs)

        return wrapper

    return decorator


def _require(value: str, name: str) -> str:
    if not value:
        msg = f"{name} must not be empty"
        raise NotificationValidationError(msg, context={"field": name})
    return value


class NotificationHub:
    """
    Async client for one notification hub.

    Example:
        hub = NotificationHub.from_connection_string(
            "Endpoint=sb://myhub-ns.servicebus.windows.net/;"
            "SharedAccessKeyName=DefaultFullSharedAccessSignature;SharedAccessKey=...",
            "myhub",
        )
        result = await hub.send(Notification("apple", b'{"aps":{"alert":"Hi"}}'), tags="news")
    """

    def __init__(
        self,
        descriptor: ConnectionDescriptor | str,
        hub_path: str,
        transport: Transport | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            descriptor: Parsed connection descriptor or a raw connection string
            hub_path: Hub name within the namespace
            transport: HTTP transport (defaults to HttpxTransport)
            clock: Time source for SAS expiry (defaults to the system clock)
        """
        if isinstance(descriptor, str):
            descriptor = parse_connection_string(descriptor)

        self.descriptor = descriptor
        self.hub_path = hub_path
        self.hub_url = HubURL(base_url=descriptor.base_url, hub_path=hub_path)
        self.transport = transport or HttpxTransport()
        self.sas = SasTokenGenerator(descriptor, clock)

    @classmethod
    def from_connection_string(
        cls,
        connection_string: str,
        hub_path: str,
        transport: Transport | None = None,
        clock: Clock | None = None,
    ) -> NotificationHub:
        return cls(parse_connection_string(connection_string), hub_path, transport, clock)

    @classmethod
    def from_settings(
        cls,
        settings: HubSettings,
        transport: Transport | None = None,
        clock: Clock | None = None,
    ) -> NotificationHub:
        """Build a client from loaded settings, using their HTTP timeout."""
        if transport is None:
            transport = HttpxTransport(timeout_seconds=settings.timeout_seconds)
        return cls.from_connection_string(
            settings.connection_string.get_secret_value(),
            settings.hub_path,
            transport,
            clock,
        )

    @property
    def clock(self) -> Clock:
        return self.sas.clock

    async def _exec(
        self,
        operation: str,
        request: DispatchRequest,
        now: int | None = None,
    ) -> HubResponse:
        """Sign and execute a routed request.

        The Authorization header is added last, signed at ``now`` so it shares
        its expiry with any X-Apns-Expiration header of the same call.
        """
        if now is None:
            now = self.clock.now()

        headers = dict(request.headers)
        headers[HEADER_AUTHORIZATION] = self.sas.token(now)

        try:
            return await self.transport.exec(request.method, request.url, headers, request.body)
        except TransportError as e:
            msg = f"{operation}: {e}"
            raise TransportError(
                msg,
                status_code=e.status_code,
                body=e.body,
                context={**e.context, "operation": operation},
            ) from e
        except NotificationHubError:
            raise
        except Exception as e:
            msg = f"{operation}: {e}"
            raise TransportError(msg, context={"operation": operation}) from e

    async def _send(
        self,
        operation: str,
        notification: Notification,
        tags: str | None,
        deliver_at: datetime | None,
    ) -> SendResult:
        now = self.clock.now()
        request = build_send_request(
            self.hub_url,
            notification,
            now=now,
            tags=tags,
            deliver_at=deliver_at,
        )
        return await self._dispatch(operation, request, now, notification)

    async def _dispatch(
        self,
        operation: str,
        request: DispatchRequest,
        now: int,
        notification: Notification,
    ) -> SendResult:
        response = await self._exec(operation, request, now)
        telemetry = telemetry_from_response(response)

        logger.info(
            "Notification sent",
            extra={
                "operation": operation,
                "format": notification.format.value,
                "status_code": response.status_code,
                "notification_message_id": telemetry.notification_message_id,
            },
        )
        return SendResult(raw=response.body, telemetry=telemetry)

    @hub_operation("send")
    async def send(
        self,
        notification: Notification,
        tags: str | None = None,
        deliver_at: datetime | None = None,
    ) -> SendResult:
        """
        Send a notification to every registration matching ``tags``.

        Args:
            notification: Notification to send
            tags: Optional tag expression; omitted or empty broadcasts
            deliver_at: Optional future delivery time (scheduled send)

        Returns:
            Raw response body and delivery telemetry

        Raises:
            NotificationValidationError: If ``deliver_at`` is not in the future
            TransportError: If the hub call fails
        """
        return await self._send("send", notification, tags, deliver_at)

    @hub_operation("schedule")
    async def schedule(
        self,
        notification: Notification,
        deliver_at: datetime,
        tags: str | None = None,
    ) -> SendResult:
        """Schedule a notification for delivery at ``deliver_at``."""
        return await self._send("schedule", notification, tags, deliver_at)

    @hub_operation("send_direct")
    async def send_direct(self, notification: Notification, device_handle: str) -> SendResult:
        """Send straight to one push handle, bypassing registrations."""
        _require(device_handle, "device_handle")
        now = self.clock.now()
        request = build_direct_request(self.hub_url, notification, device_handle, now=now)
        return await self._dispatch("send_direct", request, now, notification)

    @hub_operation("send_direct_batch")
    async def send_direct_batch(
        self,
        notification: Notification,
        device_handles: Sequence[str],
        boundary: str | None = None,
    ) -> SendResult:
        """
        Send straight to up to 1000 push handles in one request.

        Raises:
            NotificationValidationError: If more than 1000 handles are given
            TransportError: If the hub call fails
        """
        now = self.clock.now()
        request = build_direct_batch_request(
            self.hub_url,
            notification,
            device_handles,
            now=now,
            boundary=boundary,
        )
        return await self._dispatch("send_direct_batch", request, now, notification)

    async def _put_registration(
        self,
        operation: str,
        payload: bytes,
        registration_id: str | None,
    ) -> RegistrationResult:
        if registration_id:
            method, url = PUT, self.hub_url.build(REGISTRATIONS_PATH, registration_id)
        else:
            method, url = POST, self.hub_url.build(REGISTRATIONS_PATH)

        request = DispatchRequest(
            method=method,
            url=url,
            headers={HEADER_CONTENT_TYPE: REGISTRATION_CONTENT_TYPE},
            body=payload,
        )
        response = await self._exec(operation, request)
        result = decode_registration_result(response.body)

        logger.info(
            "Registration stored",
            extra={
                "operation": operation,
                "method": method,
                "registration_id": result.title,
                "target": result.content.target.value if result.content.target else None,
            },
        )
        return result

    @hub_operation("register")
    async def register(self, registration: Registration) -> RegistrationResult:
        """
        Create (POST) or update (PUT, when ``registration_id`` is set) a native
        apple or gcm registration.

        Raises:
            NotificationValidationError: If the format is not apple or gcm
            RegistrationDecodeError: If the response cannot be normalized
            TransportError: If the hub call fails
        """
        payload = build_registration_payload(registration)
        return await self._put_registration("register", payload, registration.registration_id)

    @hub_operation("register_with_template")
    async def register_with_template(self, registration: TemplateRegistration) -> RegistrationResult:
        """Create or update an apple or gcm template registration."""
        payload = build_template_registration_payload(registration)
        return await self._put_registration(
            "register_with_template",
            payload,
            registration.registration_id,
        )

    @hub_operation("registration")
    async def registration(self, registration_id: str) -> RegistrationResult:
        """Read one registration."""
        _require(registration_id, "registration_id")
        request = DispatchRequest(
            method=GET,
            url=self.hub_url.build(REGISTRATIONS_PATH, registration_id),
        )
        response = await self._exec("registration", request)
        return decode_registration_result(response.body)

    @hub_operation("registrations")
    async def registrations(self) -> Registrations:
        """
        Read all registrations of the hub.

        Entries that fail to normalize are reported in ``errors``; the rest
        are still returned.
        """
        request = DispatchRequest(method=GET, url=self.hub_url.build(REGISTRATIONS_PATH))
        response = await self._exec("registrations", request)
        feed = decode_registrations_feed(response.body)

        if feed.errors:
            logger.warning(
                "Registrations feed contained undecodable entries",
                extra={"entries": len(feed.entries), "errors": len(feed.errors)},
            )
        return feed

    @hub_operation("notification_details")
    async def notification_details(self, notification_message_id: str) -> NotificationDetails:
        """Read delivery details of a sent message (Standard tier hubs only)."""
        _require(notification_message_id, "notification_message_id")
        request = DispatchRequest(
            method=GET,
            url=self.hub_url.build(
                MESSAGES_PATH,
                notification_message_id,
                api_version=TELEMETRY_API_VERSION,
            ),
        )
        response = await self._exec("notification_details", request)
        return decode_notification_details(response.body)

    @hub_operation("installation")
    async def installation(self, installation_id: str) -> Installation:
        """Read one installation."""
        _require(installation_id, "installation_id")
        request = DispatchRequest(
            method=GET,
            url=self.hub_url.build(INSTALLATIONS_PATH, installation_id),
        )
        response = await self._exec("installation", request)
        return decode_installation(response.body)

    @hub_operation("install")
    async def install(self, installation: Installation) -> None:
        """Create or overwrite an installation."""
        _require(installation.installation_id, "installation_id")
        request = DispatchRequest(
            method=PUT,
            url=self.hub_url.build(INSTALLATIONS_PATH, installation.installation_id),
            headers={HEADER_CONTENT_TYPE: INSTALLATION_CONTENT_TYPE},
            body=encode_installation(installation),
        )
        await self._exec("install", request)

    @hub_operation("update")
    async def update(self, installation_id: str, *changes: InstallationChange) -> None:
        """
        Apply JSON-Patch changes to an installation.

        Raises:
            NotificationValidationError: If no changes are given
            TransportError: If the hub call fails
        """
        _require(installation_id, "installation_id")
        if not changes:
            msg = "no installation changes given"
            raise NotificationValidationError(msg, context={"installation_id": installation_id})

        request = DispatchRequest(
            method=PATCH,
            url=self.hub_url.build(INSTALLATIONS_PATH, installation_id),
            headers={HEADER_CONTENT_TYPE: INSTALLATION_PATCH_CONTENT_TYPE},
            body=encode_changes(changes),
        )
        await self._exec("update", request)

    @hub_operation("uninstall")
    async def uninstall(self, installation_id: str) -> None:
        """Delete an installation."""
        _require(installation_id, "installation_id")
        request = DispatchRequest(
            method=DELETE,
            url=self.hub_url.build(INSTALLATIONS_PATH, installation_id),
        )
        await self._exec("uninstall", request)
