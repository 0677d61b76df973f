"""HTTP transport seam and the default httpx implementation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from notification_hubs.exceptions import TransportError
from notification_hubs.utils.redaction import redact_dict, redact_sensitive_data

logger = logging.getLogger(__name__)

OnRequest = Callable[[httpx.Request], None]


@dataclass
class HubResponse:
    """Body, status and headers of a successful hub response."""

    body: bytes = b""
    status_code: int = 200
    headers: httpx.Headers = field(default_factory=httpx.Headers)

    def __post_init__(self) -> None:
        if not isinstance(self.headers, httpx.Headers):
            self.headers = httpx.Headers(self.headers)


class Transport(Protocol):
    """Executes one HTTP request against the hub.

    Implementations raise TransportError for network failures and non-2xx
    responses, and must let asyncio cancellation propagate.
    """

    async def exec(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None,
    ) -> HubResponse: ...


def is_ok_status(status_code: int) -> bool:
    return 200 <= status_code < 300


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient``."""

    def __init__(
        self,
        timeout_seconds: float = 10,
        client: httpx.AsyncClient | None = None,
        on_request: OnRequest | None = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            timeout_seconds: Timeout for HTTP requests in seconds
            client: Optional preconfigured client (owned by the caller)
            on_request: Optional hook called with every outgoing request
        """
        self.timeout = timeout_seconds
        self.on_request = on_request
        self._client = client

    async def exec(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None,
    ) -> HubResponse:
        """
        Send a request and return the response.

        Raises:
            TransportError: If the request fails or the status is not 2xx
        """
        if self._client is not None:
            return await self._send(self._client, method, url, headers, body)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._send(client, method, url, headers, body)

    async def _send(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None,
    ) -> HubResponse:
        request = client.build_request(method, url, headers=dict(headers), content=body)
        if self.on_request is not None:
            self.on_request(request)

        logger.debug(
            "Sending hub request",
            extra={
                "method": method,
                "url": redact_sensitive_data(url),
                "headers": redact_dict(dict(request.headers)),
            },
        )

        try:
            response = await client.send(request)
        except httpx.HTTPError as e:
            msg = f"request failed: {e}"
            raise TransportError(
                msg,
                context={"method": method, "url": redact_sensitive_data(url)},
            ) from e

        logger.info(
            "Hub request completed",
            extra={"method": method, "status_code": response.status_code},
        )

        if not is_ok_status(response.status_code):
            msg = (
                f"unexpected response status code: {response.status_code}. "
                f"response: {response.text}"
            )
            raise TransportError(
                msg,
                status_code=response.status_code,
                body=response.content,
                context={"method": method, "status_code": response.status_code},
            )

        return HubResponse(
            body=response.content,
            status_code=response.status_code,
            headers=response.headers,
        )
