"""Single request/response exchange with transport error classification."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from goplaces.errors import ClientError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """Status code and raw body of one HTTP exchange."""

    status_code: int
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON.
        """
        return json.loads(self.body)


def classify_transport_error(error: Exception) -> ClientError:
    """Map an httpx failure onto the client error taxonomy."""
    if isinstance(error, httpx.TimeoutException):
        return ClientError.timeout()
    if isinstance(error, (httpx.InvalidURL, httpx.UnsupportedProtocol)):
        return ClientError.invalid_url(str(error) or None)
    if isinstance(error, httpx.NetworkError):
        return ClientError.network_unavailable()
    if isinstance(error, (httpx.ProtocolError, httpx.DecodingError)):
        return ClientError.server_error("Invalid response from server", error=str(error))
    return ClientError.unknown_error(str(error) or None, error_type=type(error).__name__)


class Transport:
    """Executes exactly one HTTP exchange per call.

    No retries happen here. Caller cancellation propagates untouched;
    every other failure becomes a :class:`ClientError`.
    """

    def __init__(self, client: httpx.AsyncClient, resource_timeout: float = 60.0) -> None:
        self._client = client
        self.resource_timeout = resource_timeout

    async def send(self, request: httpx.Request) -> TransportResponse:
        """Send the request and return status code and body.

        Raises:
            ClientError: On timeout, connectivity, protocol, or URL failures.
            asyncio.CancelledError: When the calling task is cancelled.
        """
        try:
            response = await asyncio.wait_for(
                self._client.send(request),
                timeout=self.resource_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning("%s %s exceeded %.0fs", request.method, request.url, self.resource_timeout)
            raise ClientError.timeout() from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("%s %s failed: %s", request.method, request.url, e)
            raise classify_transport_error(e) from e

        logger.debug("%s %s -> %d", request.method, request.url, response.status_code)
        return TransportResponse(
            status_code=response.status_code,
            body=response.content,
            headers=dict(response.headers),
        )

    async def aclose(self) -> None:
        await self._client.aclose()
