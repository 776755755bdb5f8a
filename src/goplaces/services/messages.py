"""Loading messages and health checks.

Neither operation ever raises a :class:`ClientError`: loading messages
fall back to canned text and the health check reports ``False``.
"""

import logging
from datetime import datetime, timezone

from pydantic import ValidationError

from goplaces.errors import ClientError
from goplaces.models.api import LoadingCategory, LoadingMessage
from goplaces.models.dates import format_iso8601
from goplaces.network.reachability import ReachabilityMonitor
from goplaces.network.requests import RequestBuilder
from goplaces.network.transport import Transport

logger = logging.getLogger(__name__)


class LoadingMessageService:
    """Fetches short messages to show while a job is running."""

    def __init__(
        self,
        transport: Transport,
        requests: RequestBuilder,
        reachability: ReachabilityMonitor,
    ) -> None:
        self._transport = transport
        self._requests = requests
        self._reachability = reachability

    @staticmethod
    def fallback(category: LoadingCategory | None = None) -> LoadingMessage:
        """Canned message used whenever the API cannot provide one."""
        category = category or LoadingCategory.RANDOM
        return LoadingMessage(
            message=category.fallback_message,
            category=category.value,
            timestamp=format_iso8601(datetime.now(timezone.utc)),
        )

    async def get_message(self, category: LoadingCategory | None = None) -> LoadingMessage:
        """Return a loading message, falling back to canned text on any failure."""
        if not self._reachability.is_available():
            return self.fallback(category)

        params = {"category": category.value} if category else None
        try:
            response = await self._transport.send(self._requests.get("/funny-messages", params))
        except ClientError as e:
            logger.warning("Failed to get loading message: %s", e.message)
            return self.fallback(category)

        if not response.ok:
            logger.warning("Loading message API returned non-200 status: %d", response.status_code)
            return self.fallback(category)

        try:
            return LoadingMessage.model_validate_json(response.body)
        except ValidationError:
            logger.warning("Loading message API returned an undecodable body")
            return self.fallback(category)


class HealthService:
    """Checks whether the API answers at its root endpoint."""

    def __init__(
        self,
        transport: Transport,
        requests: RequestBuilder,
        reachability: ReachabilityMonitor,
    ) -> None:
        self._transport = transport
        self._requests = requests
        self._reachability = reachability

    async def check(self) -> bool:
        if not self._reachability.is_available():
            return False
        try:
            response = await self._transport.send(self._requests.get("/"))
        except ClientError as e:
            logger.warning("Health check failed: %s", e.message)
            return False
        return response.ok
