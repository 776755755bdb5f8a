"""Network reachability state publisher."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

ReachabilityCallback = Callable[[bool], None]


class Subscription:
    """Handle returned by :meth:`ReachabilityMonitor.subscribe`."""

    def __init__(self, monitor: ReachabilityMonitor, callback: ReachabilityCallback) -> None:
        self._monitor = monitor
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        """Stop receiving updates. Safe to call more than once."""
        if self.active:
            self.active = False
            self._monitor._unsubscribe(self)


class ReachabilityMonitor:
    """Tracks whether the network is currently reachable.

    The flag is advisory: a request may still fail with a transport error
    right after the monitor reported the network as available. Subscribers
    are notified only on transitions, one at a time and in subscription
    order.
    """

    def __init__(self, initially_available: bool = True) -> None:
        self._available = initially_available
        self._subscriptions: list[Subscription] = []
        self._lock = threading.RLock()

    def is_available(self) -> bool:
        """Return the last published reachability state."""
        return self._available

    def subscribe(self, callback: ReachabilityCallback) -> Subscription:
        """Register a callback invoked with the new state on every transition."""
        subscription = Subscription(self, callback)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def update(self, available: bool) -> None:
        """Publish a new reachability state."""
        with self._lock:
            if available == self._available:
                return
            self._available = available

            if available:
                logger.info("Network connection restored")
            else:
                logger.warning("Network connection lost")

            for subscription in list(self._subscriptions):
                try:
                    subscription.callback(available)
                except Exception:
                    logger.exception("Reachability subscriber raised")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            with contextlib.suppress(ValueError):
                self._subscriptions.remove(subscription)


class ConnectivityProbe:
    """Periodically checks TCP reachability of the API host.

    Publishes every outcome into a :class:`ReachabilityMonitor`; the
    monitor itself decides whether it is a transition.
    """

    def __init__(
        self,
        monitor: ReachabilityMonitor,
        host: str,
        port: int = 443,
        interval: float = 10.0,
        timeout: float = 3.0,
    ) -> None:
        self._monitor = monitor
        self.host = host
        self.port = port
        self.interval = interval
        self.timeout = timeout
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def for_base_url(
        cls,
        monitor: ReachabilityMonitor,
        base_url: str,
        interval: float = 10.0,
        timeout: float = 3.0,
    ) -> ConnectivityProbe:
        """Build a probe targeting the host of an API base URL."""
        parts = urlsplit(base_url)
        if not parts.hostname:
            raise ValueError(f"base_url has no host: {base_url!r}")
        port = parts.port or (80 if parts.scheme == "http" else 443)
        return cls(monitor, parts.hostname, port, interval=interval, timeout=timeout)

    async def probe_once(self) -> bool:
        """Attempt one connection and publish the result."""
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.timeout,
            )
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug("Connectivity probe to %s:%d failed: %s", self.host, self.port, e)
            reachable = False
        else:
            writer.close()
            with contextlib.suppress(OSError):
                await writer.wait_closed()
            reachable = True

        self._monitor.update(reachable)
        return reachable

    async def run(self) -> None:
        """Probe forever at the configured interval."""
        while True:
            await self.probe_once()
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        """Start probing in a background task on the running loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Stop the background task, if any."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
