"""Composition root: wires one client per profile from settings."""

from __future__ import annotations

import logging
from types import TracebackType

import httpx

from goplaces.config import ClientProfile, Settings
from goplaces.jobs.orchestrator import JobOrchestrator, PollingPolicy
from goplaces.jobs.registry import TaskRegistry
from goplaces.network.reachability import ConnectivityProbe, ReachabilityMonitor
from goplaces.network.requests import RequestBuilder
from goplaces.network.transport import Transport
from goplaces.services.collections import CollectionService
from goplaces.services.messages import HealthService, LoadingMessageService
from goplaces.services.uploads import UploadService

logger = logging.getLogger(__name__)


class GoPlacesClient:
    """Owns the HTTP client, the reachability monitor and the task registry.

    Usage:
        async with GoPlacesClient.from_settings(settings) as client:
            places = await client.orchestrator.extract_places(url)
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        orchestrator: JobOrchestrator,
        uploads: UploadService,
        collections: CollectionService,
        messages: LoadingMessageService,
        health: HealthService,
        reachability: ReachabilityMonitor,
        registry: TaskRegistry,
        transport: Transport,
        probe: ConnectivityProbe | None = None,
    ) -> None:
        self.http_client = http_client
        self.orchestrator = orchestrator
        self.uploads = uploads
        self.collections = collections
        self.messages = messages
        self.health = health
        self.reachability = reachability
        self.registry = registry
        self._transport = transport
        self._probe = probe

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        profile: ClientProfile | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
        reachability: ReachabilityMonitor | None = None,
        probe: bool = False,
    ) -> GoPlacesClient:
        """Build a client from settings.

        Args:
            settings: Loaded settings.
            profile: Overrides ``settings.profile`` when given.
            http_transport: Custom httpx transport (e.g. ``httpx.MockTransport``).
            reachability: Shared monitor; a fresh one is created when omitted.
            probe: Start a background connectivity probe on ``__aenter__``.
        """
        if profile is not None:
            settings = settings.for_profile(profile)

        http_client = httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=httpx.Timeout(settings.request_timeout),
            transport=http_transport,
        )
        requests = RequestBuilder(http_client, settings.api_token, settings.user_agent)
        transport = Transport(http_client, resource_timeout=settings.resource_timeout)
        monitor = reachability or ReachabilityMonitor()
        registry = TaskRegistry(
            max_concurrent=settings.max_concurrent_jobs,
            expiry_multiplier=settings.expiry_multiplier,
            expiry_floor=settings.expiry_floor,
            expiry_ceiling=settings.expiry_ceiling,
            check_interval=settings.admission_check_interval,
        )
        policy = PollingPolicy(
            base_interval=settings.poll_interval,
            max_attempts=settings.max_poll_attempts,
            admission_timeout=settings.admission_timeout,
        )
        connectivity = None
        if probe:
            connectivity = ConnectivityProbe.for_base_url(
                monitor,
                settings.api_base_url,
                interval=settings.probe_interval,
                timeout=settings.probe_timeout,
            )

        logger.debug("Client created for %s (profile=%s)", settings.api_base_url, settings.profile.value)
        return cls(
            http_client=http_client,
            orchestrator=JobOrchestrator(transport, requests, monitor, registry, policy),
            uploads=UploadService(transport, requests, monitor),
            collections=CollectionService(transport, requests, monitor),
            messages=LoadingMessageService(transport, requests, monitor),
            health=HealthService(transport, requests, monitor),
            reachability=monitor,
            registry=registry,
            transport=transport,
            probe=connectivity,
        )

    async def __aenter__(self) -> GoPlacesClient:
        if self._probe is not None:
            await self._probe.probe_once()
            self._probe.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel running jobs and wait for them, stop probing, close the HTTP client."""
        await self.orchestrator.shutdown()
        if self._probe is not None:
            await self._probe.stop()
        await self._transport.aclose()
