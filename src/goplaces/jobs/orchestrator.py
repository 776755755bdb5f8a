"""Job orchestration: submit, poll with backoff, fetch, convert."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Generator
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from pydantic import ValidationError

from goplaces.errors import ClientError, ErrorCode
from goplaces.jobs.models import Job, JobState
from goplaces.jobs.registry import TaskRegistry
from goplaces.models.api import (
    JobPhase,
    JobResult,
    JobStatus,
    ProcessURLRequest,
    TaskAccepted,
)
from goplaces.models.collections import PlaceWithSelection
from goplaces.models.place import Place
from goplaces.network.reachability import ReachabilityMonitor
from goplaces.network.requests import RequestBuilder
from goplaces.network.responses import decode_list, decode_response, error_from_response
from goplaces.network.transport import Transport
from goplaces.urls import is_valid_place_url

logger = logging.getLogger(__name__)

# Progress callback type: (progress: float 0-1, message: str) -> None
ProgressCallback = Callable[[float, str], None]

# Poll failures that are retried until the final attempt
TRANSIENT_POLL_ERRORS: frozenset[ErrorCode] = frozenset(
    {
        ErrorCode.TIMEOUT,
        ErrorCode.NETWORK_UNAVAILABLE,
        ErrorCode.SERVER_ERROR,
        ErrorCode.DECODING_ERROR,
        ErrorCode.UNKNOWN_ERROR,
        ErrorCode.TOO_MANY_REQUESTS,
    }
)


@dataclass(frozen=True)
class PollingPolicy:
    """Timing limits for one job.

    Attributes:
        base_interval: Poll cadence in seconds.
        max_attempts: Status polls before the job times out.
        admission_timeout: How long to wait for a registry slot.
        backoff_cap: Largest multiplier applied to ``base_interval``.
    """

    base_interval: float = 2.0
    max_attempts: int = 30
    admission_timeout: float = 30.0
    backoff_cap: int = 3

    def __post_init__(self) -> None:
        if self.base_interval < 0:
            raise ValueError("base_interval must be >= 0")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.backoff_cap < 1:
            raise ValueError("backoff_cap must be >= 1")

    def delay_before(self, attempt: int) -> float:
        """Delay before 1-indexed poll ``attempt``: linear ramp, capped."""
        if attempt < 1:
            raise ValueError("attempt must be >= 1")
        return self.base_interval * min(attempt, self.backoff_cap)


class JobHandle:
    """Cancellable handle for a job started with :meth:`JobOrchestrator.start_job`.

    Awaiting the handle yields the extracted places, raises the job's
    :class:`ClientError`, or raises ``asyncio.CancelledError`` if the job
    was cancelled.
    """

    def __init__(self, url: str) -> None:
        self.url = url
        self.job_id: str | None = None
        self._state = JobState.IDLE
        self._task: asyncio.Task[list[Place]] | None = None

    @property
    def state(self) -> JobState:
        return self._state

    def _transition(self, state: JobState) -> None:
        logger.debug("Job %s: %s -> %s", self.job_id or self.url, self._state.value, state.value)
        self._state = state

    def cancel(self) -> bool:
        """Request cancellation at the next suspension point."""
        if self._task is None:
            return False
        return self._task.cancel()

    def cancelled(self) -> bool:
        return self._task is not None and self._task.cancelled()

    def done(self) -> bool:
        return self._task is not None and self._task.done()

    async def result(self) -> list[Place]:
        if self._task is None:
            raise RuntimeError("JobHandle has no running task")
        return await self._task

    def __await__(self) -> Generator[Any, None, list[Place]]:
        return self.result().__await__()


class JobOrchestrator:
    """Drives a job from submission to a typed result or typed error.

    Every public operation checks reachability before touching the
    network. Jobs are registered in the :class:`TaskRegistry` between
    submission and their terminal state and are always released on the
    way out, including on cancellation. The task running each job is
    tracked whether it came from :meth:`start_job` or from a direct call
    to :meth:`extract_places` or :meth:`run_job`, so :meth:`cancel_all`
    reaches all of them.
    """

    def __init__(
        self,
        transport: Transport,
        requests: RequestBuilder,
        reachability: ReachabilityMonitor,
        registry: TaskRegistry,
        policy: PollingPolicy | None = None,
    ) -> None:
        self._transport = transport
        self._requests = requests
        self._reachability = reachability
        self._registry = registry
        self.policy = policy or PollingPolicy()
        self._handles: set[JobHandle] = set()
        self._running: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def extract_places(
        self,
        url: str,
        progress_callback: ProgressCallback | None = None,
        handle: JobHandle | None = None,
    ) -> list[Place]:
        """Run a job for ``url`` and convert the result into places.

        Raises:
            ClientError: On any failure of the job, including a result
                whose places cannot be converted (``decoding_error``).
        """
        logger.info("Starting place extraction for URL: %s", url)
        result = await self.run_job(url, progress_callback, handle)
        try:
            places = result.to_places(url.strip())
        except ValidationError as e:
            logger.warning("Could not convert extracted places: %d error(s)", e.error_count())
            if handle is not None:
                handle._transition(JobState.FAILED)
            raise ClientError.decoding_error(
                "Extracted places could not be converted",
                model=Place.__name__,
                errors=e.error_count(),
            ) from e
        logger.info("Extracted %d places from URL", len(places))
        return places

    def start_job(self, url: str, progress_callback: ProgressCallback | None = None) -> JobHandle:
        """Schedule :meth:`extract_places` as a task and return its handle."""
        handle = JobHandle(url)
        handle._task = asyncio.create_task(self.extract_places(url, progress_callback, handle))
        self._handles.add(handle)
        handle._task.add_done_callback(lambda _: self._handles.discard(handle))
        return handle

    async def run_job(
        self,
        url: str,
        progress_callback: ProgressCallback | None = None,
        handle: JobHandle | None = None,
    ) -> JobResult:
        """Submit, poll and fetch one job.

        Args:
            url: Link to extract places from.
            progress_callback: Optional callback for progress updates.
            handle: Optional handle whose state mirrors the job's.

        Returns:
            JobResult of the completed job.

        Raises:
            ClientError: ``invalid_url`` and ``network_unavailable`` before
                any network attempt; otherwise the failure of the job.
            asyncio.CancelledError: When the calling task is cancelled.
        """
        tracker = handle or JobHandle(url)
        candidate = url.strip()
        if not is_valid_place_url(candidate):
            raise ClientError.invalid_url()
        self._ensure_reachable()

        job: Job | None = None
        task = asyncio.current_task()
        if task is not None:
            self._running.add(task)
        tracker._transition(JobState.SUBMITTING)
        try:
            reservation = await self._registry.await_admission(self.policy.admission_timeout)
            try:
                accepted = await self._submit(candidate)
            except BaseException:
                self._registry.cancel_reservation(reservation)
                raise

            job = Job(
                job_id=accepted.task_id,
                source_url=candidate,
                submitted_at=self._registry.now(),
                estimated_completion_seconds=accepted.estimated_completion_seconds,
            )
            tracker.job_id = job.job_id
            if not self._registry.try_admit(job, reservation):
                raise ClientError.too_many_requests().with_details(task_id=job.job_id)
            logger.info(
                "Processing task started: %s (estimate %ds)",
                job.job_id,
                job.estimated_completion_seconds,
            )

            tracker._transition(JobState.POLLING)
            result = await self._poll_until_complete(job, tracker, progress_callback)
            tracker._transition(JobState.COMPLETE)
            logger.info("Processing completed for task: %s", job.job_id)
            return result

        except ClientError as e:
            tracker._transition(JobState.TIMED_OUT if e.code is ErrorCode.TIMEOUT else JobState.FAILED)
            logger.error("Place extraction failed [%s]: %s", e.code.value, e.message)
            raise
        except Exception as e:
            tracker._transition(JobState.FAILED)
            logger.exception("Unexpected error during place extraction")
            raise ClientError.unknown_error(str(e) or None, error_type=type(e).__name__) from e
        finally:
            if job is not None:
                self._registry.release(job.job_id)
            if task is not None:
                self._running.discard(task)

    async def get_task_status(self, task_id: str) -> JobStatus:
        """Fetch the current status snapshot of a job.

        Raises:
            ClientError: ``task_not_found`` on 404, the server's error
                otherwise.
        """
        self._ensure_reachable()
        logger.debug("Getting status for task: %s", task_id)

        response = await self._transport.send(self._requests.get(f"/task/{quote(task_id, safe='')}/status"))
        if response.status_code == 404:
            raise ClientError.task_not_found(task_id)
        if not response.ok:
            raise error_from_response(response).with_details(task_id=task_id)
        return decode_response(JobStatus, response)

    async def get_task_result(self, task_id: str) -> JobResult:
        """Fetch the terminal payload of a completed job.

        Raises:
            ClientError: ``task_not_found`` on 404, ``task_not_complete``
                on 422, the server's error otherwise.
        """
        self._ensure_reachable()
        logger.info("Getting result for task: %s", task_id)

        response = await self._transport.send(self._requests.get(f"/task/{quote(task_id, safe='')}/result"))
        if response.status_code == 404:
            raise ClientError.task_not_found(task_id)
        if response.status_code == 422:
            raise ClientError.task_not_complete(task_id)
        if not response.ok:
            raise error_from_response(response).with_details(task_id=task_id)
        return decode_response(JobResult, response)

    async def get_task_places(self, task_id: str) -> list[PlaceWithSelection]:
        """Fetch the places of a completed job for selection into collections.

        Raises:
            ClientError: ``task_not_found`` on 404, ``task_not_complete``
                on 400, the server's error otherwise.
        """
        self._ensure_reachable()
        logger.info("Getting places for selection for task: %s", task_id)

        response = await self._transport.send(self._requests.get(f"/task/{quote(task_id, safe='')}/places"))
        if response.status_code == 404:
            raise ClientError.task_not_found(task_id)
        if response.status_code == 400:
            raise ClientError.task_not_complete(task_id)
        if not response.ok:
            raise error_from_response(response).with_details(task_id=task_id)
        return decode_list(PlaceWithSelection, response)

    def cancel_all(self) -> list[asyncio.Task[Any]]:
        """Request cancellation of every running job.

        Covers tasks from :meth:`start_job` as well as tasks that called
        :meth:`extract_places` or :meth:`run_job` directly. Each job
        releases its own registry entry as it unwinds. The calling task is
        never cancelled.

        Returns:
            The tasks that were asked to cancel.
        """
        tasks = {handle._task for handle in self._handles if handle._task is not None}
        tasks.update(self._running)
        tasks.discard(asyncio.current_task())
        pending = [task for task in tasks if not task.done()]
        logger.info("Cancelling all active tasks (%d)", len(pending))
        for task in pending:
            task.cancel()
        return pending

    async def shutdown(self) -> None:
        """Cancel every running job and wait until each has unwound."""
        pending = self.cancel_all()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    @property
    def active_tasks_count(self) -> int:
        return self._registry.active_count

    # ------------------------------------------------------------------
    # State machine steps
    # ------------------------------------------------------------------

    async def _submit(self, url: str) -> TaskAccepted:
        request = self._requests.json_request("POST", "/process-url", ProcessURLRequest(url=url))
        response = await self._transport.send(request)
        if not response.ok:
            raise error_from_response(response)
        return decode_response(TaskAccepted, response)

    async def _poll_until_complete(
        self,
        job: Job,
        tracker: JobHandle,
        progress_callback: ProgressCallback | None,
    ) -> JobResult:
        max_attempts = self.policy.max_attempts

        for attempt in range(1, max_attempts + 1):
            await asyncio.sleep(self.policy.delay_before(attempt))
            # Losing the network ends polling instead of burning attempts
            self._ensure_reachable()

            logger.debug("Polling attempt %d/%d for task: %s", attempt, max_attempts, job.job_id)
            try:
                status = await self.get_task_status(job.job_id)
            except ClientError as e:
                if e.code not in TRANSIENT_POLL_ERRORS or attempt == max_attempts:
                    raise e.with_details(task_id=job.job_id, attempt=attempt)
                logger.warning("Polling attempt %d failed: %s", attempt, e.message)
                continue

            phase = status.phase
            if phase is not None:
                job.phase = phase
            self._report_progress(progress_callback, status)

            if phase is JobPhase.COMPLETE:
                tracker._transition(JobState.FETCHING)
                return await self._fetch_result(job.job_id)

            if phase is JobPhase.FAILED:
                stage_message = status.stage_message or status.current_stage or "unknown error"
                raise ClientError.processing_failed(stage_message, job.job_id)

            logger.debug("Task still processing: %s - %s", status.current_stage, status.stage_message)

        raise ClientError.timeout(
            f"Processing timed out after {max_attempts} attempts",
            task_id=job.job_id,
        )

    async def _fetch_result(self, task_id: str) -> JobResult:
        try:
            return await self.get_task_result(task_id)
        except ClientError as e:
            if e.code is not ErrorCode.TASK_NOT_COMPLETE:
                raise
            logger.info("Result for task %s not ready yet, retrying once", task_id)

        await asyncio.sleep(self.policy.base_interval)
        return await self.get_task_result(task_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_reachable(self) -> None:
        if not self._reachability.is_available():
            raise ClientError.network_unavailable()

    def _report_progress(self, callback: ProgressCallback | None, status: JobStatus) -> None:
        if callback is None:
            return
        if status.progress_percentage is not None:
            progress = status.progress_percentage / 100
        else:
            progress = 1.0 if status.phase is JobPhase.COMPLETE else 0.0
        callback(progress, status.stage_message or status.current_stage or status.status)
