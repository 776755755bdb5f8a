"""Bounded registry of in-flight jobs."""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
import time
from collections.abc import Callable

from goplaces.errors import ClientError
from goplaces.jobs.models import Job

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Tracks in-flight jobs and enforces a concurrency ceiling.

    Occupancy is the number of registered jobs plus the slots reserved by
    callers that passed :meth:`await_admission` but have not yet called
    :meth:`try_admit`. Each reservation is an opaque token owned by the
    caller that took it, so returning one never frees a slot held by
    somebody else. Expired entries are purged lazily whenever the
    registry is consulted; there is no background sweeper. Every mutation
    happens under one lock.
    """

    def __init__(
        self,
        max_concurrent: int = 5,
        expiry_multiplier: float = 3.0,
        expiry_floor: float = 30.0,
        expiry_ceiling: float = 300.0,
        check_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        if expiry_multiplier <= 0:
            raise ValueError("expiry_multiplier must be > 0")
        if expiry_ceiling <= 0:
            raise ValueError("expiry_ceiling must be > 0")

        self.max_concurrent = max_concurrent
        self.expiry_multiplier = expiry_multiplier
        self.expiry_floor = expiry_floor
        self.expiry_ceiling = expiry_ceiling
        self.check_interval = check_interval
        self._clock = clock
        self._jobs: dict[str, Job] = {}
        # Holders per job id; the entry goes away when the last one releases
        self._holders: dict[str, int] = {}
        self._reservations: set[int] = set()
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------

    def now(self) -> float:
        """Current reading of the clock used for expiry."""
        return self._clock()

    def expiry_window(self, job: Job) -> float:
        """Seconds after submission at which a job counts as expired."""
        scaled = max(job.estimated_completion_seconds * self.expiry_multiplier, self.expiry_floor)
        return min(scaled, self.expiry_ceiling)

    def is_expired(self, job: Job) -> bool:
        return job.elapsed(self._clock()) > self.expiry_window(job)

    def _purge_expired_locked(self) -> None:
        expired = [job_id for job_id, job in self._jobs.items() if self.is_expired(job)]
        for job_id in expired:
            del self._jobs[job_id]
            self._holders.pop(job_id, None)
            logger.info("Purged expired job %s", job_id)

    def _occupancy_locked(self) -> int:
        return len(self._jobs) + len(self._reservations)

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def try_admit(self, job: Job, reservation: int | None = None) -> bool:
        """Register a submitted job if the ceiling allows it.

        Args:
            job: Job to register.
            reservation: Token returned by :meth:`await_admission`. A live
                token is consumed in place of a free slot; an unknown or
                already returned token is ignored.

        An identifier that is already registered gains another holder
        instead of a second slot, and stays registered until every
        holder has called :meth:`release`.

        Returns:
            True when the job is registered.
        """
        with self._lock:
            self._purge_expired_locked()
            reserved = reservation is not None and reservation in self._reservations
            if reserved:
                self._reservations.discard(reservation)

            if job.job_id in self._jobs:
                self._holders[job.job_id] += 1
                logger.warning(
                    "Job %s admitted again (%d holders)",
                    job.job_id,
                    self._holders[job.job_id],
                )
                return True

            if not reserved and self._occupancy_locked() >= self.max_concurrent:
                logger.warning(
                    "Rejected job %s: %d/%d slots in use",
                    job.job_id,
                    self._occupancy_locked(),
                    self.max_concurrent,
                )
                return False

            self._jobs[job.job_id] = job
            self._holders[job.job_id] = 1
            logger.debug("Admitted job %s (%d active)", job.job_id, len(self._jobs))
            return True

    def _try_reserve(self) -> int | None:
        with self._lock:
            self._purge_expired_locked()
            if self._occupancy_locked() >= self.max_concurrent:
                return None
            token = next(self._tokens)
            self._reservations.add(token)
            return token

    async def await_admission(self, timeout: float = 30.0) -> int:
        """Wait for a free slot and reserve it for the caller.

        Re-checks every ``check_interval`` seconds without blocking the
        event loop. The caller must hand the returned token to
        :meth:`try_admit` or :meth:`cancel_reservation`.

        Returns:
            Reservation token.

        Raises:
            ClientError: ``too_many_requests`` if no slot frees up within
                ``timeout`` seconds.
        """
        token = self._try_reserve()
        if token is not None:
            return token

        logger.warning("Max concurrent jobs reached (%d), waiting for a free slot", self.max_concurrent)
        deadline = self._clock() + timeout
        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                raise ClientError.too_many_requests()
            await asyncio.sleep(min(self.check_interval, remaining))
            token = self._try_reserve()
            if token is not None:
                return token

    def cancel_reservation(self, reservation: int) -> None:
        """Return a slot reserved by :meth:`await_admission`.

        Returning a token twice, or one already consumed by
        :meth:`try_admit`, is a no-op.
        """
        with self._lock:
            self._reservations.discard(reservation)

    # ------------------------------------------------------------------
    # Removal and inspection
    # ------------------------------------------------------------------

    def release(self, job_id: str) -> None:
        """Drop one holder of a job. Releasing an unknown id is a no-op."""
        with self._lock:
            holders = self._holders.get(job_id)
            if holders is None:
                return
            if holders > 1:
                self._holders[job_id] = holders - 1
                return
            del self._holders[job_id]
            self._jobs.pop(job_id, None)
            logger.debug("Released job %s (%d active)", job_id, len(self._jobs))

    def clear(self) -> None:
        """Drop every job and reservation."""
        with self._lock:
            count = len(self._jobs)
            self._jobs.clear()
            self._holders.clear()
            self._reservations.clear()
        logger.info("Cleared %d active job(s)", count)

    def contains(self, job_id: str) -> bool:
        with self._lock:
            self._purge_expired_locked()
            return job_id in self._jobs

    def get(self, job_id: str) -> Job | None:
        with self._lock:
            self._purge_expired_locked()
            return self._jobs.get(job_id)

    @property
    def active_count(self) -> int:
        """Number of registered, unexpired jobs."""
        with self._lock:
            self._purge_expired_locked()
            return len(self._jobs)

    @property
    def reserved_count(self) -> int:
        with self._lock:
            return len(self._reservations)
