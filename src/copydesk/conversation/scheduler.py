"""Bounded polling of remote runs."""

import asyncio
import logging

from ..client import RemoteRun, RunStatus, ThreadService
from ..errors import NoResponseReceived, RemoteServiceError, RunCancelled, RunFailed, RunTimeout
from .models import RunResult

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_RUN_TIMEOUT = 300.0


class RunScheduler:
    """Drives one run from submission to a terminal status.

    Hidden design decisions:
    - Polling cadence and the wall-clock ceiling
    - How a timed-out run is cancelled
    - Which message counts as the run's result

    Status transitions come only from the service; nothing is inferred
    locally. The scheduler does not serialize runs: callers must not start a
    second run on a thread while one is in flight (SessionManager guards this).
    """

    def __init__(
        self,
        service: ThreadService,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float | None = DEFAULT_RUN_TIMEOUT
    ):
        """Initialize the scheduler.

        Args:
            service: Remote thread service
            poll_interval: Seconds between status reads
            timeout: Seconds before an unfinished run is cancelled (None waits forever)
        """
        if poll_interval < 0:
            raise ValueError("poll_interval must be >= 0")
        if timeout is not None and timeout < 0:
            raise ValueError("timeout must be >= 0 or None")

        self._service = service
        self._poll_interval = poll_interval
        self._timeout = timeout

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @property
    def timeout(self) -> float | None:
        return self._timeout

    async def run(self, thread_id: str, assistant_id: str) -> RunResult:
        """Submit a run and wait for it to finish.

        Args:
            thread_id: Thread to run against
            assistant_id: Assistant to invoke

        Returns:
            RunResult holding the newest thread message

        Raises:
            RunFailed: Run ended failed, incomplete, expired (RunCancelled if cancelled)
            RunTimeout: Run did not finish within the timeout
            NoResponseReceived: Run completed but no message could be read
            RemoteServiceError: Any service error, propagated as-is
        """
        run = await self.submit(thread_id, assistant_id)
        return await self.wait(run)

    async def submit(self, thread_id: str, assistant_id: str) -> RemoteRun:
        """Create the run and return its initial state."""
        run = await self._service.create_run(thread_id, assistant_id)
        logger.debug("Run %s submitted, initial status: %s", run.id, run.status.value)
        return run

    async def wait(self, run: RemoteRun) -> RunResult:
        """Poll a submitted run until it reaches a terminal status."""
        loop = asyncio.get_running_loop()
        deadline = None if self._timeout is None else loop.time() + self._timeout
        polls = 0

        while not run.status.is_terminal:
            if deadline is not None and loop.time() >= deadline:
                await self._cancel_after_timeout(run)

            await asyncio.sleep(self._poll_interval)
            run = await self._service.retrieve_run(run.thread_id, run.id)
            polls += 1
            logger.debug("Run %s status: %s", run.id, run.status.value)

        return await self._finish(run, polls)

    async def _finish(self, run: RemoteRun, polls: int) -> RunResult:
        if run.status == RunStatus.COMPLETED:
            messages = await self._service.list_messages(run.thread_id, limit=1, order="desc")
            if not messages or messages[0].text is None:
                raise NoResponseReceived(run.thread_id)

            logger.info("Run %s completed after %d polls", run.id, polls)
            return RunResult(
                run_id=run.id,
                thread_id=run.thread_id,
                status=run.status,
                message=messages[0],
                polls=polls,
            )

        if run.status == RunStatus.CANCELLED:
            raise RunCancelled(run.id, run.last_error)

        raise RunFailed(run.id, run.status.value, run.last_error)

    async def _cancel_after_timeout(self, run: RemoteRun) -> None:
        """Request cancellation of a run that exceeded the timeout, then raise RunTimeout."""
        logger.warning(
            "Run %s exceeded %.1fs (status: %s), cancelling",
            run.id, self._timeout, run.status.value
        )
        timeout_error = RunTimeout(run.id, self._timeout or 0.0, run.status.value)
        try:
            await self._service.cancel_run(run.thread_id, run.id)
        except RemoteServiceError as e:
            logger.warning("Could not cancel run %s: %s", run.id, e)
            raise timeout_error from e
        raise timeout_error
