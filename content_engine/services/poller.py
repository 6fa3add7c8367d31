"""
Background completion polling for dispatched render jobs.

Each dispatched job gets one polling task. The task waits one interval,
asks the worker for the job status and repeats, for at most
``max_attempts`` checks. The first terminal observation (or exhaustion)
is written to both records through RenderStore.mark_terminal, exactly once.
"""

import asyncio
import logging
from typing import Optional, Set

from content_engine.models.media import AssetStatus
from content_engine.services.render_worker import RenderWorkerClient, RenderWorkerError
from content_engine.services.store import RenderStore, TerminalOutcome

logger = logging.getLogger(__name__)


TIMEOUT_MESSAGE = "Render timed out"
STATUS_CHECK_FAILED_MESSAGE = "Failed to check render status"
DEFAULT_FAILURE_MESSAGE = "Render failed"
CANCELLED_MESSAGE = "Render polling cancelled"


class CompletionPoller:
    """Owns the polling tasks started for dispatched render jobs."""

    def __init__(
        self,
        worker: RenderWorkerClient,
        store: RenderStore,
        poll_interval_ms: int = 30000,
        max_attempts: int = 30,
    ) -> None:
        self._worker = worker
        self._store = store
        self._interval = poll_interval_ms / 1000
        self._max_attempts = max_attempts
        self._tasks: Set[asyncio.Task] = set()

    @property
    def active_jobs(self) -> int:
        return len(self._tasks)

    def start(self, job_id: str, spec_id: str, asset_id: str) -> asyncio.Task:
        """Start polling ``job_id`` in the background and return its task."""
        task = asyncio.create_task(self.run(job_id, spec_id, asset_id), name=f"render-poll-{job_id}")
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Polling task {task.get_name()} crashed: {exc!r}", exc_info=exc)

    async def run(self, job_id: str, spec_id: str, asset_id: str) -> TerminalOutcome:
        """
        Poll until the job reaches a terminal state or attempts run out.

        A failed status check is not fatal; the attempt is consumed and
        polling continues. A "complete" status without a result URL is
        treated as still in progress. If writing an observed terminal state
        fails, the write is retried on the following attempts instead of
        polling again. When attempts run out a final write is always tried.
        """
        last_check_failed = False
        pending: Optional[TerminalOutcome] = None
        try:
            for attempt in range(1, self._max_attempts + 1):
                await asyncio.sleep(self._interval)

                if pending is not None:
                    if await self._write_terminal(job_id, spec_id, asset_id, pending):
                        return pending
                    continue

                try:
                    job_status = await self._worker.get_status(job_id)
                except RenderWorkerError as e:
                    last_check_failed = True
                    logger.warning(f"Render job {job_id} status check {attempt} failed: {e}")
                    continue
                except Exception:
                    last_check_failed = True
                    logger.exception(f"Render job {job_id} status check {attempt} raised")
                    continue

                last_check_failed = False
                logger.debug(
                    f"Render job {job_id} attempt {attempt}/{self._max_attempts}: {job_status.status}"
                )

                if job_status.status == "complete" and job_status.result_url:
                    outcome = TerminalOutcome.ready(job_status.result_url)
                elif job_status.status == "failed":
                    outcome = TerminalOutcome.failed(job_status.error or DEFAULT_FAILURE_MESSAGE)
                else:
                    continue

                if await self._write_terminal(job_id, spec_id, asset_id, outcome):
                    return outcome
                pending = outcome

            if pending is not None:
                outcome = pending
            else:
                message = STATUS_CHECK_FAILED_MESSAGE if last_check_failed else TIMEOUT_MESSAGE
                outcome = TerminalOutcome.failed(message)
                logger.error(f"Render job {job_id} gave up after {self._max_attempts} attempts: {message}")
            await self._write_terminal(job_id, spec_id, asset_id, outcome)
            return outcome

        except asyncio.CancelledError:
            logger.warning(f"Polling for render job {job_id} cancelled")
            await asyncio.shield(
                self._write_terminal(job_id, spec_id, asset_id, TerminalOutcome.failed(CANCELLED_MESSAGE))
            )
            raise

    async def _write_terminal(
        self, job_id: str, spec_id: str, asset_id: str, outcome: TerminalOutcome
    ) -> bool:
        """Write ``outcome`` to both records. Returns False if the write raised."""
        try:
            await self._store.mark_terminal(spec_id, asset_id, outcome)
        except Exception:
            logger.exception(f"Failed to record terminal state for render job {job_id}")
            return False

        if outcome.status == AssetStatus.READY:
            logger.info(f"Render job {job_id} complete: {outcome.result_url}")
        else:
            logger.error(f"Render job {job_id} failed: {outcome.error}")
        return True

    async def wait_idle(self) -> None:
        """Wait until every polling task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel all polling tasks; their records are marked failed."""
        tasks = list(self._tasks)
        if not tasks:
            return
        logger.info(f"Cancelling {len(tasks)} render polling task(s)")
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
