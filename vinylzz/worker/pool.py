import asyncio
import logging
import os
import socket
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from vinylzz.core import JobQueue
from vinylzz.models import Job
from vinylzz.worker.handlers import JobHandler, noop


logger = logging.getLogger(__name__)


class WorkerPool:
    """A fixed number of slots pulling jobs from one queue.

    Each slot runs at most one job at a time. A job is dispatched to the
    handler registered for its kind. Kinds without a handler complete
    immediately as no-ops, so producers can add new kinds before every
    worker knows about them.

    While a job runs, the slot renews its claim every third of the
    visibility timeout. If the process dies, the claim goes stale and
    another worker picks the job up again once the timeout has passed.

    Examples:

        >>> pool = WorkerPool(queue, {"estimate": handler}, concurrency=3)
        >>> task = asyncio.create_task(pool.run())
        >>> pool.stop()
        >>> await task

    Args:
        queue (JobQueue): The queue to pull from.
        handlers (dict[str, JobHandler]): Handler per job kind.
        concurrency (int): Number of slots. Defaults to 3.
        poll_interval (int): Milliseconds an idle slot waits before polling
            again. Defaults to 1000 ms.
        visibility_timeout (int): Milliseconds after which an unrenewed claim
            is considered abandoned. Defaults to 1 minute.
        prune_interval (int): Milliseconds between retention sweeps.
            Defaults to 1 minute.
        name (str | None): Prefix for ``claimed_by``. Defaults to
            ``<hostname>-<pid>``.
    """

    def __init__(
        self,
        queue: JobQueue,
        handlers: dict[str, JobHandler],
        concurrency: int = 3,
        poll_interval: int = 1000,
        visibility_timeout: int = 60 * 1000,
        prune_interval: int = 60 * 1000,
        name: str | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.queue = queue
        self.handlers = dict(handlers)
        self.concurrency = concurrency
        self.poll_interval = poll_interval
        self.visibility_timeout = visibility_timeout
        self.prune_interval = prune_interval
        self.name = name or f"{socket.gethostname()}-{os.getpid()}"
        self.stop_event = asyncio.Event()
        self.completed = 0
        self.failed = 0

    def handler_for(self, kind: str) -> JobHandler:
        handler = self.handlers.get(kind)
        if handler is None:
            logger.debug(f"No handler for job kind {kind!r}, treating it as a no-op")
            return noop
        return handler

    async def run(self) -> None:
        """Run all slots until ``stop()`` is called or the task is cancelled."""
        logger.info(
            f"Starting worker pool {self.name} with {self.concurrency} slots "
            f"on queue {self.queue.name}"
        )
        tasks = [
            asyncio.create_task(self._run_slot(f"{self.name}/{slot}"))
            for slot in range(self.concurrency)
        ]
        tasks.append(asyncio.create_task(self._run_maintenance()))
        try:
            await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            # gather has already passed the cancellation on to every slot.
            # Cancelling again would interrupt a slot returning its job.
            await asyncio.wait(tasks)
            raise
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("All worker slots have finished")

    def stop(self) -> None:
        """Request the pool to stop.

        Slots stop after their current job or their current wait.
        """
        self.stop_event.set()

    async def _run_slot(self, claim_as: str) -> None:
        while not self.stop_event.is_set():
            try:
                dequeue = self.queue.dequeue(
                    claim_as=claim_as,
                    visibility_timeout=self.visibility_timeout,
                )
                async with dequeue as job:
                    if job:
                        job.result = await self._execute(job)

                if job is None:
                    await self._wait(self.poll_interval)
                else:
                    self._report(job, dequeue.outcome)

            except asyncio.CancelledError:
                logger.info(f"Slot {claim_as} interrupted by CancelledError signal")
                return
            except SQLAlchemyError as exc:
                logger.error(f"Slot {claim_as} cannot reach the queue: {exc}")
                await self._wait(self.poll_interval)

    async def _execute(self, job: Job) -> Any:
        handler = self.handler_for(job.kind)
        heartbeat = asyncio.create_task(self._heartbeat(job))
        try:
            return await handler(job)
        finally:
            heartbeat.cancel()

    async def _heartbeat(self, job: Job) -> None:
        interval = self.visibility_timeout / 3 / 1000
        while True:
            await asyncio.sleep(interval)
            try:
                renewed = await self.queue.touch(job.id, job.attempts)
            except SQLAlchemyError as exc:
                logger.warning(f"Heartbeat for job {job.id} failed: {exc}")
                continue
            if not renewed:
                logger.warning(f"Lost the claim on job {job.id}")
                return

    def _report(self, job: Job, outcome: str | None) -> None:
        if outcome == JobQueue.COMPLETED:
            self.completed += 1
            logger.info(f"Job {job.id} ({job.kind}) completed: {job.result}")
        elif outcome == JobQueue.RETRY:
            self.failed += 1
            logger.warning(
                f"Job {job.id} ({job.kind}) failed on attempt {job.attempts} "
                f"of {job.max_attempts}, will retry"
            )
        elif outcome == JobQueue.EXHAUSTED:
            self.failed += 1
            logger.error(
                f"Job {job.id} ({job.kind}) failed on its last attempt and is exhausted"
            )
        else:
            logger.warning(f"Job {job.id} was taken over by another worker")

    async def _run_maintenance(self) -> None:
        while not self.stop_event.is_set():
            try:
                await self.queue.prune()
            except SQLAlchemyError as exc:
                logger.warning(f"Pruning queue {self.queue.name} failed: {exc}")
            await self._wait(self.prune_interval)

    async def _wait(self, milliseconds: int) -> None:
        try:
            await asyncio.wait_for(self.stop_event.wait(), milliseconds / 1000)
        except asyncio.TimeoutError:
            pass
