"""Job dispatcher interface and in-process implementation."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List

logger = logging.getLogger(__name__)


class JobDispatcher(ABC):
    """Abstract hand-off point between request handlers and job execution."""

    @abstractmethod
    async def submit(self, job_id: str) -> None:
        """Queue a job for execution. Must not wait for the job to run."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start the dispatcher (e.g., start worker loops)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the dispatcher gracefully."""
        ...


class InProcessQueue(JobDispatcher):
    """asyncio work queue consumed by a fixed pool of worker tasks.

    No external broker is needed. Jobs still waiting when the process stops
    stay queued in the job table and are picked up again on restart.
    """

    def __init__(
        self,
        worker_fn: Callable[[str], Awaitable[None]],
        workers: int = 2,
        poll_interval: float = 1.0,
        stop_timeout: float = 5.0,
    ):
        """
        worker_fn: async callable(job_id) that runs one job to a terminal state.
        poll_interval: how often idle workers check whether they should exit.
        stop_timeout: how long stop() waits for each round of cancellation.
        """
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._worker_fn = worker_fn
        self._worker_count = max(1, workers)
        self._poll_interval = poll_interval
        self._stop_timeout = stop_timeout
        self._tasks: List[asyncio.Task] = []
        self._running = False

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return self._running

    async def submit(self, job_id: str) -> None:
        self._queue.put_nowait(job_id)

    async def start(self) -> None:
        if self._tasks:
            return
        self._running = True
        self._tasks = [
            asyncio.create_task(self._worker_loop(index), name=f"analysis-worker-{index}")
            for index in range(self._worker_count)
        ]
        logger.info(f"Started {self._worker_count} analysis worker(s)")

    async def stop(self) -> None:
        """Stop the workers, interrupting jobs that are still running.

        Workers exit on the cleared running flag even if a cancellation is
        lost inside the job they were running.
        """
        self._running = False
        pending = set(self._tasks)
        for _ in range(2):
            if not pending:
                break
            for task in pending:
                task.cancel()
            _, pending = await asyncio.wait(pending, timeout=self._stop_timeout)
        if pending:
            logger.error(
                f"{len(pending)} analysis worker(s) did not stop",
                extra={"workers": sorted(task.get_name() for task in pending)},
            )
        self._tasks = []
        logger.info("Analysis workers stopped")

    async def join(self) -> None:
        """Wait until every submitted job has been processed."""
        await self._queue.join()

    async def _worker_loop(self, index: int) -> None:
        while self._running:
            try:
                job_id = await asyncio.wait_for(self._queue.get(), timeout=self._poll_interval)
            except asyncio.TimeoutError:
                continue
            try:
                if self._running:
                    await self._worker_fn(job_id)
            except asyncio.CancelledError:
                raise
            except Exception:
                # One job's failure never takes the worker down
                logger.error(
                    "Analysis worker crashed on job",
                    extra={"job_id": job_id, "worker": index},
                    exc_info=True,
                )
            finally:
                self._queue.task_done()
