"""Job identity, lifecycle transitions and status queries."""

import asyncio
import logging
from typing import Callable, Dict, Optional

from repo_analyzer.core.exceptions import NotFoundError, ValidationError
from repo_analyzer.jobs.dispatcher import JobDispatcher
from repo_analyzer.jobs.models import AnalysisJob, JobStatus
from repo_analyzer.jobs.store import JobStore

logger = logging.getLogger(__name__)


class JobTracker:
    """Owns the analysis job table.

    Request handlers call ``enqueue`` and ``status``. The executor moves jobs
    through their lifecycle with ``start``, ``report_progress``, ``complete``
    and ``fail``; each of those is a single read-modify-write under a lock
    held for that job id only.
    """

    def __init__(self, store: JobStore, dispatcher: Optional[JobDispatcher] = None):
        self._store = store
        self._dispatcher = dispatcher
        self._locks: Dict[str, asyncio.Lock] = {}

    def set_dispatcher(self, dispatcher: JobDispatcher) -> None:
        self._dispatcher = dispatcher

    async def enqueue(self, repo_url: Optional[str], branch: Optional[str] = None) -> AnalysisJob:
        """Create a queued job and hand it to the dispatcher.

        Returns as soon as the job is queued; never waits for execution.

        Raises:
            ValidationError: If the repository URL is empty
        """
        repo_url = (repo_url or "").strip()
        if not repo_url:
            raise ValidationError("Repository URL is required")
        branch = (branch or "").strip() or None

        job = AnalysisJob(repo_url=repo_url, branch=branch)
        await asyncio.to_thread(self._store.create, job)

        if self._dispatcher is None:
            logger.warning(
                "No dispatcher attached; job stays queued", extra={"job_id": job.job_id}
            )
        else:
            await self._dispatcher.submit(job.job_id)

        logger.info(
            f"Analysis queued: job_id={job.job_id}",
            extra={"job_id": job.job_id, "repo_url": repo_url, "branch": branch},
        )
        return job

    async def status(self, job_id: str) -> AnalysisJob:
        """Look up a job. Never modifies it.

        Raises:
            NotFoundError: If no job has this id
        """
        job = await asyncio.to_thread(self._store.get, job_id)
        if job is None:
            raise NotFoundError(f"Job not found: {job_id}")
        return job

    async def start(self, job_id: str, message: str = "Analysis in progress") -> AnalysisJob:
        """Mark a queued job as picked up by a worker.

        Raises:
            InvalidTransitionError: If the job is not queued
        """
        return await self._apply(job_id, lambda job: job.begin(message))

    async def report_progress(
        self, job_id: str, progress: int, message: Optional[str] = None
    ) -> AnalysisJob:
        return await self._apply(
            job_id,
            lambda job: job.advance(JobStatus.IN_PROGRESS, progress=progress, message=message),
        )

    async def complete(self, job_id: str, message: str = "Analysis completed") -> AnalysisJob:
        return await self._apply(
            job_id, lambda job: job.advance(JobStatus.COMPLETED, message=message)
        )

    async def fail(self, job_id: str, message: str) -> AnalysisJob:
        return await self._apply(
            job_id, lambda job: job.advance(JobStatus.FAILED, message=message)
        )

    async def recover(self) -> None:
        """Reconcile jobs left behind by a previous process.

        Queued jobs go back onto the dispatcher. Jobs that were running when
        the process stopped cannot be resumed and are marked failed.
        """
        interrupted = await asyncio.to_thread(self._store.list_by_status, JobStatus.IN_PROGRESS)
        for job in interrupted:
            await self.fail(job.job_id, "Interrupted by service restart")

        queued = await asyncio.to_thread(self._store.list_by_status, JobStatus.QUEUED)
        if self._dispatcher is not None:
            for job in queued:
                await self._dispatcher.submit(job.job_id)

        if interrupted or queued:
            logger.info(
                f"Recovered jobs: {len(queued)} requeued, {len(interrupted)} failed"
            )

    async def _apply(
        self, job_id: str, update: Callable[[AnalysisJob], AnalysisJob]
    ) -> AnalysisJob:
        lock = self._locks.setdefault(job_id, asyncio.Lock())
        async with lock:
            job = await asyncio.to_thread(self._store.get, job_id)
            if job is None:
                self._locks.pop(job_id, None)
                raise NotFoundError(f"Job not found: {job_id}")
            updated = update(job)
            await asyncio.to_thread(self._store.save, updated)

        if updated.status.is_terminal:
            self._locks.pop(job_id, None)
            logger.info(
                f"Job {updated.status.value}: job_id={job_id}",
                extra={"job_id": job_id, "job_message": updated.message},
            )
        return updated
