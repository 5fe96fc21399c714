"""Repository analyzers and the runner that drives them."""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from repo_analyzer.core.exceptions import AnalysisError, InvalidTransitionError
from repo_analyzer.jobs.models import AnalysisJob
from repo_analyzer.jobs.tracker import JobTracker

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], Awaitable[None]]

ALLOWED_GIT_PROTOCOLS = "https:http:ssh:git"


class Analyzer(ABC):
    """Performs the analysis of one repository."""

    @abstractmethod
    async def analyze(self, job: AnalysisJob, report: ProgressCallback) -> str:
        """Analyze ``job.repo_url``.

        Args:
            job: Job being executed
            report: Callback taking (progress percentage, status message)

        Returns:
            Completion message

        Raises:
            AnalysisError: If the repository cannot be analyzed
        """
        ...


class GitRemoteProbe(Analyzer):
    """Resolves the requested branch of a remote repository with ``git ls-remote``."""

    def __init__(self, git_binary: str = "git"):
        self.git_binary = git_binary

    async def analyze(self, job: AnalysisJob, report: ProgressCallback) -> str:
        if job.repo_url.startswith("-"):
            raise AnalysisError(f"Invalid repository URL: {job.repo_url}")

        ref = f"refs/heads/{job.branch}" if job.branch else "HEAD"
        await report(10, f"Contacting {job.repo_url}")

        # Remote transports only; file:// and local paths are refused by git
        env = {
            **os.environ,
            "GIT_TERMINAL_PROMPT": "0",
            "GIT_ALLOW_PROTOCOL": ALLOWED_GIT_PROTOCOLS,
        }
        try:
            proc = await asyncio.create_subprocess_exec(
                self.git_binary,
                "ls-remote",
                job.repo_url,
                ref,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except FileNotFoundError as e:
            raise AnalysisError(f"git executable not found: {self.git_binary}") from e

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            proc.kill()
            await proc.wait()
            raise

        if proc.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise AnalysisError(f"git ls-remote failed: {detail or proc.returncode}")

        await report(80, "Resolving references")

        commit = self._find_commit(stdout.decode("utf-8", errors="replace"), ref)
        if commit is None:
            raise AnalysisError(f"Branch not found: {job.branch or 'HEAD'}")

        return f"Resolved {job.branch or 'HEAD'} at {commit}"

    @staticmethod
    def _find_commit(output: str, ref: str) -> Optional[str]:
        for line in output.splitlines():
            parts = line.strip().split("\t")
            if len(parts) == 2 and parts[1] == ref:
                return parts[0]
        return None


class AnalysisRunner:
    """Runs one job through the analyzer, recording every state change."""

    def __init__(self, tracker: JobTracker, analyzer: Analyzer, timeout: Optional[float] = None):
        self._tracker = tracker
        self._analyzer = analyzer
        self._timeout = timeout

    async def run(self, job_id: str) -> None:
        try:
            job = await self._tracker.start(job_id)
        except InvalidTransitionError as e:
            logger.warning(f"Skipping job: {e.message}", extra={"job_id": job_id})
            return

        async def report(progress: int, message: str) -> None:
            await self._tracker.report_progress(job_id, progress, message)

        try:
            message = await asyncio.wait_for(
                self._analyzer.analyze(job, report), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            await self._tracker.fail(
                job_id, f"Analysis timed out after {self._timeout} seconds"
            )
            return
        except AnalysisError as e:
            logger.warning(f"Analysis failed: {e.message}", extra={"job_id": job_id})
            await self._tracker.fail(job_id, f"Analysis failed: {e.message}")
            return
        except Exception as e:
            logger.error("Analyzer raised unexpectedly", extra={"job_id": job_id}, exc_info=True)
            await self._tracker.fail(job_id, f"Analysis failed: {type(e).__name__}: {e}")
            return

        await self._tracker.complete(job_id, message or "Analysis completed")
