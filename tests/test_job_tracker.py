"""Tests for the job tracker."""

import asyncio
import re

import pytest

from repo_analyzer.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from repo_analyzer.jobs.dispatcher import JobDispatcher
from repo_analyzer.jobs.models import AnalysisJob, JobStatus
from repo_analyzer.jobs.store import InMemoryJobStore, SqliteJobStore
from repo_analyzer.jobs.tracker import JobTracker

UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


class RecordingDispatcher(JobDispatcher):
    def __init__(self):
        self.submitted = []

    async def submit(self, job_id):
        self.submitted.append(job_id)

    async def start(self):
        pass

    async def stop(self):
        pass


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def tracker(dispatcher):
    return JobTracker(InMemoryJobStore(), dispatcher)


@pytest.mark.asyncio
async def test_enqueue_creates_queued_job(tracker, dispatcher):
    job = await tracker.enqueue("https://example.com/r.git", "main")

    assert UUID_PATTERN.match(job.job_id)
    assert job.status is JobStatus.QUEUED
    assert job.repo_url == "https://example.com/r.git"
    assert job.branch == "main"
    assert dispatcher.submitted == [job.job_id]


@pytest.mark.asyncio
@pytest.mark.parametrize("repo_url", ["", "   ", None])
async def test_enqueue_requires_repo_url(tracker, dispatcher, repo_url):
    with pytest.raises(ValidationError, match="Repository URL is required"):
        await tracker.enqueue(repo_url)

    assert dispatcher.submitted == []


@pytest.mark.asyncio
async def test_enqueue_normalizes_blank_branch(tracker):
    job = await tracker.enqueue(" https://example.com/r.git ", "  ")

    assert job.repo_url == "https://example.com/r.git"
    assert job.branch is None


@pytest.mark.asyncio
async def test_enqueue_issues_distinct_ids(tracker):
    jobs = [await tracker.enqueue("https://example.com/r.git") for _ in range(50)]

    assert len({job.job_id for job in jobs}) == 50


@pytest.mark.asyncio
async def test_enqueue_without_dispatcher_leaves_job_queued():
    tracker = JobTracker(InMemoryJobStore())

    job = await tracker.enqueue("https://example.com/r.git")

    assert (await tracker.status(job.job_id)).status is JobStatus.QUEUED


@pytest.mark.asyncio
async def test_status_of_unknown_job(tracker):
    with pytest.raises(NotFoundError):
        await tracker.status("mock-job-id-123")


@pytest.mark.asyncio
async def test_status_does_not_change_job(tracker):
    job = await tracker.enqueue("https://example.com/r.git")

    first = await tracker.status(job.job_id)
    second = await tracker.status(job.job_id)

    assert first == second == job


@pytest.mark.asyncio
async def test_full_lifecycle(tracker):
    job = await tracker.enqueue("https://example.com/r.git")

    await tracker.start(job.job_id)
    await tracker.report_progress(job.job_id, 40, "Scanning")
    done = await tracker.complete(job.job_id, "All good")

    assert done.status is JobStatus.COMPLETED
    assert done.progress == 100
    assert done.message == "All good"
    assert await tracker.status(job.job_id) == done


@pytest.mark.asyncio
async def test_fail_from_in_progress(tracker):
    job = await tracker.enqueue("https://example.com/r.git")
    await tracker.start(job.job_id)

    failed = await tracker.fail(job.job_id, "Clone failed")

    assert failed.status is JobStatus.FAILED
    assert failed.progress is None


@pytest.mark.asyncio
async def test_queued_job_cannot_complete_directly(tracker):
    job = await tracker.enqueue("https://example.com/r.git")

    with pytest.raises(InvalidTransitionError):
        await tracker.complete(job.job_id)

    assert (await tracker.status(job.job_id)).status is JobStatus.QUEUED


@pytest.mark.asyncio
async def test_completed_job_is_final(tracker):
    job = await tracker.enqueue("https://example.com/r.git")
    await tracker.start(job.job_id)
    await tracker.complete(job.job_id)

    with pytest.raises(InvalidTransitionError):
        await tracker.fail(job.job_id, "late failure")
    with pytest.raises(InvalidTransitionError):
        await tracker.report_progress(job.job_id, 10)


@pytest.mark.asyncio
async def test_updates_to_unknown_job(tracker):
    with pytest.raises(NotFoundError):
        await tracker.start("missing")


@pytest.mark.asyncio
async def test_concurrent_progress_reports_never_regress(tracker):
    job = await tracker.enqueue("https://example.com/r.git")
    await tracker.start(job.job_id)

    await asyncio.gather(
        *(tracker.report_progress(job.job_id, value, f"step {value}") for value in range(0, 100, 5))
    )

    assert (await tracker.status(job.job_id)).progress == 95


@pytest.mark.asyncio
async def test_concurrent_terminal_updates_apply_once(tracker):
    job = await tracker.enqueue("https://example.com/r.git")
    await tracker.start(job.job_id)

    results = await asyncio.gather(
        tracker.complete(job.job_id),
        tracker.fail(job.job_id, "boom"),
        return_exceptions=True,
    )

    assert sum(isinstance(result, AnalysisJob) for result in results) == 1
    assert sum(isinstance(result, InvalidTransitionError) for result in results) == 1
    final = await tracker.status(job.job_id)
    assert final.status.is_terminal
    assert (final.status is JobStatus.COMPLETED) == (final.progress == 100)


@pytest.mark.asyncio
async def test_recover_requeues_and_fails_interrupted_jobs(tmp_path):
    path = str(tmp_path / "jobs.db")
    first = JobTracker(SqliteJobStore(path))
    waiting = await first.enqueue("https://example.com/waiting.git")
    running = await first.enqueue("https://example.com/running.git")
    finished = await first.enqueue("https://example.com/finished.git")
    await first.start(running.job_id)
    await first.start(finished.job_id)
    await first.complete(finished.job_id)

    dispatcher = RecordingDispatcher()
    second = JobTracker(SqliteJobStore(path), dispatcher)
    await second.recover()

    assert dispatcher.submitted == [waiting.job_id]
    interrupted = await second.status(running.job_id)
    assert interrupted.status is JobStatus.FAILED
    assert interrupted.message == "Interrupted by service restart"
    assert (await second.status(finished.job_id)).status is JobStatus.COMPLETED


@pytest.mark.asyncio
async def test_job_can_only_be_started_once(tracker):
    job = await tracker.enqueue("https://example.com/r.git")
    await tracker.start(job.job_id)
    await tracker.report_progress(job.job_id, 40)

    with pytest.raises(InvalidTransitionError):
        await tracker.start(job.job_id)

    assert (await tracker.status(job.job_id)).progress == 40


@pytest.mark.asyncio
async def test_updates_to_unknown_jobs_leave_no_locks_behind(tracker):
    for job_id in ("missing-1", "missing-2", "missing-3"):
        with pytest.raises(NotFoundError):
            await tracker.report_progress(job_id, 10)

    assert tracker._locks == {}
