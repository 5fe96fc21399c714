"""Tests for the git remote probe analyzer."""

import asyncio

import pytest

from repo_analyzer.core.exceptions import AnalysisError
from repo_analyzer.jobs.analyzer import GitRemoteProbe
from repo_analyzer.jobs.models import AnalysisJob

LS_REMOTE_OUTPUT = (
    b"9fceb02d0ae598e95dc970b74767f19372d61af8\tHEAD\n"
    b"4a1c2b3d4e5f60718293a4b5c6d7e8f901234567\trefs/heads/develop\n"
    b"9fceb02d0ae598e95dc970b74767f19372d61af8\trefs/heads/main\n"
)


class FakeProcess:
    def __init__(self, stdout=b"", stderr=b"", returncode=0):
        self._stdout = stdout
        self._stderr = stderr
        self.returncode = returncode
        self.killed = False

    async def communicate(self):
        return self._stdout, self._stderr

    def kill(self):
        self.killed = True


@pytest.fixture
def fake_git(monkeypatch):
    """Replace subprocess creation, recording the arguments of each call."""
    calls = []
    state = {"process": FakeProcess(stdout=LS_REMOTE_OUTPUT)}

    async def create_subprocess_exec(*args, **kwargs):
        calls.append({"args": args, "env": kwargs.get("env")})
        return state["process"]

    monkeypatch.setattr(asyncio, "create_subprocess_exec", create_subprocess_exec)
    state["calls"] = calls
    return state


def collect_progress(reports):
    async def report(progress, message):
        reports.append((progress, message))

    return report


@pytest.mark.asyncio
async def test_resolves_branch(fake_git):
    reports = []
    job = AnalysisJob(repo_url="https://example.com/r.git", branch="develop")

    message = await GitRemoteProbe().analyze(job, collect_progress(reports))

    assert message == "Resolved develop at 4a1c2b3d4e5f60718293a4b5c6d7e8f901234567"
    assert [progress for progress, _ in reports] == [10, 80]
    call = fake_git["calls"][0]
    assert call["args"] == ("git", "ls-remote", "https://example.com/r.git", "refs/heads/develop")
    assert call["env"]["GIT_TERMINAL_PROMPT"] == "0"


@pytest.mark.asyncio
async def test_defaults_to_head(fake_git):
    job = AnalysisJob(repo_url="https://example.com/r.git")

    message = await GitRemoteProbe().analyze(job, collect_progress([]))

    assert message == "Resolved HEAD at 9fceb02d0ae598e95dc970b74767f19372d61af8"
    assert fake_git["calls"][0]["args"][-1] == "HEAD"


@pytest.mark.asyncio
async def test_unknown_branch(fake_git):
    job = AnalysisJob(repo_url="https://example.com/r.git", branch="feature")

    with pytest.raises(AnalysisError, match="Branch not found: feature"):
        await GitRemoteProbe().analyze(job, collect_progress([]))


@pytest.mark.asyncio
async def test_git_failure(fake_git):
    fake_git["process"] = FakeProcess(
        stderr=b"fatal: repository 'https://example.com/r.git' not found\n", returncode=128
    )
    job = AnalysisJob(repo_url="https://example.com/r.git")

    with pytest.raises(AnalysisError, match="git ls-remote failed: fatal: repository"):
        await GitRemoteProbe().analyze(job, collect_progress([]))


@pytest.mark.asyncio
async def test_git_missing(monkeypatch):
    async def create_subprocess_exec(*args, **kwargs):
        raise FileNotFoundError(args[0])

    monkeypatch.setattr(asyncio, "create_subprocess_exec", create_subprocess_exec)
    job = AnalysisJob(repo_url="https://example.com/r.git")

    with pytest.raises(AnalysisError, match="git executable not found"):
        await GitRemoteProbe(git_binary="/nonexistent/git").analyze(job, collect_progress([]))


@pytest.mark.asyncio
async def test_rejects_option_like_url(fake_git):
    job = AnalysisJob(repo_url="--upload-pack=touch /tmp/pwned")

    with pytest.raises(AnalysisError, match="Invalid repository URL"):
        await GitRemoteProbe().analyze(job, collect_progress([]))

    assert fake_git["calls"] == []


@pytest.mark.asyncio
async def test_git_is_limited_to_remote_protocols(fake_git):
    job = AnalysisJob(repo_url="file:///etc")
    fake_git["process"] = FakeProcess(
        stderr=b"fatal: transport 'file' not allowed\n", returncode=128
    )

    with pytest.raises(AnalysisError, match="transport 'file' not allowed"):
        await GitRemoteProbe().analyze(job, collect_progress([]))

    assert fake_git["calls"][0]["env"]["GIT_ALLOW_PROTOCOL"] == "https:http:ssh:git"


class BlockingProcess(FakeProcess):
    """Process that never finishes until killed."""

    def __init__(self):
        super().__init__()
        self.waited = False

    async def communicate(self):
        await asyncio.sleep(10)

    async def wait(self):
        self.waited = True
        return -9


@pytest.mark.asyncio
async def test_cancelled_analysis_kills_and_reaps_git(fake_git):
    process = BlockingProcess()
    fake_git["process"] = process
    job = AnalysisJob(repo_url="https://example.com/r.git")

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(GitRemoteProbe().analyze(job, collect_progress([])), timeout=0.05)

    assert process.killed
    assert process.waited
