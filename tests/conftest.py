"""Pytest configuration and shared fixtures."""

from typing import Optional

import pytest
from fastapi.testclient import TestClient

from repo_analyzer.core.config import Settings
from repo_analyzer.jobs.analyzer import Analyzer
from repo_analyzer.jobs.store import InMemoryJobStore
from repo_analyzer.main import create_app
from repo_analyzer.storage.base import ObjectStore


class RecordingObjectStore(ObjectStore):
    """Object store fake that records every write."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.writes = []
        self.fail_with = fail_with

    def put_object(self, bucket, key, data, content_type):
        if self.fail_with is not None:
            raise self.fail_with
        self.writes.append(
            {"bucket": bucket, "key": key, "data": data, "content_type": content_type}
        )

    def object_url(self, bucket, region, key):
        return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"

    def get_backend_name(self):
        return "recording"


class StaticAnalyzer(Analyzer):
    """Analyzer fake that reports halfway progress, then finishes or raises."""

    def __init__(self, message: str = "Analysis completed", error: Optional[Exception] = None):
        self.message = message
        self.error = error
        self.seen = []

    async def analyze(self, job, report):
        self.seen.append(job.job_id)
        await report(50, "Halfway there")
        if self.error is not None:
            raise self.error
        return self.message


def make_settings(**overrides) -> Settings:
    """Settings isolated from the environment and any .env file."""
    values = {
        "ENV": "production",
        "API_KEY": "secret",
        "STORAGE_BACKEND": "local",
        "AWS_S3_BUCKET": "",
        "AWS_REGION": "",
        "STORAGE_DOMAIN": "",
        "JOB_STORE_PATH": "",
        "ANALYSIS_WORKERS": 1,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def object_store():
    return RecordingObjectStore()


@pytest.fixture
def analyzer():
    return StaticAnalyzer()


@pytest.fixture
def app(settings, object_store, analyzer):
    return create_app(
        settings,
        object_store=object_store,
        job_store=InMemoryJobStore(),
        analyzer=analyzer,
    )


@pytest.fixture
def client(app):
    """Test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client
