"""Job table implementations."""

import logging
import os
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Optional

from repo_analyzer.core.config import Settings
from repo_analyzer.jobs.models import AnalysisJob, JobStatus

logger = logging.getLogger(__name__)


class DuplicateJobError(ValueError):
    """Raised when a job id is already present in the store."""
    pass


class JobStore(ABC):
    """Abstract job table.

    Records are whole immutable jobs; ``save`` replaces the stored record in
    one step. Callers serialize writers per job id.
    """

    @abstractmethod
    def create(self, job: AnalysisJob) -> None:
        """Insert a new job, raising DuplicateJobError if the id exists."""
        pass

    @abstractmethod
    def get(self, job_id: str) -> Optional[AnalysisJob]:
        pass

    @abstractmethod
    def save(self, job: AnalysisJob) -> None:
        """Replace the stored record of an existing job."""
        pass

    @abstractmethod
    def list_by_status(self, status: JobStatus) -> list[AnalysisJob]:
        pass

    def close(self) -> None:
        pass


class InMemoryJobStore(JobStore):
    """In-memory job table. Jobs are lost when the process exits."""

    def __init__(self):
        self._jobs: Dict[str, AnalysisJob] = {}
        self._lock = threading.Lock()

    def create(self, job: AnalysisJob) -> None:
        with self._lock:
            if job.job_id in self._jobs:
                raise DuplicateJobError(job.job_id)
            self._jobs[job.job_id] = job

    def get(self, job_id: str) -> Optional[AnalysisJob]:
        return self._jobs.get(job_id)

    def save(self, job: AnalysisJob) -> None:
        with self._lock:
            self._jobs[job.job_id] = job

    def list_by_status(self, status: JobStatus) -> list[AnalysisJob]:
        return [job for job in list(self._jobs.values()) if job.status is status]


class SqliteJobStore(JobStore):
    """SQLite-backed job table that survives process restarts."""

    def __init__(self, db_path: str):
        parent = os.path.dirname(db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._init_schema()
        logger.info(f"Initialized SqliteJobStore: {db_path}")

    def _init_schema(self) -> None:
        with self._lock:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS analysis_jobs (
                  job_id TEXT PRIMARY KEY,
                  repo_url TEXT NOT NULL,
                  branch TEXT,
                  status TEXT NOT NULL,
                  progress INTEGER,
                  message TEXT NOT NULL,
                  created_at TEXT NOT NULL,
                  updated_at TEXT NOT NULL
                );
                """
            )
            self._conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_analysis_jobs_status ON analysis_jobs(status);"
            )
            self._conn.commit()

    def create(self, job: AnalysisJob) -> None:
        with self._lock:
            try:
                self._conn.execute(
                    "INSERT INTO analysis_jobs(job_id, repo_url, branch, status, progress, "
                    "message, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    self._to_row(job),
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateJobError(job.job_id) from e
            self._conn.commit()

    def get(self, job_id: str) -> Optional[AnalysisJob]:
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM analysis_jobs WHERE job_id = ?", (job_id,)
            ).fetchone()
        return self._from_row(row) if row is not None else None

    def save(self, job: AnalysisJob) -> None:
        with self._lock:
            self._conn.execute(
                "UPDATE analysis_jobs SET status = ?, progress = ?, message = ?, updated_at = ? "
                "WHERE job_id = ?",
                (
                    job.status.value,
                    job.progress,
                    job.message,
                    job.updated_at.isoformat(),
                    job.job_id,
                ),
            )
            self._conn.commit()

    def list_by_status(self, status: JobStatus) -> list[AnalysisJob]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM analysis_jobs WHERE status = ? ORDER BY created_at",
                (status.value,),
            ).fetchall()
        return [self._from_row(row) for row in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @staticmethod
    def _to_row(job: AnalysisJob) -> tuple:
        return (
            job.job_id,
            job.repo_url,
            job.branch,
            job.status.value,
            job.progress,
            job.message,
            job.created_at.isoformat(),
            job.updated_at.isoformat(),
        )

    @staticmethod
    def _from_row(row: sqlite3.Row) -> AnalysisJob:
        return AnalysisJob(
            job_id=row["job_id"],
            repo_url=row["repo_url"],
            branch=row["branch"],
            status=JobStatus(row["status"]),
            progress=row["progress"],
            message=row["message"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


def get_job_store(settings: Settings) -> JobStore:
    """SQLite store when JOB_STORE_PATH is set, in-memory otherwise."""
    if settings.JOB_STORE_PATH:
        return SqliteJobStore(settings.JOB_STORE_PATH)
    logger.warning("JOB_STORE_PATH is not set; analysis jobs will not survive restarts")
    return InMemoryJobStore()
