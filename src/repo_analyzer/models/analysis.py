"""Analysis job request and response models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from repo_analyzer.jobs.models import AnalysisJob


class AnalyzeRequest(BaseModel):
    """Request body for queueing a repository analysis."""

    repo_url: str = Field("", description="Repository URL to analyze")
    branch: Optional[str] = Field(None, description="Branch to analyze, default HEAD")


class AnalyzeResponse(BaseModel):
    """Response model for a queued analysis."""

    status: str
    job_id: str
    message: str


class JobStatusResponse(BaseModel):
    """Response model for a job status lookup."""

    status: str
    job_id: str
    progress: Optional[int]
    message: str
    repo_url: str
    branch: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_job(cls, job: AnalysisJob) -> "JobStatusResponse":
        return cls(
            status=job.status.value,
            job_id=job.job_id,
            progress=job.progress,
            message=job.message,
            repo_url=job.repo_url,
            branch=job.branch,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )
