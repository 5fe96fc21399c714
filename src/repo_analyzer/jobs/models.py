"""Analysis job data model and lifecycle rules."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from repo_analyzer.core.exceptions import InvalidTransitionError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# Forward-only lifecycle; terminal states have no way out
ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.QUEUED: frozenset({JobStatus.IN_PROGRESS}),
    JobStatus.IN_PROGRESS: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


class AnalysisJob(BaseModel):
    """Tracks the lifecycle of one repository analysis.

    Instances are immutable: every update produces a new record, so a reader
    always sees a consistent status/progress/message combination.
    """

    model_config = ConfigDict(frozen=True)

    job_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    repo_url: str
    branch: Optional[str] = None
    status: JobStatus = JobStatus.QUEUED
    progress: Optional[int] = None
    message: str = "Analysis has been queued"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def begin(self, message: str = "Analysis in progress") -> "AnalysisJob":
        """Return the job picked up by a worker.

        Only a queued job can be picked up, so a job id delivered twice is
        never run twice.

        Raises:
            InvalidTransitionError: If the job is not queued
        """
        if self.status is not JobStatus.QUEUED:
            raise InvalidTransitionError(
                f"Cannot start job {self.job_id}: it is {self.status.value}"
            )
        return self.advance(JobStatus.IN_PROGRESS, progress=0, message=message)

    def advance(
        self,
        status: JobStatus,
        *,
        progress: Optional[int] = None,
        message: Optional[str] = None,
    ) -> "AnalysisJob":
        """Return the job after applying one update.

        Progress reports are only accepted while in progress, clamp to 0-100
        and never move backwards. Completion pins progress at 100; failure
        clears it.

        Raises:
            InvalidTransitionError: If the update breaks the lifecycle
        """
        if status == self.status:
            if status is not JobStatus.IN_PROGRESS:
                raise InvalidTransitionError(
                    f"Job {self.job_id} is already {self.status.value}"
                )
        elif status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Cannot move job {self.job_id} from {self.status.value} to {status.value}"
            )

        if status is JobStatus.IN_PROGRESS:
            current = self.progress or 0
            requested = current if progress is None else max(0, min(100, progress))
            new_progress: Optional[int] = max(current, requested)
        elif status is JobStatus.COMPLETED:
            new_progress = 100
        else:
            new_progress = None

        return self.model_copy(
            update={
                "status": status,
                "progress": new_progress,
                "message": self.message if message is None else message,
                "updated_at": utcnow(),
            }
        )
