"""Repository analysis job routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError

from repo_analyzer.api.dependencies import get_authenticator, get_settings, get_tracker
from repo_analyzer.core.auth import Authenticator
from repo_analyzer.core.config import Settings
from repo_analyzer.core.exceptions import ValidationError
from repo_analyzer.jobs.tracker import JobTracker
from repo_analyzer.models.analysis import AnalyzeRequest, AnalyzeResponse, JobStatusResponse

router = APIRouter(prefix="/api", tags=["analysis"])
logger = logging.getLogger(__name__)


async def parse_analyze_request(request: Request) -> AnalyzeRequest:
    """Parse the JSON body of an analyze call.

    Raises:
        ValidationError: If the body is not JSON or not a valid request object
    """
    try:
        payload = await request.json()
    except ValueError as e:
        raise ValidationError("Invalid JSON body") from e

    try:
        return AnalyzeRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid request body: {e.errors()[0]['msg']}") from e


@router.post("/analyze", response_model=AnalyzeResponse, status_code=202)
async def analyze_repository(
    request: Request,
    tracker: JobTracker = Depends(get_tracker),
    authenticator: Authenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_settings),
) -> AnalyzeResponse:
    """Queue an asynchronous analysis of a repository."""
    if settings.REQUIRE_AUTH_FOR_ANALYZE:
        authenticator.require(request.headers)

    body = await parse_analyze_request(request)
    job = await tracker.enqueue(body.repo_url, body.branch)

    return AnalyzeResponse(
        status=job.status.value,
        job_id=job.job_id,
        message=job.message,
    )


@router.get("/status", response_model=JobStatusResponse)
async def job_status(
    job_id: Optional[str] = None, tracker: JobTracker = Depends(get_tracker)
) -> JobStatusResponse:
    """Report the current state of an analysis job."""
    if not job_id:
        raise ValidationError("Missing job_id parameter")

    job = await tracker.status(job_id)
    return JobStatusResponse.from_job(job)
