"""Upload API routes."""

from fastapi import APIRouter, Depends, Request

from repo_analyzer.api.dependencies import get_orchestrator
from repo_analyzer.models.upload import UploadResult
from repo_analyzer.services.upload import UploadOrchestrator

router = APIRouter(tags=["upload"])


@router.post("/upload", response_model=UploadResult, status_code=200)
async def upload_file(
    request: Request, orchestrator: UploadOrchestrator = Depends(get_orchestrator)
) -> UploadResult:
    """Store an uploaded report in the object store.

    Expects a multipart form with the report under the ``file`` field.
    ``bucket``, ``region`` and ``key`` may be given as query parameters or
    form fields. Requires the ``x-api-key`` header outside development mode.
    """
    return await orchestrator.ingest(request)
