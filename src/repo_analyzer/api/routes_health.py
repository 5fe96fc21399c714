"""Health check and service banner endpoints."""

from fastapi import APIRouter, Depends

from repo_analyzer.api.dependencies import get_settings
from repo_analyzer.core.config import Settings

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns the same body on every call and touches no backing service, so
    it answers quickly even while the object store is unreachable.
    """
    return {"status": "ok"}


@router.get("/")
async def root(settings: Settings = Depends(get_settings)) -> dict:
    return {
        "message": "Welcome to Repo Analyzer API!",
        "version": settings.SERVICE_VERSION,
        "status": "success",
    }
