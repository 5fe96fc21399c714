"""FastAPI dependencies exposing the components wired in create_app."""

from fastapi import Request

from repo_analyzer.core.auth import Authenticator
from repo_analyzer.core.config import Settings
from repo_analyzer.jobs.tracker import JobTracker
from repo_analyzer.services.upload import UploadOrchestrator


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


def get_orchestrator(request: Request) -> UploadOrchestrator:
    return request.app.state.orchestrator


def get_tracker(request: Request) -> JobTracker:
    return request.app.state.tracker
