"""Main application entrypoint for Repo Analyzer API."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from repo_analyzer.api import routes_analysis, routes_health, routes_upload
from repo_analyzer.api.errors import register_exception_handlers
from repo_analyzer.api.middleware import REQUEST_ID_HEADER, RequestLoggingMiddleware
from repo_analyzer.core.auth import API_KEY_HEADER, Authenticator
from repo_analyzer.core.config import Settings
from repo_analyzer.core.config import settings as default_settings
from repo_analyzer.core.logging import setup_logging
from repo_analyzer.jobs.analyzer import AnalysisRunner, Analyzer, GitRemoteProbe
from repo_analyzer.jobs.dispatcher import InProcessQueue
from repo_analyzer.jobs.store import JobStore, get_job_store
from repo_analyzer.jobs.tracker import JobTracker
from repo_analyzer.services.upload import UploadOrchestrator
from repo_analyzer.storage.base import ObjectStore
from repo_analyzer.storage.factory import get_object_store
from repo_analyzer.storage.gateway import ObjectStoreGateway

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    object_store: Optional[ObjectStore] = None,
    job_store: Optional[JobStore] = None,
    analyzer: Optional[Analyzer] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Every component receives its configuration here; nothing reads the
    environment on its own. Pass ``object_store``, ``job_store`` or
    ``analyzer`` to replace the configured implementations.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = settings or default_settings

    # Initialize logging first
    setup_logging(settings)

    gateway = ObjectStoreGateway(
        object_store or get_object_store(settings),
        domain_override=settings.STORAGE_DOMAIN,
        write_timeout=settings.STORE_WRITE_TIMEOUT_SECONDS,
    )
    authenticator = Authenticator.from_settings(settings)
    orchestrator = UploadOrchestrator(authenticator, gateway, settings)

    jobs = job_store or get_job_store(settings)
    tracker = JobTracker(jobs)
    runner = AnalysisRunner(
        tracker,
        analyzer or GitRemoteProbe(),
        timeout=settings.ANALYSIS_TIMEOUT_SECONDS,
    )
    dispatcher = InProcessQueue(runner.run, workers=settings.ANALYSIS_WORKERS)
    tracker.set_dispatcher(dispatcher)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown logic."""
        await dispatcher.start()
        await tracker.recover()
        logger.info(
            f"{settings.SERVICE_NAME} {settings.SERVICE_VERSION} started",
            extra={
                "env": settings.ENV,
                "storage_backend": gateway.backend_name,
                "port": settings.PORT,
            },
        )

        yield

        logger.info(f"Shutting down {settings.SERVICE_NAME}")
        await dispatcher.stop()
        jobs.close()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.authenticator = authenticator
    app.state.orchestrator = orchestrator
    app.state.tracker = tracker
    app.state.dispatcher = dispatcher

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", API_KEY_HEADER, REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )

    register_exception_handlers(app)

    # Register routers
    app.include_router(routes_health.router, tags=["health"])
    app.include_router(routes_upload.router)
    app.include_router(routes_analysis.router)

    return app


# Export app instance for ASGI servers
app = create_app()
