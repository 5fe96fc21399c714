"""Translation of errors into JSON responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from repo_analyzer.core.exceptions import RepoAnalyzerError

logger = logging.getLogger(__name__)

JOB_API_PREFIX = "/api/"


def error_body(request: Request, message: str) -> dict:
    """Job endpoints answer {status, message}; everything else answers {error}."""
    if request.url.path.startswith(JOB_API_PREFIX):
        return {"status": "error", "message": message}
    return {"error": message}


async def handle_app_error(request: Request, exc: RepoAnalyzerError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(request, exc.message))


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        content = {"error": "Not found"}
    elif exc.status_code == 405:
        allowed = (exc.headers or {}).get("Allow")
        message = f"Method not allowed. Use {allowed}." if allowed else "Method not allowed"
        content = error_body(request, message)
    else:
        content = error_body(request, str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if any(error.get("type") == "json_invalid" for error in errors):
        message = "Invalid JSON body"
    elif errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"Invalid request: {location}: {first.get('msg', 'invalid value')}"
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=error_body(request, message))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error",
        extra={"method": request.method, "path": request.url.path},
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RepoAnalyzerError, handle_app_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
