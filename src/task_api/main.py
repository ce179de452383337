import logging

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import TaskError
from .logging_setup import setup_logging
from .repositories import Repository, get_repository
from .routers import tasks as tasks_router
from .settings import get_settings
from .utils import error_envelope

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "Create, read, update and delete tasks. Every response uses the success/error envelope.",
    },
]

_settings = get_settings()
setup_logging(_settings.log_level)

app = FastAPI(
    title="Task Manager API",
    description="REST API for managing tasks backed by a relational store.",
    version="1.0.0",
    openapi_tags=openapi_tags,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TaskError)
async def task_error_handler(request: Request, exc: TaskError) -> JSONResponse:
    """
    Render any TaskError as ``{"success": false, "error": ...}`` with its status.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.message),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Report framework-level request validation failures (malformed JSON,
    non-object bodies, bad headers) as 400 envelopes.
    """
    errors = exc.errors()
    first = errors[0] if errors else {}
    if first.get("type") == "json_invalid":
        message = "Request body must be valid JSON"
    else:
        loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        msg = first.get("msg", "Request validation failed")
        message = f"{loc}: {msg}" if loc else msg
    return JSONResponse(status_code=400, content=error_envelope(message))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Keep routing errors (unknown path, wrong method) in the same envelope.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_envelope("Internal server error"))


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check(repo: Repository = Depends(get_repository)):
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health and the active storage backend.
    """
    return {"message": "Healthy", "backend": repo.name}


app.include_router(tasks_router.router)


def run() -> None:
    """Serve the app with uvicorn using HOST/PORT/LOG_LEVEL from settings."""
    uvicorn.run(
        "task_api.main:app",
        host=_settings.host,
        port=_settings.port,
        log_level=_settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
