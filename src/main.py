from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

import src.core.database  # noqa: F401 - registers database lifespan
import src.core.logging_config  # noqa: F401 - registers logging lifespan
from src.competitions.exceptions import (
    AuthorizationError,
    CompetitionException,
    ConfigurationError,
    InvalidStateError,
    NotFoundError,
    UpstreamFetchError,
)
from src.competitions.router import router as competitions_router
from src.config import get_settings
from src.core.lifespan import manager
from src.core.logging_config import configure_logging
from src.core.middleware import LoggingMiddleware, RequestContextMiddleware
from src.core.request_context import get_request_id
from src.workouts.router import router as workouts_router

# Configure logging FIRST (before app creation and settings access)
configure_logging()

settings = get_settings()

app_configs = {
    "title": settings.APP_NAME,
    "version": "1.0.0",
    "lifespan": manager,
}

if settings.ENVIRONMENT not in ("local", "staging"):
    app_configs["openapi_url"] = None

app = FastAPI(**app_configs)

# Add middleware (order matters - last added runs first)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestContextMiddleware)  # Must run before logging

if settings.CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(competitions_router)
app.include_router(workouts_router)

ERROR_STATUS_CODES: dict[type[CompetitionException], int] = {
    ConfigurationError: 400,
    InvalidStateError: 400,
    AuthorizationError: 403,
    NotFoundError: 404,
    UpstreamFetchError: 502,
}


@app.exception_handler(CompetitionException)
async def competition_exception_handler(request: Request, exc: CompetitionException):
    """Translate competition errors into HTTP responses.

    Parameters
    ----------
    request : Request
        The HTTP request that caused the exception
    exc : CompetitionException
        The domain error

    Returns
    -------
    JSONResponse
        Error response with the error message as detail
    """
    status_code = next(
        (
            code
            for exc_type, code in ERROR_STATUS_CODES.items()
            if isinstance(exc, exc_type)
        ),
        400,
    )
    content = {"detail": str(exc), "request_id": get_request_id()}
    if isinstance(exc, ConfigurationError):
        content["missing"] = exc.missing
        content["invalid"] = exc.invalid

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Competition request failed",
        path=request.url.path,
        status_code=status_code,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions with structured logging."""
    request_id = get_request_id()
    logger.opt(exception=exc).error(
        "Unhandled exception",
        request_id=request_id,
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "request_id": request_id},
    )


@app.get("/health")
async def health():
    return {"status": "healthy"}
