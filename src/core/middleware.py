"""FastAPI middleware for request context and logging.

Middleware should be added to the FastAPI app in this order:
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestContextMiddleware)  # added last, runs first
"""

import time

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.core.request_context import generate_request_id, get_request_id, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = {"/health"}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to inject a request_id into context.

    Reuses the caller's X-Request-ID when present so traces can span
    services, otherwise generates one. The id is echoed in the response.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        set_request_id(request_id)

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id

        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log HTTP requests and responses with timing.

    Request bodies are not logged; workout uploads can be large.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        request_id = get_request_id()
        start_time = time.perf_counter()

        logger.info(
            "Request started",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            query_params=str(request.query_params),
            client_ip=request.client.host if request.client else None,
        )

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        logger.info(
            "Request completed",
            request_id=request_id,
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )

        return response
