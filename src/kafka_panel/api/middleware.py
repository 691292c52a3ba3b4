"""HTTP request logging middleware."""

import time

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request and its response status at DEBUG level."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Log the request, call the handler, log the response."""
        method = request.method
        path = request.url.path
        logger.debug(f">>> {method} {path}")

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        logger.debug(f"<<< {response.status_code} {method} {path} {duration_ms:.1f}ms")
        return response
