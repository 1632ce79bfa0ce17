"""Request timing middleware."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from scripthub.config import settings
from scripthub.utils.logger import logger


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Adds X-Process-Time to responses and warns about slow requests.

    Version uploads parse the whole script and run every checker inside the
    request, so they are the usual offenders.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        path = request.url.path
        if path in self.EXCLUDED_PATHS:
            return response

        if process_time >= settings.slow_request_threshold_seconds:
            logger.warning(
                f"[SLOW REQUEST] {request.method} {path} - {process_time:.3f}s "
                f"(status {response.status_code})"
            )
        else:
            logger.debug(f"[REQUEST] {request.method} {path} - {process_time:.3f}s")

        return response
