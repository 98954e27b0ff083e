"""Access logging middleware."""

import time
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from typing import Callable

from shortener.common.logging_config import get_logger


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request, at warning level for server errors."""

    def __init__(self, app, logger: logging.Logger = None):
        super().__init__(app)
        self.logger = logger or get_logger("web")

    async def dispatch(self, request: Request, call_next: Callable):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        # Behind a proxy the peer address is the proxy's
        client = request.headers.get("X-Real-IP") or (request.client.host if request.client else "-")
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        self.logger.log(
            level,
            f"{client} {request.method} {request.url.path} -> {response.status_code} "
            f"({elapsed_ms:.1f}ms)",
        )
        return response
