"""
Logging Middleware - one access log line per completed request
"""
import logging
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from support_lab.utils.logger import get_logger

logger = get_logger(__name__)

# Polled by load balancers
QUIET_PATHS = {"/health"}

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Access logging

    Each request gets an id (taken from X-Request-ID when the caller sent
    one) that is echoed back on the response. Completion is logged at INFO,
    or ERROR when the status is 4xx/5xx, with the elapsed time also exposed
    as X-Process-Time.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        started = time.perf_counter()
        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client": request.client.host if request.client else "unknown",
        }

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            logger.error(
                f"{request.method} {request.url.path} raised {type(e).__name__} ({elapsed_ms}ms) [{request_id}]",
                extra={**context, "duration_ms": elapsed_ms, "error": str(e)}
            )
            raise

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.log(
            logging.ERROR if response.status_code >= 400 else logging.INFO,
            f"{request.method} {request.url.path} - {response.status_code} ({elapsed_ms}ms) [{request_id}]",
            extra={**context, "status_code": response.status_code, "duration_ms": elapsed_ms}
        )

        response.headers["X-Process-Time"] = str(elapsed_ms)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
