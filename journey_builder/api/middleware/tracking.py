"""
Request tracking middleware.

Assigns a correlation ID to every request, logs its start and completion,
and records request counts and durations in the metrics service.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from journey_builder.core.logging import get_logger
from journey_builder.observability.metrics import HTTP_REQUEST_TIME, HTTP_REQUESTS, increment_metric, timer_metric

logger = get_logger(__name__)

SLOW_REQUEST_MS = 5000


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Correlation IDs, request logging and request timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        correlation_id = self._get_or_generate_correlation_id(request)
        request.state.correlation_id = correlation_id

        logger.info(
            "Request started",
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": str(request.url.path),
                "client_host": request.client.host if request.client else "unknown",
            }
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "Request failed with exception",
                extra={
                    "correlation_id": correlation_id,
                    "method": request.method,
                    "path": str(request.url.path),
                    "duration_ms": round(duration_ms, 2),
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        tags = {"method": request.method, "status": str(response.status_code)}
        increment_metric(HTTP_REQUESTS, tags=tags)
        timer_metric(HTTP_REQUEST_TIME, duration_ms, tags={"path": str(request.url.path)})

        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Request-Duration-Ms"] = str(round(duration_ms, 2))

        logger.info(
            "Request completed",
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": str(request.url.path),
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            }
        )

        if duration_ms > SLOW_REQUEST_MS:
            logger.warning(
                "Slow request detected",
                extra={
                    "correlation_id": correlation_id,
                    "path": str(request.url.path),
                    "duration_ms": round(duration_ms, 2),
                }
            )

        return response

    def _get_or_generate_correlation_id(self, request: Request) -> str:
        """Get correlation ID from request or generate new one."""
        correlation_id = request.headers.get("X-Correlation-ID")

        if not correlation_id:
            correlation_id = request.query_params.get("correlation_id")

        if not correlation_id:
            correlation_id = str(uuid.uuid4())

        return correlation_id
