"""Request logging middleware."""

import logging
import time
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log its outcome and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Reuse the caller's id so client and server logs line up
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        logger.debug(f"[{request_id}] {request.method} {request.url.path} started")

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            logger.error(
                f"[{request_id}] {request.method} {request.url.path} failed after {duration_ms}ms: {e}"
            )
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} ({duration_ms}ms)",
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
